"""Extract mentions, emotions and titled links from chat messages."""

__version__ = "1.0.0"

from .errors import (
    ChatParseError,
    DecodingError,
    FetchError,
    MalformedMarkupError,
    SerializationError,
)
from .models import Link, MessageInfo
from .logic import MessageScanner, Parser
from .titles import PageTitleFetcher, UrllibFetcher
from .enrich import LinkEnricher

__all__ = [
    "ChatParseError",
    "DecodingError",
    "FetchError",
    "MalformedMarkupError",
    "SerializationError",
    "Link",
    "MessageInfo",
    "MessageScanner",
    "Parser",
    "PageTitleFetcher",
    "UrllibFetcher",
    "LinkEnricher",
]
