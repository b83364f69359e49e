from dataclasses import dataclass, field
from typing import List

from .config import default_config
from .cursor import CodePointCursor
from .enrich import LinkEnricher
from .extractors import extract_emotion, extract_link, extract_mention
from .models import MessageInfo
from .titles import PageTitleFetcher, UrllibFetcher


@dataclass
class ScanResult:
    mentions: List[str] = field(default_factory=list)
    emotions: List[str] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)


#'trigger': ('category', extractor)
TRIGGERS = {
    '(': ('emotions', extract_emotion),
    '@': ('mentions', extract_mention),
    'h': ('urls', extract_link),
    'H': ('urls', extract_link),
}


class MessageScanner:
    """
    Single left-to-right pass over a message.

    Each position is checked against the trigger table; a successful match
    moves the cursor past the whole token, anything else moves it by one
    code point.
    """

    def __init__(self, triggers=None):
        self.triggers = TRIGGERS if triggers is None else triggers

    def scan(self, message):
        result = ScanResult()
        cursor = CodePointCursor(message)

        while not cursor.at_end():
            ch, width = cursor.peek()

            trigger = self.triggers.get(ch)
            if trigger is not None:
                category, extract = trigger
                if (extracted := extract(cursor.text, cursor.pos)):
                    value, width = extracted
                    getattr(result, category).append(value)

            cursor.advance(width)

        return result


class Parser:
    def __init__(self, fetcher=None, *, read_chunk_size=None):
        defaults = default_config()
        if fetcher is None:
            fetcher = UrllibFetcher.from_config(defaults)
        if read_chunk_size is None:
            read_chunk_size = defaults["read_chunk_size"]

        # The fetch capability is the only thing a parser holds on to
        self.fetcher = fetcher
        self.scanner = MessageScanner()
        self.enricher = LinkEnricher(PageTitleFetcher(fetcher, read_chunk_size))

    @classmethod
    def from_config(cls, config, fetcher=None):
        if fetcher is None:
            fetcher = UrllibFetcher.from_config(config)
        return cls(fetcher, read_chunk_size=config["read_chunk_size"])

    async def parse(self, message):
        """
        Parse a message into its mentions, emotions and titled links.

        Raises DecodingError when the message holds an invalid code point;
        failed title lookups only leave that link's title empty.
        """
        scanned = self.scanner.scan(message)
        links = await self.enricher.enrich(scanned.urls)

        return MessageInfo(
            mentions=tuple(scanned.mentions),
            emotions=tuple(scanned.emotions),
            links=links,
        )

    async def parse_json(self, message):
        info = await self.parse(message)
        return info.to_json()
