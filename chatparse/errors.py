class ChatParseError(Exception):
    """Base class for everything the parser raises."""


class DecodingError(ChatParseError):
    """The message holds something that is not a valid code point."""

    def __init__(self, position, detail="invalid code point"):
        self.position = position
        super().__init__(f"{detail} at position {position}")


class FetchError(ChatParseError):
    """The fetch capability could not deliver the page."""

    def __init__(self, url, reason):
        self.url = url
        super().__init__(f"fetching {url} failed: {reason}")


class MalformedMarkupError(ChatParseError):
    """The page ended or broke before its title could be decided."""

    def __init__(self, url, reason="invalid html"):
        self.url = url
        super().__init__(f"{url}: {reason}")


class SerializationError(ChatParseError):
    pass
