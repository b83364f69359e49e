from .errors import DecodingError


class CodePointCursor:
    """
    Steps through a message one code point at a time.

    Bytes are decoded as UTF-8 with invalid sequences kept as lone
    surrogates, so a bad byte is reported at its own position rather than
    failing the whole decode up front. Positions in errors are byte offsets
    for bytes input and code point indexes for text.
    """

    def __init__(self, text):
        self.raw = isinstance(text, (bytes, bytearray))
        if self.raw:
            text = bytes(text).decode("utf-8", errors="surrogateescape")
        self.text = text
        self.pos = 0

    def at_end(self):
        return self.pos >= len(self.text)

    def peek(self):
        """Return (code point, width) at the current position."""
        ch = self.text[self.pos]
        if "\ud800" <= ch <= "\udfff":
            raise DecodingError(self.offset())
        return ch, 1

    def offset(self):
        if not self.raw:
            return self.pos
        # Each escaped byte encodes back to itself
        return len(self.text[:self.pos].encode("utf-8", errors="surrogateescape"))

    def advance(self, width):
        self.pos += width
