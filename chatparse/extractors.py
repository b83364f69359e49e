import bisect
from urllib.parse import urlsplit

from .config import EMOTIONS

HEX_DIGITS = set("0123456789abcdefABCDEF")


def is_word_char(ch):
    # Letters and decimal digits, in any script
    return ch.isalpha() or ch.isdecimal()


# Emotions - a vocabulary word between parentheses, case-sensitive
def extract_emotion(text, pos):
    close = text.find(")", pos + 1)
    if close == -1:
        return None

    tag = text[pos + 1:close]
    i = bisect.bisect_left(EMOTIONS, tag)
    if i < len(EMOTIONS) and EMOTIONS[i] == tag:
        return tag, close - pos + 1
    return None


# Mentions - '@' followed by letters, digits or underscores
def extract_mention(text, pos):
    end = pos + 1
    while end < len(text) and (is_word_char(text[end]) or text[end] == "_"):
        end += 1

    if end == pos + 1:
        return None
    return text[pos + 1:end], end - pos


# Links - http(s):// up to the next whitespace, never starting mid-word
def extract_link(text, pos):
    if pos > 0 and is_word_char(text[pos - 1]):
        return None

    s = text[pos:]
    # At least 'http://' must be present
    if len(s) < 7:
        return None

    scheme = s[:4].lower()
    if s[4] in "sS":
        scheme += "s"
    if scheme not in ("http", "https"):
        return None
    if s[len(scheme):len(scheme) + 3] != "://":
        return None

    end = next((i for i, ch in enumerate(s) if ch.isspace()), len(s))
    link = s[:end]
    if not is_valid_url(link):
        return None
    return link, len(link)


def is_valid_url(url):
    """
    Generic URL syntax check.

    Deliberately loose: it only rejects what cannot be a URL at all, like
    control characters, broken percent escapes, unbalanced IPv6 brackets
    and bad ports.
    """
    # Control characters and lone surrogates
    if any(ord(ch) < 0x20 or ord(ch) == 0x7f or "\ud800" <= ch <= "\udfff" for ch in url):
        return False

    try:
        parts = urlsplit(url)
        # Raises on a non-numeric or out-of-range port
        parts.port
    except ValueError:
        return False

    # The query is passed through as is, other parts must be properly escaped
    return all(valid_escapes(part) for part in (parts.netloc, parts.path, parts.fragment))


def valid_escapes(s):
    i = s.find("%")
    while i != -1:
        if len(s) < i + 3 or s[i + 1] not in HEX_DIGITS or s[i + 2] not in HEX_DIGITS:
            return False
        i = s.find("%", i + 3)
    return True
