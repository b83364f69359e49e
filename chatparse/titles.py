import codecs
import logging
import urllib.error
import urllib.request
from contextlib import closing
from html.parser import HTMLParser

from .config import default_config
from .errors import FetchError, MalformedMarkupError

log = logging.getLogger(__name__)

_DEFAULTS = default_config()


class UrllibFetcher:
    """
    Default fetch capability.

    Any object with a get(url) method returning a readable, closable body
    can be used in its place (tests pass canned pages this way).
    """

    def __init__(self, timeout=_DEFAULTS["fetch_timeout"], user_agent=_DEFAULTS["user_agent"]):
        self.timeout = timeout
        self.user_agent = user_agent

    @classmethod
    def from_config(cls, config):
        return cls(timeout=config["fetch_timeout"], user_agent=config["user_agent"])

    def get(self, url):
        request = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        try:
            return urllib.request.urlopen(request, timeout=self.timeout)
        except urllib.error.HTTPError as e:
            # Error statuses still carry a page, and often a title
            return e


class _TitleFound(Exception):
    def __init__(self, title):
        self.title = title


class TitleExtractor(HTMLParser):
    """
    Incremental tokenizer that stops as soon as the title is decided.

    The first title wins even when no <head> was seen, which keeps pages
    with sloppy markup working.
    """

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.head = False
        # True right after <title>, until the next token arrives
        self.after_title = False
        self.text = []

    def handle_starttag(self, tag, attrs):
        if self._take_next_token():
            return
        if tag == "head":
            self.head = True
        elif tag == "title":
            self.after_title = True
        elif tag == "body":
            # Page has no TITLE tag
            raise _TitleFound("")

    def handle_startendtag(self, tag, attrs):
        # <body/> and friends are not start tags
        self._take_next_token()

    def handle_endtag(self, tag):
        if self._take_next_token():
            return
        if tag == "head":
            raise _TitleFound("")

    def handle_data(self, data):
        if self.after_title:
            # Text may come in pieces when it straddles two chunks
            self.text.append(data)

    def handle_comment(self, data):
        self._take_next_token()

    def _take_next_token(self):
        """
        Settle a pending <title>: report the text collected after it, or
        swallow the current token when no text came first.
        """
        if not self.after_title:
            return False
        self.after_title = False
        if self.text:
            raise _TitleFound("".join(self.text))
        return True

    def finish(self):
        self.close()
        if self.after_title and self.text:
            raise _TitleFound("".join(self.text))


class PageTitleFetcher:
    def __init__(self, fetcher, read_chunk_size=_DEFAULTS["read_chunk_size"]):
        self.fetcher = fetcher
        self.read_chunk_size = read_chunk_size

    def fetch_title(self, url):
        """
        Download url and return the text of its <title>.

        Returns an empty string when the page clearly has no title (a
        <body> or </head> shows up first). Raises FetchError when the page
        cannot be retrieved and MalformedMarkupError when the markup breaks
        or ends before the title is decided.
        """
        try:
            response = self.fetcher.get(url)
        except Exception as e:
            raise FetchError(url, e) from e

        with closing(response):
            try:
                title = self._read_title(response)
            except OSError as e:
                raise FetchError(url, e) from e
            except Exception as e:
                raise MalformedMarkupError(url, e) from e

        if title is None:
            raise MalformedMarkupError(url, "stream ended before a title, <body> or </head>")
        log.debug("Title for %s: %r", url, title)
        return title

    def _read_title(self, response):
        decoder = codecs.getincrementaldecoder(_charset(response))(errors="replace")
        parser = TitleExtractor()
        try:
            while True:
                chunk = response.read(self.read_chunk_size)
                if not chunk:
                    break
                parser.feed(decoder.decode(chunk))
            parser.feed(decoder.decode(b"", final=True))
            parser.finish()
        except _TitleFound as found:
            return found.title
        return None


def _charset(response):
    headers = getattr(response, "headers", None)
    charset = headers.get_content_charset() if hasattr(headers, "get_content_charset") else None
    try:
        codecs.lookup(charset or "utf-8")
    except LookupError:
        return "utf-8"
    return charset or "utf-8"
