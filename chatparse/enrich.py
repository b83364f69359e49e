import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from .errors import FetchError, MalformedMarkupError
from .models import Link

log = logging.getLogger(__name__)


class LinkEnricher:
    """
    Turns discovered URLs into Links by looking up each page title.

    With two or more URLs the pages are fetched concurrently and the links
    come back in the order the fetches finish, not the order the URLs were
    found in.
    """

    def __init__(self, titles):
        self.titles = titles

    def title_or_empty(self, url):
        # One broken page must not fail the whole message
        try:
            return self.titles.fetch_title(url)
        except (FetchError, MalformedMarkupError) as e:
            log.debug("No title for %s: %s", url, e)
            return ""

    def link_for(self, url):
        return Link(url=url, title=self.title_or_empty(url))

    async def enrich(self, urls):
        if not urls:
            return ()

        # One thread per link, from a pool owned by this call
        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=len(urls), thread_name_prefix="chatparse-fetch") as pool:
            if len(urls) == 1:
                return (await loop.run_in_executor(pool, self.link_for, urls[0]),)

            tasks = [loop.run_in_executor(pool, self.link_for, url) for url in urls]
            links = []
            for next_done in asyncio.as_completed(tasks):
                links.append(await next_done)
        return tuple(links)
