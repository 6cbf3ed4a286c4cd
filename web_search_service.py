import logging
from typing import List
from urllib.parse import quote, urljoin

import httpx

import fetch_service
import logger_service

DEFAULT_MAX_RETRIES = 2
MAX_RESULTS = 5
QUERY_SUFFIX = " full project code"
SEARCH_ENDPOINT = "https://duckduckgo.com/html/"
RESULT_LINK_SELECTOR = "a.result__a"

# encodeURIComponent leaves these literal
_UNESCAPED = "-_.!~*'()"


def build_search_url(query: str) -> str:
    return f"{SEARCH_ENDPOINT}?q={quote(query + QUERY_SUFFIX, safe=_UNESCAPED)}"


def parse_result_links(markup: str, base_url: str = SEARCH_ENDPOINT) -> List[str]:
    """Result hrefs in document order, first MAX_RESULTS only.

    Relative and protocol-relative hrefs are resolved against `base_url`;
    hrefs that are not valid URLs are skipped.
    """
    soup = fetch_service.parse_markup(markup)
    links = []
    for anchor in soup.select(RESULT_LINK_SELECTOR):
        href = anchor.get("href")
        if not href:
            continue
        try:
            links.append(urljoin(base_url, href))
        except ValueError:
            continue
    return links[:MAX_RESULTS]


async def search(client: httpx.AsyncClient, query: str, max_retries: int = DEFAULT_MAX_RETRIES, timeout_ms: int = fetch_service.DEFAULT_TIMEOUT_MS) -> List[str]:
    """Search DuckDuckGo for project code with simple retry.

    Makes up to `max_retries + 1` attempts and returns on the first one that
    yields links. Fetch and parse errors are swallowed; only a failure on the
    last attempt is logged. Degrades to an empty list.
    """
    url = build_search_url(query)
    for attempt in range(max_retries + 1):
        try:
            response = await fetch_service.fetch(client, url, timeout_ms=timeout_ms)
            links = parse_result_links(response.text, url)
            if links:
                return links
        except fetch_service.FetchError as e:
            if attempt == max_retries:
                logger_service.log_event("search_failed", level=logging.WARNING, message="Search fetch failed after retries.", query=query, attempt=attempt + 1, error=type(e).__name__)
    return []
