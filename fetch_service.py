"""Single HTTP GET guarded by a wall-clock deadline.

`fetch` races the request against a timer. If the timer wins the request
task is cancelled and `FetchTimeout` is raised; the timer handle is released
on every path. There is no retry here: search and snippet extraction each
choose their own budget.
"""

import asyncio
from typing import Optional

import httpx
from bs4 import BeautifulSoup

DEFAULT_TIMEOUT_MS = 15000


class FetchError(Exception):
    """Base for every recoverable fetch failure."""


class FetchTimeout(FetchError, TimeoutError):
    pass


class NetworkError(FetchError):
    pass


class ParseError(FetchError):
    pass


def new_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    # The deadline in fetch() is the only timeout in effect.
    return httpx.AsyncClient(timeout=None, follow_redirects=True, transport=transport)


async def fetch(client: httpx.AsyncClient, url: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> httpx.Response:
    try:
        response = await asyncio.wait_for(client.get(url), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError as e:
        raise FetchTimeout(f"GET {url} exceeded {timeout_ms} ms") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise NetworkError(f"GET {url} failed: {e}") from e
    if not response.is_success:
        raise NetworkError(f"GET {url} returned HTTP {response.status_code}")
    return response


def parse_markup(markup: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(markup, "html.parser")
    except Exception as e:
        raise ParseError(f"unparseable markup: {e}") from e
