"""Code snippet extraction from fetched pages.

Extraction is purely structural: every element that usually holds code
contributes its text, in document order.
"""

import logging
from typing import Optional

import httpx

import fetch_service
import logger_service

DEFAULT_MAX_RETRIES = 1
MAX_SNIPPET_CHARS = 5000
CODE_SELECTOR = "code, pre, .code, .editor, .snippet"


def extract_code(markup: str) -> Optional[str]:
    """Join the text of code-bearing elements, truncated to MAX_SNIPPET_CHARS.

    Returns None when nothing matches, so callers can tell "no code blocks"
    apart from code blocks that happen to be empty.
    """
    soup = fetch_service.parse_markup(markup)
    blocks = [el.get_text() for el in soup.select(CODE_SELECTOR)]
    if not blocks:
        return None
    return "\n".join(blocks)[:MAX_SNIPPET_CHARS]


async def extract(client: httpx.AsyncClient, url: str, max_retries: int = DEFAULT_MAX_RETRIES, timeout_ms: int = fetch_service.DEFAULT_TIMEOUT_MS) -> str:
    for attempt in range(max_retries + 1):
        try:
            response = await fetch_service.fetch(client, url, timeout_ms=timeout_ms)
            code = extract_code(response.text)
            if code is not None:
                return code
        except fetch_service.FetchError as e:
            if attempt == max_retries:
                logger_service.log_event("snippet_failed", level=logging.WARNING, message=f"Failed to fetch snippet from {url}", url=url, error=type(e).__name__)
    return ""
