"""Web code-snippet retrieval with a write-through cache.

Flow for one query:
  1. Cache lookup; a hit returns without touching the network.
  2. One retrying search for result links (at most 5, rank order).
  3. Concurrent extraction from every link, all awaited together.
  4. The first snippet longer than MIN_SNIPPET_CHARS in rank order wins.
  5. The winner is cached and returned; otherwise "" and nothing is cached.

`retrieve` never raises. An empty result does not distinguish "no code
found" from "every fetch failed".
"""

import asyncio
import logging
from typing import Iterable, Optional

import httpx

import fetch_service
import logger_service
import snippet_service
import web_search_service

MIN_SNIPPET_CHARS = 200


def select_snippet(snippets: Iterable[str]) -> str:
    return next((s for s in snippets if len(s) > MIN_SNIPPET_CHARS), "")


class Retriever:
    def __init__(self, store, timeout_ms: int = fetch_service.DEFAULT_TIMEOUT_MS,
                 search_retries: int = web_search_service.DEFAULT_MAX_RETRIES,
                 snippet_retries: int = snippet_service.DEFAULT_MAX_RETRIES,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.store = store
        self.timeout_ms = timeout_ms
        self.search_retries = search_retries
        self.snippet_retries = snippet_retries
        self.transport = transport

    def retrieve(self, query: str) -> str:
        return asyncio.run(self.aretrieve(query))

    async def aretrieve(self, query: str) -> str:
        cached = self.store.get(query)
        if cached:
            logger_service.log_event("cache_hit", message="Using cached snippet.", chars=len(cached))
            return cached
        logger_service.log_event("cache_miss", message="Fetching full code from web editors...")

        async with fetch_service.new_client(self.transport) as client:
            urls = await web_search_service.search(client, query, max_retries=self.search_retries, timeout_ms=self.timeout_ms)
            results = await asyncio.gather(*(
                snippet_service.extract(client, url, max_retries=self.snippet_retries, timeout_ms=self.timeout_ms)
                for url in urls
            ), return_exceptions=True)

        snippets = []
        for url, item in zip(urls, results):
            if isinstance(item, Exception):
                logger_service.log_event("snippet_error", level=logging.WARNING, url=url, error=type(item).__name__)
                item = ""
            snippets.append(item)

        winner = select_snippet(snippets)
        if not winner:
            logger_service.log_event("snippet_none", message="No usable code found.", urls=len(urls))
            return ""
        self.store.set(query, winner)
        logger_service.log_event("snippet_cached", message="Snippet cached.", chars=len(winner))
        return winner
