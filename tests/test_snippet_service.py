import pytest
from unittest.mock import patch
import httpx

import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import fetch_service
import snippet_service
from snippet_service import extract, extract_code, MAX_SNIPPET_CHARS


def client_for(handler):
    return fetch_service.new_client(httpx.MockTransport(handler))


def test_extract_code_joins_code_like_elements_in_order():
    markup = """
    <html><body>
      <p>intro</p>
      <pre>first()</pre>
      <div class="editor">second()</div>
      <span class="snippet">third()</span>
      <div class="code">fourth()</div>
      <code>fifth()</code>
    </body></html>
    """
    assert extract_code(markup) == "first()\nsecond()\nthird()\nfourth()\nfifth()"


def test_extract_code_returns_none_without_matches():
    assert extract_code("<html><p>prose only</p></html>") is None


def test_extract_code_truncates_to_exact_limit():
    markup = "<pre>" + "a" * 3000 + "</pre><pre>" + "b" * 3000 + "</pre>"
    code = extract_code(markup)
    assert len(code) == MAX_SNIPPET_CHARS
    assert code.startswith("a" * 3000 + "\n")


def test_extract_code_short_content_untouched():
    assert extract_code("<code>x = 1</code>") == "x = 1"


@pytest.mark.asyncio
async def test_extract_returns_code_from_page():
    async with client_for(lambda r: httpx.Response(200, text="<pre>print('hi')</pre>")) as client:
        assert await extract(client, "https://example.com") == "print('hi')"


@pytest.mark.asyncio
async def test_extract_retries_once_after_failure():
    outcomes = [httpx.ReadError("reset"), httpx.Response(200, text="<code>ok()</code>")]
    seen = []

    def handler(request):
        seen.append(request)
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    with patch('logger_service.log_event') as mock_log:
        async with client_for(handler) as client:
            assert await extract(client, "https://example.com") == "ok()"
    assert len(seen) == 2
    mock_log.assert_not_called()


@pytest.mark.asyncio
async def test_extract_returns_empty_after_exhaustion_and_logs_once():
    seen = []

    def handler(request):
        seen.append(request)
        raise httpx.ConnectError("down")

    with patch('logger_service.log_event') as mock_log:
        async with client_for(handler) as client:
            assert await extract(client, "https://down.example.com") == ""
    assert len(seen) == snippet_service.DEFAULT_MAX_RETRIES + 1
    mock_log.assert_called_once()
    assert mock_log.call_args.args[0] == "snippet_failed"
    assert mock_log.call_args.kwargs["url"] == "https://down.example.com"


@pytest.mark.asyncio
async def test_extract_page_without_code_is_refetched_then_empty():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text="<p>no code</p>")

    with patch('logger_service.log_event') as mock_log:
        async with client_for(handler) as client:
            assert await extract(client, "https://prose.example.com") == ""
    assert len(seen) == 2
    mock_log.assert_not_called()
