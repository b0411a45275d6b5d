import asyncio

import httpx
import pytest

from oddsboard.core.errors import UpstreamHttpError, UpstreamParseError
from oddsboard.scrapers.totelepep_fetcher import TotelepepFetcher


def _run(settings, handler, action):
    async def go():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        fetcher = TotelepepFetcher(settings, client=client)
        fetcher._backoff_base = 0.0
        try:
            return await action(fetcher), fetcher
        finally:
            await client.aclose()
    return asyncio.run(go())


def test_fetch_board_builds_query_and_headers(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"matchData": ""})

    body, fetcher = _run(settings, handler, lambda f: f.fetch_board("2025-08-26"))

    assert body == {"matchData": ""}
    req = seen[0]
    assert req.url.path.endswith("/webapi/GetSport")
    assert dict(req.url.params) == {
        "sportId": "soccer", "date": "2025-08-26", "competitionId": "0", "pageNo": "1", "periodCode": "all",
    }
    assert req.headers["Cache-Control"] == "no-cache"
    assert req.headers["Pragma"] == "no-cache"
    assert req.headers["User-Agent"] == "oddsboard-tests/1.0"
    assert fetcher.metrics["successful_requests"] == 1


def test_fetch_match_detail_query(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"competitions": []})

    _run(settings, handler, lambda f: f.fetch_match_detail(777, 50))

    assert seen[0].url.path.endswith("/GetMatch")
    assert seen[0].url.params["matchId"] == "777"
    assert seen[0].url.params["competitionId"] == "50"
    assert seen[0].url.params["periodCode"] == "all"


def test_non_2xx_raises_http_error(settings):
    def handler(request):
        return httpx.Response(503)

    with pytest.raises(UpstreamHttpError) as exc:
        _run(settings, handler, lambda f: f.fetch_board("2025-08-26"))

    assert exc.value.status == 503
    assert "HTTP 503" in str(exc.value)


def test_undecodable_json_raises_parse_error(settings):
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>", headers={"content-type": "application/json"})

    with pytest.raises(UpstreamParseError):
        _run(settings, handler, lambda f: f.fetch_match_detail(1, 50))


def test_board_text_body_is_returned_as_text(settings):
    def handler(request):
        return httpx.Response(200, text="1;50;TeamA v TeamB;20:30;2.10;3.40;3.20",
                              headers={"content-type": "text/plain"})

    body, _ = _run(settings, handler, lambda f: f.fetch_board("2025-08-26"))

    assert body.startswith("1;50;")


def test_transport_errors_are_retried(settings):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("boom", request=request)
        return httpx.Response(200, json={"ok": True})

    body, fetcher = _run(settings, handler, lambda f: f.fetch_board("2025-08-26"))

    assert body == {"ok": True}
    assert len(calls) == 2
    assert fetcher.metrics["failed_requests"] == 1


def test_transport_errors_exhaust_retries(settings):
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(httpx.TransportError):
        _run(settings, handler, lambda f: f.fetch_board("2025-08-26"))
