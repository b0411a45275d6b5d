# scrapers/async_base_scraper.py
import asyncio
import json
import random
import time
from collections import defaultdict
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from oddsboard.core.config import ENVCFG
from oddsboard.core.errors import UpstreamHttpError, UpstreamParseError
from oddsboard.core.logger import get_logger

logger = get_logger("oddsboard.async_base_scraper")


class AsyncBaseScraper:
    """
    Owns one httpx.AsyncClient and the request policy every upstream call shares:
    fixed headers, a per-request timeout and retries on transport failures.

    Non-2xx answers are not retried; they surface as UpstreamHttpError so the
    caller can fall back to cached data.
    """

    DEFAULT_HEADERS: Dict[str, str] = {
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }

    def __init__(self,
                 source: str,
                 base_url: str,
                 user_agent: str = ENVCFG.USER_AGENT,
                 max_retries: int = ENVCFG.MAX_RETRIES,
                 request_timeout: float = ENVCFG.REQUEST_TIMEOUT,
                 client: Optional[httpx.AsyncClient] = None,
                 backoff_base: float = 0.5):
        self.source = source
        self.base_url = base_url.rstrip("/")
        self.ua = user_agent
        self.default_max_retries = max(1, int(max_retries))
        self._request_timeout = request_timeout
        self._backoff_base = backoff_base

        # an injected client belongs to the caller and is left open on cleanup
        self.client: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None

        self.metrics = {
            "requests_made": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "latency_histogram": [],
            "endpoint_errors": defaultdict(int),
        }

    # --------------------
    # lifecycle
    # --------------------
    @property
    def headers(self) -> Dict[str, str]:
        return {**self.DEFAULT_HEADERS, "User-Agent": self.ua}

    def _ensure_client(self) -> httpx.AsyncClient:
        if self.client is None:
            limits = httpx.Limits(max_connections=10, max_keepalive_connections=5, keepalive_expiry=30.0)
            self.client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self._request_timeout,
                follow_redirects=True,
                limits=limits,
            )
            self._owns_client = True
            self.log("httpx_client_created")
        return self.client

    async def __aenter__(self):
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.cleanup()

    async def cleanup(self):
        if self.client and self._owns_client:
            try:
                await self.client.aclose()
                self.log("httpx_client_closed")
            except (httpx.HTTPError, RuntimeError) as e:
                self.log("httpx_client_close_failed", level="warning", error=str(e))
            self.client = None

    # --------------------
    # logging helper
    # --------------------
    def log(self, event: str, level: str = "info", **kwargs):
        msg = {"event": event, "source": self.source, **kwargs}
        getattr(logger, level)(json.dumps(msg, default=str))

    # --------------------
    # retry wrapper
    # --------------------
    def with_retries(
        self,
        coro_fn: Callable[..., Any],
        retry_on: Tuple[type, ...] = (httpx.TransportError,),
        max_retries: Optional[int] = None,
        jitter: Tuple[float, float] = (0.5, 1.5),
    ):
        async def wrapped(*args, **kwargs):
            local_max_retries = max_retries or self.default_max_retries
            for attempt in range(1, local_max_retries + 1):
                try:
                    return await coro_fn(*args, **kwargs)
                except retry_on as e:
                    self.metrics["failed_requests"] += 1
                    if attempt >= local_max_retries:
                        self.log("retries_exhausted", level="error", url=args[0] if args else None, error=str(e))
                        raise
                    delay = (self._backoff_base * (2 ** (attempt - 1))) * random.uniform(*jitter)
                    self.log("request_retry", level="warning", attempt=attempt, delay=round(delay, 2), error=str(e))
                    await asyncio.sleep(delay)
        return wrapped

    # --------------------
    # raw GET
    # --------------------
    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        client = self._ensure_client()
        self.metrics["requests_made"] += 1
        t0 = time.perf_counter()
        resp = await client.get(url, params=params, headers=self.headers, timeout=self._request_timeout)
        dt = time.perf_counter() - t0
        self.metrics["latency_histogram"].append(dt)

        if not resp.is_success:
            self.metrics["endpoint_errors"][f"{resp.status_code}"] += 1
            self.metrics["failed_requests"] += 1
            self.log("http_error", level="warning", url=str(resp.request.url), status=resp.status_code)
            raise UpstreamHttpError(resp.status_code, resp.reason_phrase or "", str(resp.request.url))

        self.metrics["successful_requests"] += 1
        self.log("http_ok", level="debug", url=str(resp.request.url), status=resp.status_code, latency_ms=int(dt * 1000))
        return resp

    async def fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.with_retries(self._get)(url, params)

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        resp = await self.fetch(url, params)
        try:
            return resp.json()
        except ValueError as e:
            self.log("json_decode_failed", level="error", url=url, error=str(e))
            raise UpstreamParseError(f"Response from {url} is not valid JSON") from e

    async def get_payload(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Decoded JSON when the body is JSON, the raw text otherwise (HTML, flat strings)."""
        resp = await self.fetch(url, params)
        ctype = (resp.headers.get("content-type") or "").lower()
        text = resp.text
        if "json" in ctype or text.lstrip()[:1] in ("{", "["):
            try:
                return resp.json()
            except ValueError:
                if "json" in ctype:
                    self.log("json_decode_failed", level="error", url=url)
                    raise UpstreamParseError(f"Response from {url} claims JSON but does not decode")
        return text
