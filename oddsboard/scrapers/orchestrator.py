# scrapers/orchestrator.py
import asyncio
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from oddsboard.core.cache import TTLCache
from oddsboard.core.competitions import competition_for_league
from oddsboard.core.errors import NoDataAvailable, UpstreamError, UpstreamParseError
from oddsboard.core.logger import get_logger, log_event
from oddsboard.core.models import BothTeamsScore, ExtractionResult, MatchOddsDetail, MatchRecord, OverUnder
from oddsboard.core.normalizer import MatchNormalizer
from oddsboard.core.rate_limiter import RateLimiter
from oddsboard.core.settings import Settings, load_settings
from oddsboard.utils.match_utils import today_iso

from .field_parser import FieldParser, parse_match_detail
from .totelepep_fetcher import TotelepepFetcher

logger = get_logger("oddsboard.orchestrator")

# Everything a single fetch may fail with that the stale fallback absorbs
FETCH_ERRORS = (UpstreamError, NoDataAvailable, httpx.HTTPError)


class ExtractionService:
    """
    Board and match-detail extraction for one process.

    Per request: cache check -> rate limit -> fetch -> parse -> normalize & dedup
    -> cache write. A failed fetch falls back to the last cached value, however
    old, and only then to an empty result. Concurrent requests for the same key
    share one in-flight fetch.
    """

    def __init__(
        self,
        fetcher: Optional[TotelepepFetcher] = None,
        settings: Optional[Settings] = None,
        board_cache: Optional[TTLCache] = None,
        detail_cache: Optional[TTLCache] = None,
        board_limiter: Optional[RateLimiter] = None,
        detail_limiter: Optional[RateLimiter] = None,
        parser: Optional[FieldParser] = None,
        normalizer: Optional[MatchNormalizer] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or load_settings()
        self.fetcher = fetcher or TotelepepFetcher(self.settings)
        self.board_cache = board_cache or TTLCache(self.settings.board_cache_ttl, clock=clock, name="board")
        self.detail_cache = detail_cache or TTLCache(self.settings.detail_cache_ttl, clock=clock, name="detail")
        self.board_limiter = board_limiter or RateLimiter(self.settings.board_rate_limit, name="board")
        self.detail_limiter = detail_limiter or RateLimiter(self.settings.detail_rate_limit, name="detail")
        self.parser = parser or FieldParser()
        self.normalizer = normalizer or MatchNormalizer(self.settings)
        self._clock = clock
        self._inflight: Dict[str, "asyncio.Task[Any]"] = {}

    # --------------------
    # lifecycle
    # --------------------
    async def __aenter__(self):
        await self.fetcher.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self) -> None:
        await self.fetcher.cleanup()

    def clear_cache(self) -> None:
        self.board_cache.clear()
        self.detail_cache.clear()

    # --------------------
    # coalescing
    # --------------------
    def _forget(self, key: str, task: "asyncio.Task[Any]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _coalesce(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            log_event(logger, "request_coalesced", level="debug", key=key)
        # a cancelled waiter must not cancel the fetch the others are waiting on
        return await asyncio.shield(task)

    # --------------------
    # board
    # --------------------
    @staticmethod
    def _board_key(date: str) -> str:
        return f"board:{date}"

    async def _fetch_board_raw(self, date: str, competition_id: str = "0") -> Any:
        waited = await self.board_limiter.acquire()
        log_event(logger, "board_request", date=date, competition_id=competition_id, waited_ms=int(waited * 1000))
        return await self.fetcher.fetch_board(date, competition_id=competition_id)

    def _parse(self, raw: Any, date: str):
        try:
            return self.parser.parse(raw, default_date=date)
        except Exception as e:
            raise UpstreamParseError(f"Board for {date} could not be parsed: {e!r}") from e

    async def _fan_out(self, date: str, competitions: Dict[str, str]):
        """Per-competition boards, one after the other, each paying the board rate limit."""
        fields, names = [], dict(competitions)
        for cid in competitions:
            try:
                outcome = self._parse(await self._fetch_board_raw(date, cid), date)
            except FETCH_ERRORS as e:
                log_event(logger, "competition_fetch_failed", level="warning", competition_id=cid, error=str(e))
                continue
            for f in outcome.fields:
                if f.competition_id is None:
                    f.competition_id = cid
            fields.extend(outcome.fields)
            for k, v in outcome.competitions.items():
                names.setdefault(k, v)
        return fields, names

    async def _load_board(self, date: str) -> List[MatchRecord]:
        raw = await self._fetch_board_raw(date)
        outcome = self._parse(raw, date)
        fields, names = outcome.fields, outcome.competitions

        if not fields and names:
            log_event(logger, "competition_fan_out", date=date, competitions=len(names))
            fields, names = await self._fan_out(date, names)

        before = self.normalizer.rejected
        try:
            records = self.normalizer.normalize_batch(
                fields, source=self.fetcher.source, default_date=date, competition_names=names
            )
        except Exception as e:
            raise UpstreamParseError(f"Board for {date} could not be normalized: {e!r}") from e
        if not records:
            raise NoDataAvailable(f"No usable matches on the board for {date}")

        self.board_cache.set(self._board_key(date), records)
        log_event(
            logger, "board_extracted",
            date=date, strategy=outcome.strategy, parsed=len(fields),
            records=len(records), rejected=self.normalizer.rejected - before,
        )
        return records

    async def extract_board(self, date: Optional[str] = None) -> ExtractionResult:
        date = date or today_iso()
        key = self._board_key(date)

        entry = self.board_cache.get_entry(key)
        if entry is not None:
            log_event(logger, "cache_hit", level="debug", key=key)
            return ExtractionResult(list(entry.value), stale=False, fetched_at=entry.timestamp)

        try:
            records = await self._coalesce(key, lambda: self._load_board(date))
            return ExtractionResult(list(records), stale=False, fetched_at=self._clock())
        except FETCH_ERRORS as e:
            stale = self.board_cache.get_entry(key, ignore_expiry=True)
            if stale is not None:
                log_event(logger, "stale_fallback", level="warning", key=key, error=str(e),
                          age_s=int(self._clock() - stale.timestamp))
                return ExtractionResult(list(stale.value), stale=True, fetched_at=stale.timestamp, error=str(e))
            log_event(logger, "extraction_failed", level="error", key=key, error=str(e))
            return ExtractionResult([], stale=False, error=str(e))

    async def extract_matches(self, date: Optional[str] = None) -> List[MatchRecord]:
        """Board records for `date` (default today). Empty list on failure, never raises."""
        result = await self.extract_board(date)
        return result.matches

    # --------------------
    # match detail
    # --------------------
    @staticmethod
    def _detail_key(match_id, competition_id) -> str:
        return f"detail:{competition_id}:{match_id}"

    async def _load_detail(self, match_id: str, competition_id: str) -> MatchOddsDetail:
        await self.detail_limiter.acquire()
        payload = await self.fetcher.fetch_match_detail(match_id, competition_id)
        try:
            detail = parse_match_detail(payload, match_id, competition_id)
        except Exception as e:
            raise UpstreamParseError(f"Detail for match {match_id} could not be parsed: {e!r}") from e
        if detail is None:
            raise NoDataAvailable(f"No BTTS or totals odds for match {match_id}")
        self.detail_cache.set(self._detail_key(match_id, competition_id), detail)
        log_event(logger, "detail_extracted", match_id=match_id, competition_id=competition_id,
                  markets=len(detail.markets))
        return detail

    async def extract_match_detail(self, match_id, competition_id) -> Optional[MatchOddsDetail]:
        mid, cid = str(match_id), str(competition_id)
        key = self._detail_key(mid, cid)

        cached = self.detail_cache.get(key)
        if cached is not None:
            return cached

        try:
            return await self._coalesce(key, lambda: self._load_detail(mid, cid))
        except FETCH_ERRORS as e:
            stale = self.detail_cache.get_ignoring_expiry(key)
            log_event(logger, "detail_failed", level="warning", key=key, error=str(e), stale=stale is not None)
            return stale

    # --------------------
    # board + detail enrichment
    # --------------------
    @staticmethod
    def _detail_competition(record: MatchRecord) -> Optional[str]:
        return record.competition_id or competition_for_league(record.league)

    def _needs_detail(self, record: MatchRecord) -> bool:
        if not self._detail_competition(record) or record.id.startswith(f"{self.fetcher.source}-"):
            return False
        return record.over_under is None or record.both_teams_score is None

    @staticmethod
    def _merge_detail(record: MatchRecord, detail: MatchOddsDetail) -> MatchRecord:
        over_under, btts = record.over_under, record.both_teams_score
        if over_under is None and (detail.over25 is not None or detail.under25 is not None):
            over_under = OverUnder(detail.over25, detail.under25)
        if btts is None and (detail.btts_yes is not None or detail.btts_no is not None):
            btts = BothTeamsScore(detail.btts_yes, detail.btts_no)
        return replace(record, over_under=over_under, both_teams_score=btts)

    async def get_matches(self, date: Optional[str] = None, enrich: bool = True) -> ExtractionResult:
        """Board extraction, then BTTS / Over-Under 2.5 filled in from each match's detail page."""
        result = await self.extract_board(date)
        if not enrich or not result.matches:
            return result

        enriched: List[MatchRecord] = []
        filled = 0
        for record in result.matches:
            if self._needs_detail(record):
                detail = await self.extract_match_detail(record.id, self._detail_competition(record))
                if detail is not None:
                    record = self._merge_detail(record, detail)
                    filled += 1
            enriched.append(record)

        log_event(logger, "board_enriched", records=len(enriched), enriched=filled)
        return replace(result, matches=enriched)
