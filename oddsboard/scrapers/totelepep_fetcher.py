# scrapers/totelepep_fetcher.py
from typing import Any, Optional

import httpx

from oddsboard.core.settings import Settings, load_settings
from oddsboard.utils.match_utils import today_iso

from .async_base_scraper import AsyncBaseScraper

SPORT_ID = "soccer"
PERIOD_CODE = "all"
ALL_COMPETITIONS = "0"


class TotelepepFetcher(AsyncBaseScraper):
    """GetSport / GetMatch endpoints. No caching and no rate limiting here."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or load_settings()
        super().__init__(
            source="totelepep",
            base_url=self.settings.base_url,
            user_agent=self.settings.user_agent,
            max_retries=self.settings.max_retries,
            request_timeout=self.settings.request_timeout,
            client=client,
        )

    @property
    def board_url(self) -> str:
        return f"{self.base_url}/GetSport"

    @property
    def detail_url(self) -> str:
        return f"{self.base_url}/GetMatch"

    async def fetch_board(self, date: Optional[str] = None, competition_id: str = ALL_COMPETITIONS,
                          page_no: Optional[int] = None) -> Any:
        params = {
            "sportId": SPORT_ID,
            "date": date or today_iso(),
            "competitionId": str(competition_id),
            "pageNo": page_no or self.settings.page_no,
            "periodCode": PERIOD_CODE,
        }
        self.log("fetch_board", date=params["date"], competition_id=params["competitionId"])
        return await self.get_payload(self.board_url, params)

    async def fetch_match_detail(self, match_id, competition_id) -> Any:
        params = {
            "sportId": SPORT_ID,
            "competitionId": str(competition_id),
            "matchId": str(match_id),
            "periodCode": PERIOD_CODE,
        }
        self.log("fetch_match_detail", match_id=params["matchId"], competition_id=params["competitionId"])
        return await self.get_json(self.detail_url, params)
