# core/normalizer.py
import random
from typing import Dict, Iterable, List, Mapping, Optional

from .competitions import COMPETITION_MAP, resolve_league
from .errors import ValidationFailed
from .logger import get_logger, log_event
from .models import BothTeamsScore, MatchRecord, MatchStatus, OverUnder, ParsedFields
from .settings import Settings, load_settings
from oddsboard.utils.match_utils import odds_in_range, today_iso
from oddsboard.utils.team_utils import clean_team_name

logger = get_logger("oddsboard.normalizer")

# Placeholder odds window used only when synthetic odds are switched on
SYNTHETIC_MIN = 1.20
SYNTHETIC_MAX = 15.00


def normalize_team(name: Optional[str]) -> str:
    return clean_team_name(name or "")


class MatchNormalizer:
    """ParsedFields -> MatchRecord. Raises ValidationFailed for anything unusable."""

    def __init__(self,
                 settings: Optional[Settings] = None,
                 competitions: Mapping[str, str] = COMPETITION_MAP,
                 rng: Optional[random.Random] = None):
        self.settings = settings or load_settings()
        self.competitions = competitions
        self.rng = rng or random.Random()
        self.rejected = 0

    def _synthetic(self) -> float:
        return round(self.rng.uniform(SYNTHETIC_MIN, SYNTHETIC_MAX), 2)

    def normalize(self,
                  fields: ParsedFields,
                  index: int,
                  source: str = "totelepep",
                  default_date: Optional[str] = None,
                  competition_names: Optional[Mapping[str, str]] = None) -> MatchRecord:
        record_id = fields.upstream_id or f"{source}-{index}"

        home = normalize_team(fields.home_team)
        away = normalize_team(fields.away_team)
        if len(home) <= 1 or len(away) <= 1:
            raise ValidationFailed("missing team name", record_id)
        if home.lower() == away.lower():
            raise ValidationFailed(f"team plays itself: {home}", record_id)

        odds = [fields.home_odds, fields.draw_odds, fields.away_odds]
        for value in odds:
            if value is not None and not odds_in_range(value):
                raise ValidationFailed(f"odds out of range: {value}", record_id)

        synthetic = False
        over, under = fields.over, fields.under
        yes, no = fields.btts_yes, fields.btts_no
        if self.settings.allow_synthetic_odds:
            if any(v is None for v in odds):
                odds = [v if v is not None else self._synthetic() for v in odds]
                synthetic = True
            if over is None or under is None:
                over = over if over is not None else self._synthetic()
                under = under if under is not None else self._synthetic()
                synthetic = True
            if yes is None or no is None:
                yes = yes if yes is not None else self._synthetic()
                no = no if no is not None else self._synthetic()
                synthetic = True

        if self.settings.require_1x2_odds and any(v is None for v in odds):
            raise ValidationFailed("incomplete 1X2 odds", record_id)

        over_under = OverUnder(over, under) if over is not None or under is not None else None
        btts = BothTeamsScore(yes, no) if yes is not None or no is not None else None

        return MatchRecord(
            id=record_id,
            home_team=home,
            away_team=away,
            league=resolve_league(fields.competition_id, fields.league, competition_names, self.competitions),
            date=fields.date or default_date or today_iso(),
            kickoff=fields.kickoff,
            status=fields.status if fields.status in MatchStatus.ALL else MatchStatus.UPCOMING,
            competition_id=fields.competition_id,
            home_odds=odds[0],
            draw_odds=odds[1],
            away_odds=odds[2],
            over_under=over_under,
            both_teams_score=btts,
            home_score=fields.home_score,
            away_score=fields.away_score,
            minute=fields.minute,
            synthetic_odds=synthetic,
        )

    def normalize_batch(self,
                        fields_list: Iterable[ParsedFields],
                        source: str = "totelepep",
                        default_date: Optional[str] = None,
                        competition_names: Optional[Mapping[str, str]] = None) -> List[MatchRecord]:
        """Valid, deduplicated records in input order. First occurrence of a key wins."""
        seen: Dict[str, MatchRecord] = {}
        for index, fields in enumerate(fields_list):
            try:
                record = self.normalize(fields, index, source, default_date, competition_names)
            except ValidationFailed as e:
                self.rejected += 1
                log_event(logger, "record_rejected", level="debug", record_id=e.record_id, reason=e.reason)
                continue
            if record.dedup_key in seen:
                log_event(logger, "duplicate_dropped", level="debug", key=record.dedup_key)
                continue
            seen[record.dedup_key] = record
        return list(seen.values())
