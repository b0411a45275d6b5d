# core/models.py
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

# Decimal odds outside this window are not odds (stake amounts, ids, minutes...)
MIN_ODDS = 1.01
MAX_ODDS = 50.0

# Totals market tracked by the board
GOAL_LINE = 2.5

DEFAULT_LEAGUE = "Football League"


class MatchStatus:
    UPCOMING = "upcoming"
    LIVE = "live"
    FINISHED = "finished"

    ALL = (UPCOMING, LIVE, FINISHED)


@dataclass(frozen=True)
class OverUnder:
    over: Optional[float]
    under: Optional[float]
    line: float = GOAL_LINE


@dataclass(frozen=True)
class BothTeamsScore:
    yes: Optional[float]
    no: Optional[float]


@dataclass
class ParsedFields:
    """Best-effort output of one parse strategy for one raw record. Every field may be missing."""

    upstream_id: Optional[str] = None
    competition_id: Optional[str] = None
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    league: Optional[str] = None
    kickoff: Optional[str] = None
    date: Optional[str] = None
    status: Optional[str] = None
    home_odds: Optional[float] = None
    draw_odds: Optional[float] = None
    away_odds: Optional[float] = None
    over: Optional[float] = None
    under: Optional[float] = None
    btts_yes: Optional[float] = None
    btts_no: Optional[float] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    minute: Optional[int] = None


@dataclass(frozen=True)
class MatchRecord:
    id: str
    home_team: str
    away_team: str
    league: str
    date: str
    kickoff: Optional[str] = None
    status: str = MatchStatus.UPCOMING
    competition_id: Optional[str] = None
    home_odds: Optional[float] = None
    draw_odds: Optional[float] = None
    away_odds: Optional[float] = None
    over_under: Optional[OverUnder] = None
    both_teams_score: Optional[BothTeamsScore] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    minute: Optional[int] = None
    synthetic_odds: bool = False

    @property
    def dedup_key(self) -> str:
        return f"{self.home_team}-{self.away_team}-{self.kickoff or ''}".lower()

    @property
    def label(self) -> str:
        return f"{self.home_team} v {self.away_team}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MatchOddsDetail:
    match_id: str
    competition_id: Optional[str] = None
    btts_yes: Optional[float] = None
    btts_no: Optional[float] = None
    over25: Optional[float] = None
    under25: Optional[float] = None
    markets: List[str] = field(default_factory=list)

    @property
    def has_odds(self) -> bool:
        return any(v is not None for v in (self.btts_yes, self.btts_no, self.over25, self.under25))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExtractionResult:
    """What the UI gets: the records plus whether they came from an expired cache entry."""

    matches: List[MatchRecord] = field(default_factory=list)
    stale: bool = False
    fetched_at: Optional[float] = None
    error: Optional[str] = None

    def __len__(self) -> int:
        return len(self.matches)
