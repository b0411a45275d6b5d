# utils/match_utils.py
from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import date as date_cls, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from dateutil import parser

from oddsboard.core.models import MAX_ODDS, MIN_ODDS, MatchRecord, MatchStatus


# ================================================================
# ODDS NORMALIZATION
# ================================================================
# Decimal odds as the sportsbook prints them: "2.10", "13.50". Integers never qualify.
ODDS_TOKEN_RE = re.compile(r"(?<![\d.])(\d{1,2}\.\d{2})(?![\d.])")


def normalize_odds(value: Any) -> Optional[float]:
    """Convert odds-like values into decimal float. No range check, no rescaling."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return None

    s = str(value).strip().replace(",", ".")
    if not s:
        return None
    # Fractional (e.g., "5/2")
    if "/" in s:
        try:
            num, den = s.split("/")
            return round(float(num) / float(den) + 1.0, 4)
        except (ValueError, ZeroDivisionError, OverflowError):
            return None
    try:
        return float(s)
    except ValueError:
        return None


def odds_in_range(value: Optional[float]) -> bool:
    return value is not None and MIN_ODDS <= value <= MAX_ODDS


def to_odds(value: Any) -> Optional[float]:
    """normalize_odds + range filter. "150" -> 150.0 -> out of range -> None."""
    val = normalize_odds(value)
    return round(val, 3) if odds_in_range(val) else None


def scan_odds_tokens(fields: Iterable[str]) -> List[float]:
    """All decimal-odds tokens across `fields`, in encounter order, range filtered."""
    found: List[float] = []
    for f in fields:
        if not f:
            continue
        for tok in ODDS_TOKEN_RE.findall(str(f)):
            val = float(tok)
            if odds_in_range(val):
                found.append(val)
    return found


# ================================================================
# KICKOFF / STATUS PARSING
# ================================================================
MONTHS: Dict[str, int] = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_DAY_MON_TIME_RE = re.compile(r"(?<!\d)(\d{1,2})\s+([A-Za-z]{3})[A-Za-z]*\.?\s+(\d{1,2}):(\d{2})(?![\d:])")
_TIME_RE = re.compile(r"(?<![\d:])(\d{1,2}):(\d{2})(?![\d:])")
_LIVE_WORD_RE = re.compile(r"^(?:live|in[\s-]?play|playing|ht|half[\s-]?time)\b\s*", re.I)
_MINUTE_RE = re.compile(r"^(\d{1,3})(?:\+\d{1,2})?['’]$")
_FINISHED_RE = re.compile(r"^(?:ft|finished|ended|full[\s-]?time)$", re.I)
_SCORE_RE = re.compile(r"^(\d{1,2})\s*-\s*(\d{1,2})$")


@dataclass(frozen=True)
class KickoffInfo:
    kickoff: Optional[str] = None     # HH:MM
    date: Optional[str] = None        # YYYY-MM-DD, only when the token carries a day
    status: Optional[str] = None
    minute: Optional[int] = None


def _hhmm(hour: str, minute: str) -> Optional[str]:
    h, m = int(hour), int(minute)
    if h > 23 or m > 59:
        return None
    return f"{h:02d}:{m:02d}"


def parse_live_token(token: str) -> Optional[KickoffInfo]:
    """'LIVE', 'In Play', 'HT', "67'", "LIVE 67'" -> live status (+ minute)."""
    s = (token or "").strip()
    if not s:
        return None
    m = _LIVE_WORD_RE.match(s)
    rest = s[m.end():] if m else s
    minute_match = _MINUTE_RE.match(rest.strip()) if rest.strip() else None
    if m and not rest.strip():
        return KickoffInfo(status=MatchStatus.LIVE)
    if minute_match:
        return KickoffInfo(status=MatchStatus.LIVE, minute=int(minute_match.group(1)))
    return None


def parse_kickoff(token: str, year: Optional[int] = None) -> Optional[KickoffInfo]:
    """
    Accepts:
      "20:30"           -> kickoff only
      "26 Aug 20:30"    -> kickoff + date (upstream never sends a year; current year assumed)
      live indicators   -> status live
      "FT" / "Ended"    -> status finished
    """
    s = (token or "").strip()
    if not s:
        return None

    m = _DAY_MON_TIME_RE.search(s)
    if m:
        month = MONTHS.get(m.group(2).lower())
        hhmm = _hhmm(m.group(3), m.group(4))
        if month and hhmm:
            yr = year or datetime.now().year
            try:
                day = date_cls(yr, month, int(m.group(1)))
            except ValueError:
                day = None
            if day:
                return KickoffInfo(kickoff=hhmm, date=day.isoformat())

    m = _TIME_RE.search(s)
    if m:
        hhmm = _hhmm(m.group(1), m.group(2))
        if hhmm:
            return KickoffInfo(kickoff=hhmm)

    live = parse_live_token(s)
    if live:
        return live

    if _FINISHED_RE.match(s):
        return KickoffInfo(status=MatchStatus.FINISHED)
    return None


def parse_status(value: Any) -> str:
    s = str(value or "").strip().lower()
    if not s:
        return MatchStatus.UPCOMING
    if "live" in s or "playing" in s or "in play" in s or "inplay" in s:
        return MatchStatus.LIVE
    if "finished" in s or "ended" in s or s == "ft":
        return MatchStatus.FINISHED
    return MatchStatus.UPCOMING


def parse_score(token: str):
    m = _SCORE_RE.match((token or "").strip())
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


# ================================================================
# DATETIME PARSER
# ================================================================
def _ts_to_dt(value: Any) -> Optional[datetime]:
    """Epoch sec/ms or ISO-ish string -> datetime."""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, (int, float)) or (isinstance(value, str) and value.isdigit()):
            val = float(value)
            if val > 1e12:  # epoch ms
                val /= 1000.0
            return datetime.fromtimestamp(val, tz=timezone.utc)
        return parser.parse(str(value))
    except (ValueError, OverflowError, OSError):
        return None


def parse_date(value: Any) -> Optional[str]:
    """Any date-ish value -> 'YYYY-MM-DD'."""
    dt = _ts_to_dt(value)
    return dt.date().isoformat() if dt else None


def format_time(value: Any) -> Optional[str]:
    """Any time-ish value -> 'HH:MM'."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        info = parse_kickoff(value)
        if info and info.kickoff:
            return info.kickoff
    dt = _ts_to_dt(value)
    return dt.strftime("%H:%M") if dt else None


def today_iso() -> str:
    return date_cls.today().isoformat()


# ================================================================
# BOARD HELPERS (presentation)
# ================================================================
def sort_by_date(records: Sequence[MatchRecord]) -> List[MatchRecord]:
    """Upcoming and live matches ordered by date, then kickoff. Finished ones are dropped."""
    active = [r for r in records if r.status in (MatchStatus.UPCOMING, MatchStatus.LIVE)]
    return sorted(active, key=lambda r: (r.date, r.kickoff or ""))


def group_by_date(records: Iterable[MatchRecord]) -> Dict[str, List[MatchRecord]]:
    grouped: Dict[str, List[MatchRecord]] = {}
    for r in records:
        grouped.setdefault(r.date, []).append(r)
    return grouped


def filter_matches(
    records: Iterable[MatchRecord],
    league: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[MatchRecord]:
    out: List[MatchRecord] = []
    league_l = league.lower() if league else None
    search_l = search.lower() if search else None
    for r in records:
        if league_l and league_l not in r.league.lower():
            continue
        if status and r.status != status:
            continue
        if search_l and search_l not in r.home_team.lower() and search_l not in r.away_team.lower():
            continue
        out.append(r)
    return out


# ================================================================
# UTILS
# ================================================================
def truncate_label(label: str, max_len: int = 50) -> str:
    return label if len(label) <= max_len else label[: max_len - 3] + "..."
