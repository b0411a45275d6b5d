# utils/team_utils.py
import re
import logging
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger("oddsboard.teams")  # no handler here; use app-wide config

# ================================================================
# CONFIG
# ================================================================
# Checked in this order; the first separator that splits a field into exactly two names wins
TEAM_SEPARATORS: List[str] = [" vs ", " v ", " - ", " x ", " VS ", " V ", " X ", " Vs ", " against "]

# Words that make a short token look like a club name
TEAM_INDICATORS: List[str] = [
    "FC", "United", "City", "Town", "Rovers", "Wanderers", "Athletic",
    "SC", "CF", "AC", "Real", "Inter", "Sporting", "Dynamo",
]

# Cells that name a competition rather than a club
LEAGUE_INDICATORS: List[str] = [
    "Premier League", "Championship", "League", "Liga", "Serie", "Bundesliga",
    "Ligue", "Eredivisie", "Cup", "Champions", "Europa", "Division", "Lyga",
]

# Selection labels that sit next to team names in flat rows
_NOT_TEAMS = {"draw", "x", "yes", "no", "over", "under", "home", "away", "live", "odds"}

_NAME_CHARS_RE = re.compile(r"^[A-Za-zÀ-ÿ0-9\s\-'.&()/]+$")


# ================================================================
# HELPERS
# ================================================================
@lru_cache(maxsize=1024)
def clean_team_name(name: str) -> str:
    """Collapse whitespace and strip stray punctuation around a team name."""
    if not name:
        return ""
    s = " ".join(str(name).split())
    return s.strip(" -:;|,")


def looks_like_league(text: str) -> bool:
    s = (text or "").lower()
    return any(ind.lower() in s for ind in LEAGUE_INDICATORS)


def looks_like_team_name(text: str) -> bool:
    s = (text or "").strip()
    if not (2 < len(s) < 50) or s.lower() in _NOT_TEAMS:
        return False
    if looks_like_league(s) or re.search(r"\d['’]", s):
        return False
    if any(ind in s.split() for ind in TEAM_INDICATORS):
        return True
    # plain words only; digits alone (ids, odds, minutes) never qualify
    return bool(_NAME_CHARS_RE.match(s)) and any(ch.isalpha() for ch in s)


def split_teams(text: str) -> Optional[Tuple[str, str]]:
    """'TeamA v TeamB' -> ('TeamA', 'TeamB'). Needs exactly two non-empty parts."""
    if not text:
        return None
    for sep in TEAM_SEPARATORS:
        if sep not in text:
            continue
        parts = text.split(sep)
        if len(parts) != 2:
            continue
        home, away = clean_team_name(parts[0]), clean_team_name(parts[1])
        # "2 - 1" is a score, not a fixture
        if not any(ch.isalpha() for ch in home) or not any(ch.isalpha() for ch in away):
            continue
        return home, away
    return None


def find_team_pair(fields: Iterable[str], allow_adjacent: bool = True) -> Optional[Tuple[str, str]]:
    """
    First team pair in field order:
    1. a single field holding both names around a separator
    2. two adjacent fields that both look like team names
    """
    fields = [f for f in fields if f]
    for f in fields:
        pair = split_teams(f)
        if pair:
            return pair
    if not allow_adjacent:
        return None
    for a, b in zip(fields, fields[1:]):
        if looks_like_team_name(a) and looks_like_team_name(b) and a.strip().lower() != b.strip().lower():
            logger.debug("Team pair from adjacent fields: %s / %s", a, b)
            return clean_team_name(a), clean_team_name(b)
    return None
