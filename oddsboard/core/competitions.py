# core/competitions.py
from __future__ import annotations
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from .models import DEFAULT_LEAGUE

# Known upstream competition ids. Read-only for the life of the process.
COMPETITION_MAP: Mapping[str, str] = MappingProxyType({
    "38": "Lithuania - A Lyga",
    "50": "International Clubs - UEFA Champions League",
    "52": "Japan - Emperor Cup",
    "55": "International Clubs - UEFA Conference League",
    "81": "Austria - OFB Cup",
    "112": "Czechia - Czech Cup",
    "126": "England - EFL Cup",
    "135": "International Clubs - UEFA Europa League",
    "163": "Spain - LaLiga",
})

# Reverse lookup, used to find the detail endpoint's competition id from a league label
LEAGUE_TO_COMPETITION: Mapping[str, str] = MappingProxyType({v: k for k, v in COMPETITION_MAP.items()})


def _norm_id(competition_id) -> Optional[str]:
    if competition_id is None:
        return None
    s = str(competition_id).strip()
    return s or None


def parse_competition_data(raw: Optional[str]) -> Dict[str, str]:
    """
    Parse the board payload's `competitionData` string: records split on '|',
    fields on ';', id first and name second. Non-numeric ids are skipped.
    """
    out: Dict[str, str] = {}
    if not raw or not isinstance(raw, str):
        return out
    for entry in raw.split("|"):
        fields = entry.split(";")
        if len(fields) < 2:
            continue
        cid, name = fields[0].strip(), fields[1].strip()
        if cid.isdigit() and name:
            out.setdefault(cid, name)
    return out


def resolve_league(
    competition_id=None,
    league: Optional[str] = None,
    batch_names: Optional[Mapping[str, str]] = None,
    competitions: Mapping[str, str] = COMPETITION_MAP,
) -> str:
    """
    League label for a record:
    1. a league already parsed from the payload
    2. names shipped with the same payload (competitionData)
    3. the static table
    4. "Competition {id}", or the generic placeholder when there is no id
    """
    if league and league.strip():
        return league.strip()
    cid = _norm_id(competition_id)
    if cid is None:
        return DEFAULT_LEAGUE
    if batch_names and cid in batch_names:
        return batch_names[cid]
    if cid in competitions:
        return competitions[cid]
    return f"Competition {cid}"


def competition_for_league(league: Optional[str]) -> Optional[str]:
    if not league:
        return None
    return LEAGUE_TO_COMPETITION.get(league.strip())
