# core/markets.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

# The sportsbook labels BTTS with exactly this string, trailing space included.
BTTS_DISPLAY_NAME = "Both Team To Score "
# Totals markets for the tracked line carry this marker in their display name.
GOAL_LINE_MARKER = "+2.5"

# Routing target for one upstream market: which record fields it fills
@dataclass(frozen=True)
class MarketSpec:
    market_key: str          # canonical key: "1x2", "btts", "ou:2.5", or the raw label
    line: Optional[str]      # numeric line for totals, else None
    outcomes: List[str]      # canonical outcomes, in selection order

# Canonical outcome sets (selection order is authoritative, not the label text)
OUT_1X2  = ["1", "X", "2"]
OUT_BTTS = ["Yes", "No"]
OUT_OU   = ["Over", "Under"]

_1X2_LABELS = {
    "1x2", "full time result", "result", "ft result", "match odds",
    "match result", "3 way", "3-way", "1x2 full time",
}

def _mk_ou(line: str) -> MarketSpec:
    return MarketSpec(market_key=f"ou:{line}", line=line, outcomes=list(OUT_OU))

def classify_market(display_name: Optional[str]) -> MarketSpec:
    """
    Maps an upstream market display name to a MarketSpec.
    - BTTS only on the exact upstream label.
    - Totals only when the goal-line marker is present.
    - 1X2 on a handful of known labels (case/space-insensitive).
    """
    if display_name is None:
        return MarketSpec("unknown", None, [])

    if display_name == BTTS_DISPLAY_NAME:
        return MarketSpec("btts", None, list(OUT_BTTS))

    if GOAL_LINE_MARKER in display_name:
        return _mk_ou(GOAL_LINE_MARKER.lstrip("+"))

    s = " ".join(display_name.strip().lower().split())
    if s in _1X2_LABELS:
        return MarketSpec("1x2", None, list(OUT_1X2))

    # Fallback: passthrough label as key
    return MarketSpec(s, None, [])

def market_label_from_key(market_key: str, line: Optional[str]) -> str:
    """Human label for CLI output."""
    if market_key == "1x2": return "1X2"
    if market_key == "btts": return "Both Teams to Score"
    if market_key.startswith("ou:"): return f"Over/Under {line}"
    return market_key

