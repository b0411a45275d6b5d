# core/settings.py
from __future__ import annotations
import json
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional
from pathlib import Path
from .config import ENVCFG

SETTINGS_FILE: Path = ENVCFG.SETTINGS_FILE

# Defaults (env wins over these, a settings file wins over env)
DEFAULTS: Dict[str, Any] = {
    "base_url": ENVCFG.BASE_URL,
    "user_agent": ENVCFG.USER_AGENT,
    "request_timeout": ENVCFG.REQUEST_TIMEOUT,
    "max_retries": ENVCFG.MAX_RETRIES,
    "page_no": ENVCFG.PAGE_NO,
    "board_rate_limit_ms": ENVCFG.BOARD_RATE_LIMIT_MS,
    "detail_rate_limit_ms": ENVCFG.DETAIL_RATE_LIMIT_MS,
    "board_cache_ttl": ENVCFG.BOARD_CACHE_TTL,
    "detail_cache_ttl": ENVCFG.DETAIL_CACHE_TTL,
    "allow_synthetic_odds": ENVCFG.ALLOW_SYNTHETIC_ODDS,
    "require_1x2_odds": ENVCFG.REQUIRE_1X2_ODDS,
    "poll_interval": 300,           # front end reloads the board every 5 min
}

# ----------------------
# Normalization helpers
# ----------------------
def _as_bool(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(v)

def _positive(v: Any, cast, floor) -> Any:
    try:
        val = cast(v)
    except (TypeError, ValueError):
        return floor
    return val if val >= floor else floor

# -------------
# Settings type
# -------------
@dataclass
class Settings:
    base_url: str
    user_agent: str
    request_timeout: float
    max_retries: int
    page_no: int
    board_rate_limit_ms: int
    detail_rate_limit_ms: int
    board_cache_ttl: int
    detail_cache_ttl: int
    allow_synthetic_odds: bool
    require_1x2_odds: bool
    poll_interval: int

    @property
    def board_rate_limit(self) -> float:
        return self.board_rate_limit_ms / 1000.0

    @property
    def detail_rate_limit(self) -> float:
        return self.detail_rate_limit_ms / 1000.0

    @staticmethod
    def validate(d: Optional[Dict[str, Any]] = None) -> "Settings":
        merged = {**DEFAULTS, **(d or {})}
        return Settings(
            base_url=str(merged["base_url"]).rstrip("/"),
            user_agent=str(merged["user_agent"]),
            request_timeout=_positive(merged["request_timeout"], float, 1.0),
            max_retries=_positive(merged["max_retries"], int, 1),
            page_no=_positive(merged["page_no"], int, 1),
            board_rate_limit_ms=_positive(merged["board_rate_limit_ms"], int, 0),
            detail_rate_limit_ms=_positive(merged["detail_rate_limit_ms"], int, 0),
            board_cache_ttl=_positive(merged["board_cache_ttl"], int, 0),
            detail_cache_ttl=_positive(merged["detail_cache_ttl"], int, 0),
            allow_synthetic_odds=_as_bool(merged["allow_synthetic_odds"]),
            require_1x2_odds=_as_bool(merged["require_1x2_odds"]),
            poll_interval=_positive(merged["poll_interval"], int, 10),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

# -----------------
# Load API
# -----------------
def load_settings(path: Optional[Path] = None, **overrides: Any) -> Settings:
    """Defaults <- settings file (if present) <- keyword overrides."""
    path = Path(path) if path else SETTINGS_FILE
    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8")) or {}
        except (OSError, json.JSONDecodeError):
            # corrupted file, fall back to defaults
            raw = {}
        if not isinstance(raw, dict):
            raw = {}
    raw.update({k: v for k, v in overrides.items() if v is not None})
    return Settings.validate(raw)
