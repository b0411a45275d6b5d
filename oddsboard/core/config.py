# core/config.py
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

# Load .env early
load_dotenv()

def _env(name: str, default: str = "") -> str:
    v = os.getenv(name, default)
    return v.strip() if isinstance(v, str) else v

def _bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None: return default
    return str(v).lower() in {"1","true","yes","y","on"}

def _int(name: str, default: int) -> int:
    v = os.getenv(name)
    try:
        return int(v) if v is not None else default
    except Exception:
        return default

def _float(name: str, default: float) -> float:
    v = os.getenv(name)
    try:
        return float(v) if v is not None else default
    except Exception:
        return default

@dataclass(frozen=True)
class EnvConfig:
    # App
    ENV: str = _env("ENV", "development")

    # Upstream
    BASE_URL: str = _env("ODDSBOARD_BASE_URL", "https://www.totelepep.mu/webapi")
    USER_AGENT: str = _env(
        "ODDSBOARD_USER_AGENT",
        "oddsboard/0.1 (+odds board poller; Mozilla/5.0 compatible)",
    )
    REQUEST_TIMEOUT: float = _float("ODDSBOARD_REQUEST_TIMEOUT", 12.0)
    MAX_RETRIES: int = _int("ODDSBOARD_MAX_RETRIES", 2)
    PAGE_NO: int = _int("ODDSBOARD_PAGE_NO", 1)

    # Rate limiting (milliseconds between upstream calls)
    BOARD_RATE_LIMIT_MS: int = _int("ODDSBOARD_BOARD_RATE_LIMIT_MS", 2000)
    DETAIL_RATE_LIMIT_MS: int = _int("ODDSBOARD_DETAIL_RATE_LIMIT_MS", 1500)

    # Cache TTLs (seconds)
    BOARD_CACHE_TTL: int = _int("ODDSBOARD_BOARD_CACHE_TTL", 5 * 60)
    DETAIL_CACHE_TTL: int = _int("ODDSBOARD_DETAIL_CACHE_TTL", 10 * 60)

    # Odds policy
    ALLOW_SYNTHETIC_ODDS: bool = _bool("ODDSBOARD_ALLOW_SYNTHETIC_ODDS", False)
    REQUIRE_1X2_ODDS: bool = _bool("ODDSBOARD_REQUIRE_1X2_ODDS", True)

    # Logging
    LOG_LEVEL: str = _env("ODDSBOARD_LOG_LEVEL", "INFO")

    # Optional settings file (used by core.settings)
    SETTINGS_FILE: Path = Path(_env("ODDSBOARD_SETTINGS_FILE", "data/settings.json"))

ENVCFG = EnvConfig()

# Optional: terse debug
def describe_env() -> str:
    return (
        f"[env={ENVCFG.ENV}] base='{ENVCFG.BASE_URL}' | timeout={ENVCFG.REQUEST_TIMEOUT}s | "
        f"synthetic_odds={'on' if ENVCFG.ALLOW_SYNTHETIC_ODDS else 'off'} | "
        f"Settings='{ENVCFG.SETTINGS_FILE}'"
    )
