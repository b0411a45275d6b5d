"""
Lightweight, lazy exports for the oddsboard package.
Importing the package does not pull in httpx or bs4 until a name is used.
"""

from __future__ import annotations
import importlib

__version__ = "0.1.0"

__all__ = ["ExtractionService", "TotelepepFetcher", "FieldParser", "MatchRecord", "load_settings"]

_EXPORTS = {
    "ExtractionService": ".scrapers.orchestrator",
    "TotelepepFetcher": ".scrapers.totelepep_fetcher",
    "FieldParser": ".scrapers.field_parser",
    "MatchRecord": ".core.models",
    "load_settings": ".core.settings",
}


def __getattr__(name: str):
    if name in _EXPORTS:
        return getattr(importlib.import_module(_EXPORTS[name], __name__), name)
    raise AttributeError(name)
