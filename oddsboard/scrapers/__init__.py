# scrapers/__init__.py
"""Lazy exports for the scrapers package."""

from __future__ import annotations
import importlib

__all__ = ["AsyncBaseScraper", "TotelepepFetcher", "ExtractionService"]


def __getattr__(name: str):
    if name == "AsyncBaseScraper":
        return getattr(importlib.import_module(".async_base_scraper", __name__), "AsyncBaseScraper")
    if name == "TotelepepFetcher":
        return getattr(importlib.import_module(".totelepep_fetcher", __name__), "TotelepepFetcher")
    if name == "ExtractionService":
        return getattr(importlib.import_module(".orchestrator", __name__), "ExtractionService")
    raise AttributeError(name)
