"""Helpers for labor-market research data: cached downloads, FRED/ALFRED, BLS QCEW and recessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from detrlmi.cache import Downloader, download_if_new, get_cache_dir

if TYPE_CHECKING:
    from detrlmi.analysis.recessions import make_recession_table
    from detrlmi.sources.fred import FredClient

__version__ = "0.1.0"

__all__ = [
    "Downloader",
    "FredClient",
    "download_if_new",
    "get_cache_dir",
    "make_recession_table",
]


def __getattr__(name: str):
    if name == "FredClient":
        from detrlmi.sources.fred import FredClient as _FredClient

        return _FredClient
    if name == "make_recession_table":
        from detrlmi.analysis.recessions import make_recession_table as _make_recession_table

        return _make_recession_table
    raise AttributeError(name)
