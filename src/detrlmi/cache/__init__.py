"""Conditional download cache: path resolution, freshness checks and transfers."""

from __future__ import annotations

from detrlmi.cache.fetcher import Downloader, download_if_new
from detrlmi.cache.freshness import check_freshness, probe_remote
from detrlmi.cache.models import CacheEntry, CachePaths, CheckStrategy, RemoteProbe
from detrlmi.cache.paths import get_cache_dir, prepare_local_path, resolve_cache_paths

__all__ = [
    "CacheEntry",
    "CachePaths",
    "CheckStrategy",
    "Downloader",
    "RemoteProbe",
    "check_freshness",
    "download_if_new",
    "get_cache_dir",
    "prepare_local_path",
    "probe_remote",
    "resolve_cache_paths",
]
