from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from detrlmi.config.models import CheckStrategy

META_SUFFIX = ".meta"

Freshness = Literal["up_to_date", "needs_download"]

__all__ = [
    "CacheEntry",
    "CachePaths",
    "CheckStrategy",
    "Freshness",
    "META_SUFFIX",
    "RemoteProbe",
]


@dataclass(frozen=True, slots=True)
class CachePaths:
    local_path: Path
    meta_path: Path


@dataclass(frozen=True, slots=True)
class RemoteProbe:
    """Headers returned by a HEAD request, or the reason it failed."""

    ok: bool
    content_length: Optional[int] = None
    last_modified: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> RemoteProbe:
        return cls(ok=False, error=error)


@dataclass(slots=True)
class CacheEntry:
    local_path: Path
    meta_path: Path
    size_bytes: Optional[int]
    last_modified: Optional[str]

    @classmethod
    def load(cls, paths: CachePaths) -> CacheEntry:
        """Read the entry's live state; size comes from the filesystem on every call."""
        size_bytes = paths.local_path.stat().st_size if paths.local_path.is_file() else None
        last_modified = paths.meta_path.read_text(encoding="utf-8") if paths.meta_path.is_file() else None
        return cls(
            local_path=paths.local_path,
            meta_path=paths.meta_path,
            size_bytes=size_bytes,
            last_modified=last_modified,
        )
