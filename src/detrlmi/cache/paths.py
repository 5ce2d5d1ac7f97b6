from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlsplit

from platformdirs import user_cache_dir

from detrlmi.cache.models import META_SUFFIX, CachePaths

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "DETRLMI"


def _cache_root(root: Optional[str | Path], app_name: str) -> Path:
    if root is not None and str(root).strip():
        return Path(root)
    return Path(user_cache_dir(app_name))


def get_cache_dir(
    source: Optional[str] = None,
    *,
    root: Optional[str | Path] = None,
    app_name: str = DEFAULT_APP_NAME,
) -> Path:
    """
    Return the cache directory, creating it if needed.

    `root` overrides the per-user platform cache directory; `source` appends one subfolder.
    """
    cache_dir = _cache_root(root, app_name)
    if source:
        cache_dir = cache_dir / source
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def file_name_from_url(url: str) -> str:
    name = PurePosixPath(unquote(urlsplit(url).path)).name
    if not name:
        raise ValueError(f"URL has no file name to cache under: {url}")
    return name


def resolve_cache_paths(
    url: str,
    *,
    destination: Optional[str | Path] = None,
    cache_dir: Optional[str | Path] = None,
    source: Optional[str] = None,
    app_name: str = DEFAULT_APP_NAME,
) -> CachePaths:
    if destination is not None:
        local_path = Path(destination)
    else:
        root = _cache_root(cache_dir, app_name)
        if source:
            root = root / source
        local_path = root / file_name_from_url(url)
    return CachePaths(local_path=local_path, meta_path=local_path.with_name(local_path.name + META_SUFFIX))


def prepare_local_path(paths: CachePaths, *, repair_collisions: bool = True) -> None:
    """Make sure `paths.local_path` can be written as a regular file."""
    paths.local_path.parent.mkdir(parents=True, exist_ok=True)

    if not paths.local_path.is_dir():
        return
    if not repair_collisions:
        raise IsADirectoryError(f"A directory occupies the cache file path: {paths.local_path}")

    logger.warning("Removing directory that occupies the cache file path. path=%s", paths.local_path)
    shutil.rmtree(paths.local_path)
