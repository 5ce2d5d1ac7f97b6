from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Mapping, Optional

import aiohttp

from detrlmi.cache.freshness import check_freshness, probe_remote
from detrlmi.cache.models import CachePaths, CheckStrategy
from detrlmi.cache.paths import prepare_local_path, resolve_cache_paths
from detrlmi.config.models import CacheSettings

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024

# Sizes are compared against Content-Length, which counts the bytes on the wire.
_DEFAULT_HEADERS = {"Accept-Encoding": "identity"}


def atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


class Downloader:
    """
    Download remote files into a local cache, skipping the transfer when the cached copy is current.

    Freshness is decided from a HEAD request: by Content-Length against the file size (`size`),
    or by Last-Modified against the token saved next to the file (`modified`).
    """

    def __init__(self, settings: Optional[CacheSettings] = None, *, headers: Optional[Mapping[str, str]] = None) -> None:
        self._settings = settings or CacheSettings()
        self._headers = dict(headers or {})

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self._settings.request_timeout_seconds),
            auto_decompress=False,
        )

    def _merge_headers(self, headers: Optional[Mapping[str, str]]) -> dict[str, str]:
        merged = dict(_DEFAULT_HEADERS)
        merged.update(self._headers)
        if headers:
            merged.update(headers)
        return merged

    def resolve(
        self,
        url: str,
        *,
        destination: Optional[str | Path] = None,
        cache_dir: Optional[str | Path] = None,
        source: Optional[str] = None,
    ) -> CachePaths:
        return resolve_cache_paths(
            url,
            destination=destination,
            cache_dir=cache_dir if cache_dir is not None else (self._settings.root_dir or None),
            source=source,
            app_name=self._settings.app_name,
        )

    async def download_if_new(
        self,
        url: str,
        *,
        destination: Optional[str | Path] = None,
        cache_dir: Optional[str | Path] = None,
        source: Optional[str] = None,
        check: Optional[CheckStrategy] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Path:
        """
        Return the local path for `url`, downloading it first if the cached copy is missing or stale.

        A failed HEAD request never fails the call; it just forces the download. A failed
        download propagates and leaves the `.meta` token untouched.
        """
        strategy: CheckStrategy = check or self._settings.check
        if strategy not in ("size", "modified"):
            raise ValueError(f"Unknown freshness check: {strategy!r}. Expected 'size' or 'modified'.")

        paths = self.resolve(url, destination=destination, cache_dir=cache_dir, source=source)
        prepare_local_path(paths, repair_collisions=self._settings.repair_path_collisions)
        request_headers = self._merge_headers(headers)

        async with self._session() as session:
            probe = await probe_remote(session, url, headers=request_headers)
            if check_freshness(paths, probe, strategy) == "up_to_date":
                return paths.local_path

            logger.info("Downloading new file. url=%s path=%s", url, paths.local_path)
            await self._transfer(session, url, paths.local_path, headers=request_headers)

        if strategy == "modified" and probe.last_modified is not None:
            atomic_write_text(paths.meta_path, probe.last_modified)
            logger.debug("Saved Last-Modified token. path=%s token=%s", paths.meta_path, probe.last_modified)
        return paths.local_path

    async def download_to(self, url: str, path: str | Path, *, headers: Optional[Mapping[str, str]] = None) -> Path:
        """Unconditionally download `url` to `path`."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        async with self._session() as session:
            await self._transfer(session, url, target, headers=self._merge_headers(headers))
        return target

    async def _transfer(
        self,
        session: aiohttp.ClientSession,
        url: str,
        path: Path,
        *,
        headers: Mapping[str, str],
    ) -> None:
        tmp_path = path.with_name(path.name + ".tmp")
        replaced = False
        try:
            async with session.get(url, headers=dict(headers)) as response:
                response.raise_for_status()
                with tmp_path.open("wb") as fh:
                    async for chunk in response.content.iter_chunked(_CHUNK_SIZE):
                        fh.write(chunk)
            tmp_path.replace(path)
            replaced = True
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning("Download failed. url=%s error=%s", url, e)
            raise
        finally:
            # Also reached on cancellation and KeyboardInterrupt.
            if not replaced:
                tmp_path.unlink(missing_ok=True)
        logger.debug("Download complete. url=%s path=%s size=%d", url, path, path.stat().st_size)


def download_if_new(
    url: str,
    *,
    destination: Optional[str | Path] = None,
    cache_dir: Optional[str | Path] = None,
    source: Optional[str] = None,
    check: Optional[CheckStrategy] = None,
    headers: Optional[Mapping[str, str]] = None,
    settings: Optional[CacheSettings] = None,
) -> Path:
    """
    Blocking wrapper around `Downloader.download_if_new` for callers outside an event loop.

    Without `check`, the strategy comes from `settings.check` (`size` by default).
    """
    downloader = Downloader(settings)
    return asyncio.run(
        downloader.download_if_new(
            url,
            destination=destination,
            cache_dir=cache_dir,
            source=source,
            check=check,
            headers=headers,
        )
    )
