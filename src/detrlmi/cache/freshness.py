from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

import aiohttp

from detrlmi.cache.models import CacheEntry, CachePaths, CheckStrategy, Freshness, RemoteProbe

logger = logging.getLogger(__name__)


def _parse_content_length(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


async def probe_remote(
    session: aiohttp.ClientSession,
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
) -> RemoteProbe:
    """
    Issue a HEAD request and collect Content-Length and Last-Modified.

    The probe is advisory: every failure is returned as a failed probe instead of raised.
    """
    try:
        async with session.head(url, headers=dict(headers or {}), allow_redirects=True) as response:
            status = response.status
            content_length = response.headers.get("Content-Length")
            last_modified = response.headers.get("Last-Modified")
    except asyncio.TimeoutError:
        logger.info("HEAD request timed out, downloading by default. url=%s", url)
        return RemoteProbe.failed("timeout")
    except (aiohttp.ClientError, ValueError) as e:
        logger.info("HEAD request failed, downloading by default. url=%s error=%s", url, e)
        return RemoteProbe.failed(str(e) or type(e).__name__)

    if not 200 <= status < 300:
        logger.info("HEAD request returned unusable status, downloading by default. url=%s status=%s", url, status)
        return RemoteProbe.failed(f"HTTP {status}")

    return RemoteProbe(
        ok=True,
        content_length=_parse_content_length(content_length),
        last_modified=last_modified,
    )


def check_freshness(paths: CachePaths, probe: RemoteProbe, check: CheckStrategy) -> Freshness:
    if check not in ("size", "modified"):
        raise ValueError(f"Unknown freshness check: {check!r}. Expected 'size' or 'modified'.")
    if not probe.ok:
        return "needs_download"

    entry = CacheEntry.load(paths)
    name = paths.local_path.name

    if check == "size":
        if (
            entry.size_bytes is not None
            and probe.content_length is not None
            and entry.size_bytes == probe.content_length
        ):
            logger.info("Cached file is up to date (by size). file=%s size=%d", name, entry.size_bytes)
            return "up_to_date"
        return "needs_download"

    # A token without its content file is stale.
    if (
        entry.size_bytes is not None
        and entry.last_modified is not None
        and probe.last_modified is not None
        and entry.last_modified == probe.last_modified
    ):
        logger.info("Cached file is up to date (by Last-Modified). file=%s last_modified=%s", name, entry.last_modified)
        return "up_to_date"
    return "needs_download"
