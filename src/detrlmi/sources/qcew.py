from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterator, Optional, Sequence

import aiohttp
import pandas as pd

from detrlmi.cache.fetcher import Downloader
from detrlmi.config.models import BlsSettings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QcewResult:
    data: pd.DataFrame
    year: int
    quarter: int


def candidate_quarters(today: date, quarters_to_check: Sequence[int]) -> Iterator[tuple[int, int]]:
    """Yield (year, quarter) pairs `offset` quarters before the quarter containing `today`."""
    current_quarter = (today.month - 1) // 3 + 1
    for offset in quarters_to_check:
        index = today.year * 4 + (current_quarter - 1) - offset
        yield index // 4, index % 4 + 1


def qcew_industry_url(base_url: str, year: int, quarter: int, industry_code: str) -> str:
    return f"{base_url.rstrip('/')}/{year}/{quarter}/industry/{industry_code}.csv"


async def get_latest_qcew_data(
    downloader: Downloader,
    *,
    industry_code: str = "10",
    quarters_to_check: Sequence[int] = (2, 3),
    settings: Optional[BlsSettings] = None,
    today: Optional[date] = None,
) -> QcewResult:
    """
    Return the most recent QCEW industry file BLS has published.

    BLS data lags, so each candidate quarter is tried in order and the first one that
    downloads is read. Files are cached per quarter under the `qcew_<year>_q<quarter>` subfolder.
    """
    settings = settings or BlsSettings()
    today = today or date.today()

    for year, quarter in candidate_quarters(today, quarters_to_check):
        url = qcew_industry_url(settings.qcew_base_url, year, quarter, industry_code)
        try:
            local_file = await downloader.download_if_new(
                url,
                source=f"qcew_{year}_q{quarter}",
                headers=settings.headers,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning("QCEW file is not available. year=%s quarter=%s url=%s error=%s", year, quarter, url, e)
            continue

        if local_file.is_file():
            logger.info("Returning QCEW data. year=%s quarter=%s industry=%s", year, quarter, industry_code)
            return QcewResult(data=pd.read_csv(local_file, low_memory=False), year=year, quarter=quarter)

    raise FileNotFoundError("No recent QCEW data found. BLS may not have released recent quarters yet.")
