from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from detrlmi.cache.fetcher import Downloader


async def read_excel_url(url: str, *, downloader: Optional[Downloader] = None, **kwargs: Any) -> pd.DataFrame:
    """Download a workbook to a temporary file and read it with `pandas.read_excel`."""
    downloader = downloader or Downloader()
    suffix = Path(url.split("?", 1)[0]).suffix or ".xlsx"
    with tempfile.TemporaryDirectory() as tmp:
        path = await downloader.download_to(url, Path(tmp) / f"workbook{suffix}")
        return pd.read_excel(path, **kwargs)
