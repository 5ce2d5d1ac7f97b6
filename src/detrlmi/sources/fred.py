from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import aiohttp
import pandas as pd

from detrlmi.config.models import FredSettings

logger = logging.getLogger(__name__)

API_KEY_HELP_URL = "https://fred.stlouisfed.org/docs/api/api_key.html"

# ALFRED returns every vintage when the real-time window spans all of history.
ALFRED_REALTIME_START = "1776-07-04"
ALFRED_REALTIME_END = "9999-12-31"

OBSERVATION_COLUMNS = ["realtime_start", "realtime_end", "date", "value"]
VINTAGE_COLUMNS = ["realtime_start", "date", "value"]


def _observations_frame(observations: list[dict[str, Any]]) -> pd.DataFrame:
    if not observations:
        return pd.DataFrame(columns=OBSERVATION_COLUMNS)
    df = pd.DataFrame(observations)
    for column in ("realtime_start", "realtime_end", "date"):
        if column in df.columns:
            # 9999-12-31 is out of range for datetime64[ns]; it becomes NaT.
            df[column] = pd.to_datetime(df[column], errors="coerce")
    if "value" in df.columns:
        # FRED marks missing observations with ".".
        df["value"] = pd.to_numeric(df["value"], errors="coerce")
    return df


class FredClient:
    """Read series observations from the FRED (and ALFRED) API."""

    def __init__(self, settings: Optional[FredSettings] = None, *, api_key: Optional[str] = None) -> None:
        self._settings = settings or FredSettings()
        self._api_key = (api_key or self._settings.api_key).strip()

    def _require_api_key(self) -> str:
        if not self._api_key:
            raise ValueError(
                "FRED API key not provided. Set `fred.api_key` in the config or the FRED_API_KEY "
                f"environment variable. An API key can be obtained from {API_KEY_HELP_URL}"
            )
        return self._api_key

    async def _get_json(self, session: aiohttp.ClientSession, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._settings.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        async with session.get(url, params=params) as resp:
            if resp.content_type != "application/json":
                text = await resp.text()
                raise RuntimeError(
                    f"FRED API did not return JSON. Check your API key and series_id. status={resp.status} body={text[:200]}"
                )
            data = await resp.json()

        if not isinstance(data, dict):
            raise RuntimeError(f"Unexpected FRED API payload type: {type(data).__name__}")
        if data.get("error_code") is not None:
            raise RuntimeError(f"FRED API error: {data.get('error_message', '')}")
        return data

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._settings.timeout_seconds))

    def _params(self, series_id: str, realtime_start: Optional[str], realtime_end: Optional[str]) -> dict[str, Any]:
        params: dict[str, Any] = {
            "series_id": series_id,
            "api_key": self._require_api_key(),
            "file_type": "json",
        }
        if realtime_start:
            params["realtime_start"] = realtime_start
        if realtime_end:
            params["realtime_end"] = realtime_end
        return params

    async def _get_paged(
        self,
        session: aiohttp.ClientSession,
        endpoint: str,
        params: dict[str, Any],
        key: str,
    ) -> list[Any]:
        items: list[Any] = []
        while True:
            page_params = dict(params)
            if items:
                page_params["offset"] = len(items)
            data = await self._get_json(session, endpoint, page_params)
            page = list(data.get(key) or [])
            items.extend(page)
            count = int(data.get("count", len(items)))
            if not page or len(items) >= count:
                return items

    async def get_observations(
        self,
        series_id: str,
        *,
        realtime_start: Optional[str] = None,
        realtime_end: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Return raw observation records, following FRED's offset paging."""
        params = self._params(series_id, realtime_start, realtime_end)
        async with self._session() as session:
            observations = await self._get_paged(session, "series/observations", params, "observations")
        logger.debug("FRED observations fetched. series_id=%s rows=%d", series_id, len(observations))
        return observations

    async def get_series(self, series_id: str) -> pd.DataFrame:
        """Current observations for `series_id`, with parsed dates and numeric values."""
        return _observations_frame(await self.get_observations(series_id))

    async def get_vintages(self, series_id: str) -> pd.DataFrame:
        """Every published vintage of `series_id` from ALFRED, one row per (date, realtime_start)."""
        params = self._params(series_id, ALFRED_REALTIME_START, ALFRED_REALTIME_END)
        async with self._session() as session:
            observations = await self._get_paged(session, "series/observations", params, "observations")
            vintage_dates = await self._get_paged(session, "series/vintagedates", params, "vintage_dates")
        logger.debug(
            "ALFRED vintages fetched. series_id=%s ranges=%d vintages=%d",
            series_id,
            len(observations),
            len(vintage_dates),
        )
        return expand_vintages(_observations_frame(observations), vintage_dates)


def expand_vintages(ranges: pd.DataFrame, vintage_dates: Sequence[str]) -> pd.DataFrame:
    """
    Expand real-time ranges into one row per vintage date.

    ALFRED reports a value once for the span of vintages in which it held
    (`realtime_start`..`realtime_end`, open-ended when NaT). The result repeats the
    value for every vintage date inside that span and stamps it as `realtime_start`.
    """
    vintages = pd.DatetimeIndex(pd.to_datetime(pd.Series(list(vintage_dates), dtype="object"), errors="coerce"))
    vintages = vintages.dropna().unique().sort_values()
    if ranges.empty or vintages.empty:
        return pd.DataFrame(columns=VINTAGE_COLUMNS)

    ranges = ranges.reset_index(drop=True)
    starts = vintages.searchsorted(ranges["realtime_start"].to_numpy(), side="left")
    ends = ranges["realtime_end"].fillna(pd.Timestamp.max)
    stops = vintages.searchsorted(ends.to_numpy(), side="right")
    counts = (stops - starts).clip(min=0)

    positions = [p for lo, hi in zip(starts, stops) for p in range(lo, hi)]
    expanded = ranges.loc[ranges.index.repeat(counts), ["date", "value"]].reset_index(drop=True)
    expanded.insert(0, "realtime_start", vintages[positions])
    return expanded[VINTAGE_COLUMNS]


async def get_fred(series_id: str, api_key: Optional[str] = None, *, settings: Optional[FredSettings] = None) -> pd.DataFrame:
    return await FredClient(settings, api_key=api_key).get_series(series_id)
