import unittest

import pandas as pd
from aiohttp import web
from aiohttp.test_utils import TestServer

from detrlmi.config.models import FredSettings
from detrlmi.sources.alfred import alfred_revision_analysis
from detrlmi.sources.fred import VINTAGE_COLUMNS, FredClient

OBSERVATIONS = [
    {"realtime_start": "2024-05-01", "realtime_end": "2024-05-01", "date": "2024-01-01", "value": "3.7"},
    {"realtime_start": "2024-05-01", "realtime_end": "2024-05-01", "date": "2024-02-01", "value": "3.9"},
    {"realtime_start": "2024-05-01", "realtime_end": "2024-05-01", "date": "2024-03-01", "value": "."},
]

# Real-time ranges as ALFRED reports them: one row per value, spanning the vintages it held in.
VINTAGES = [
    {"realtime_start": "2024-02-02", "realtime_end": "2024-03-07", "date": "2024-01-01", "value": "100"},
    {"realtime_start": "2024-03-08", "realtime_end": "9999-12-31", "date": "2024-01-01", "value": "110"},
    {"realtime_start": "2024-03-08", "realtime_end": "9999-12-31", "date": "2024-02-01", "value": "120"},
]

VINTAGE_DATES = ["2024-02-02", "2024-03-08", "2024-04-05", "2024-05-03"]


class FredApiStub:
    def __init__(self, page_size: int = 2) -> None:
        self.page_size = page_size
        self.requests: list[dict[str, str]] = []
        self.paths: list[str] = []
        self.mode = "ok"
        self.server: TestServer | None = None

    def _check(self, request: web.Request) -> tuple[dict[str, str], web.Response | None]:
        params = dict(request.query)
        self.requests.append(params)
        self.paths.append(request.path)
        if self.mode == "html":
            return params, web.Response(text="<html>maintenance</html>", content_type="text/html")
        if params.get("api_key") != "test-key":
            return params, web.json_response(
                {"error_code": 400, "error_message": "Bad Request.  The value for variable api_key is not registered."},
                status=400,
            )
        return params, None

    def _page(self, params: dict[str, str], rows: list, key: str) -> web.Response:
        offset = int(params.get("offset", 0))
        page = rows[offset : offset + self.page_size]
        return web.json_response({"count": len(rows), "offset": offset, "limit": self.page_size, key: page})

    async def _observations(self, request: web.Request) -> web.Response:
        params, failure = self._check(request)
        if failure is not None:
            return failure
        rows = VINTAGES if params.get("realtime_start") == "1776-07-04" else OBSERVATIONS
        return self._page(params, rows, "observations")

    async def _vintage_dates(self, request: web.Request) -> web.Response:
        params, failure = self._check(request)
        if failure is not None:
            return failure
        return self._page(params, VINTAGE_DATES, "vintage_dates")

    async def start(self) -> FredSettings:
        app = web.Application()
        app.router.add_get("/fred/series/observations", self._observations)
        app.router.add_get("/fred/series/vintagedates", self._vintage_dates)
        self.server = TestServer(app)
        await self.server.start_server()
        return FredSettings(api_key="test-key", base_url=str(self.server.make_url("/fred")))

    async def close(self) -> None:
        if self.server is not None:
            await self.server.close()


class FredClientTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.stub = FredApiStub()
        self.settings = await self.stub.start()

    async def asyncTearDown(self) -> None:
        await self.stub.close()

    async def test_get_series_pages_and_parses_values(self) -> None:
        df = await FredClient(self.settings).get_series("UNRATE")

        self.assertEqual(len(df), 3)
        self.assertEqual(len(self.stub.requests), 2)
        self.assertEqual(self.stub.requests[0]["series_id"], "UNRATE")
        self.assertEqual(self.stub.requests[0]["file_type"], "json")
        self.assertEqual(self.stub.requests[1]["offset"], "2")
        self.assertEqual(df["date"].iloc[0], pd.Timestamp("2024-01-01"))
        self.assertAlmostEqual(df["value"].iloc[1], 3.9)
        self.assertTrue(pd.isna(df["value"].iloc[2]))

    async def test_explicit_api_key_overrides_settings(self) -> None:
        settings = self.settings.model_copy(update={"api_key": ""})

        df = await FredClient(settings, api_key="test-key").get_series("UNRATE")

        self.assertEqual(len(df), 3)

    async def test_missing_api_key_raises_before_request(self) -> None:
        settings = self.settings.model_copy(update={"api_key": ""})

        with self.assertRaises(ValueError) as ctx:
            await FredClient(settings).get_series("UNRATE")

        self.assertIn("FRED_API_KEY", str(ctx.exception))
        self.assertEqual(self.stub.requests, [])

    async def test_api_error_is_raised(self) -> None:
        with self.assertRaises(RuntimeError) as ctx:
            await FredClient(self.settings, api_key="wrong-key").get_series("UNRATE")

        self.assertIn("FRED API error", str(ctx.exception))

    async def test_non_json_response_is_raised(self) -> None:
        self.stub.mode = "html"

        with self.assertRaises(RuntimeError) as ctx:
            await FredClient(self.settings).get_series("UNRATE")

        self.assertIn("did not return JSON", str(ctx.exception))

    async def test_get_vintages_has_one_row_per_vintage_date(self) -> None:
        vintages = await FredClient(self.settings).get_vintages("NVNA")

        self.assertEqual(list(vintages.columns), VINTAGE_COLUMNS)
        self.assertIn("/fred/series/vintagedates", self.stub.paths)
        january = vintages[vintages["date"] == pd.Timestamp("2024-01-01")]
        self.assertEqual(list(january["realtime_start"]), list(pd.to_datetime(VINTAGE_DATES)))
        self.assertEqual(list(january["value"]), [100, 110, 110, 110])
        february = vintages[vintages["date"] == pd.Timestamp("2024-02-01")]
        self.assertEqual(list(february["realtime_start"]), list(pd.to_datetime(VINTAGE_DATES[1:])))

    async def test_alfred_revision_analysis_counts_vintages_not_changes(self) -> None:
        summary = await alfred_revision_analysis("NVNA", client=FredClient(self.settings))

        self.assertEqual(self.stub.requests[0]["realtime_start"], "1776-07-04")
        self.assertEqual(self.stub.requests[0]["realtime_end"], "9999-12-31")
        first = summary.iloc[0]
        self.assertEqual(first["initial"], 100)
        self.assertEqual(first["final"], 110)
        self.assertEqual(first["change"], 10)
        self.assertAlmostEqual(first["pct_change"], 0.1)
        self.assertEqual(first["items"], 4)
        self.assertEqual(first["versions"], 2)
        self.assertGreater(first["items"], first["versions"])
        second = summary.iloc[1]
        self.assertEqual(second["items"], 3)
        self.assertEqual(second["versions"], 1)


if __name__ == "__main__":
    unittest.main()
