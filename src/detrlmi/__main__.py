from __future__ import annotations

import argparse
import asyncio
import logging

import pandas as pd

from detrlmi.analysis.recessions import make_recession_table
from detrlmi.cache import Downloader, get_cache_dir
from detrlmi.config import YamlConfigLoader
from detrlmi.config.models import AppConfig, ConfigLoadRequest
from detrlmi.logging import init_logging
from detrlmi.sources.alfred import alfred_revision_analysis
from detrlmi.sources.fred import FredClient
from detrlmi.sources.qcew import get_latest_qcew_data

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="detrlmi", description="Labor-market data download helpers")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to config.yaml (default: config.yaml; missing file means defaults)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: fetch
    fetch_parser = subparsers.add_parser("fetch", help="Download a URL into the cache if it changed")
    fetch_parser.add_argument("url")
    fetch_parser.add_argument("--check", choices=["size", "modified"], default=None)
    fetch_parser.add_argument("--source", default=None, help="Cache subfolder for this source")
    fetch_parser.add_argument("--dest", default=None, help="Explicit destination path")

    # Command: cache-dir
    cache_dir_parser = subparsers.add_parser("cache-dir", help="Print (and create) the cache directory")
    cache_dir_parser.add_argument("--source", default=None)

    # Command: fred
    fred_parser = subparsers.add_parser("fred", help="Print FRED observations for a series")
    fred_parser.add_argument("series_id")

    # Command: alfred
    alfred_parser = subparsers.add_parser("alfred", help="Print ALFRED revision summary for a series")
    alfred_parser.add_argument("series_id")

    # Command: recessions
    subparsers.add_parser("recessions", help="Print the US recession peak/trough table")

    # Command: qcew
    qcew_parser = subparsers.add_parser("qcew", help="Download the latest QCEW industry file")
    qcew_parser.add_argument("--industry", default="10", help="Industry code (default: 10, total all ownerships)")

    return parser


async def _load_config(args: argparse.Namespace) -> AppConfig:
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(
        yaml_path=args.config,
    )
    return await loader.load(request)


def _print_frame(df: pd.DataFrame) -> None:
    print(df.to_string(index=False))


async def _main_async() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    config = await _load_config(args)
    init_logging(config.logging)

    if args.command == "fetch":
        downloader = Downloader(config.cache)
        path = await downloader.download_if_new(args.url, destination=args.dest, source=args.source, check=args.check)
        print(path)
    elif args.command == "cache-dir":
        print(get_cache_dir(args.source, root=config.cache.root_dir or None, app_name=config.cache.app_name))
    elif args.command == "fred":
        _print_frame(await FredClient(config.fred).get_series(args.series_id))
    elif args.command == "alfred":
        _print_frame(await alfred_revision_analysis(args.series_id, client=FredClient(config.fred)))
    elif args.command == "recessions":
        _print_frame(await make_recession_table(FredClient(config.fred)))
    elif args.command == "qcew":
        result = await get_latest_qcew_data(
            Downloader(config.cache),
            industry_code=args.industry,
            settings=config.bls,
        )
        logger.info("QCEW data loaded. year=%s quarter=%s rows=%d", result.year, result.quarter, len(result.data))
        print(f"{result.year} Q{result.quarter}: {len(result.data)} rows")


def main() -> None:
    try:
        asyncio.run(_main_async())
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


if __name__ == "__main__":
    main()
