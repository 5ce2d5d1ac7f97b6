"""Readers for FRED, ALFRED, BLS QCEW, Excel-over-HTTP and ODBC sources."""

from __future__ import annotations

from detrlmi.sources.alfred import alfred_revision_analysis, summarize_revisions
from detrlmi.sources.excel import read_excel_url
from detrlmi.sources.fred import FredClient, expand_vintages, get_fred
from detrlmi.sources.odbc import run_query
from detrlmi.sources.qcew import QcewResult, get_latest_qcew_data

__all__ = [
    "FredClient",
    "QcewResult",
    "alfred_revision_analysis",
    "expand_vintages",
    "get_fred",
    "get_latest_qcew_data",
    "read_excel_url",
    "run_query",
    "summarize_revisions",
]
