from __future__ import annotations

from detrlmi.analysis.recessions import build_recession_table, make_recession_table

__all__ = ["build_recession_table", "make_recession_table"]
