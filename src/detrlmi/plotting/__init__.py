"""Matplotlib helpers. Imported lazily so the data helpers work without a plotting backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from detrlmi.plotting.recessions import add_recession_shading, get_min_year

__all__ = ["add_recession_shading", "get_min_year"]


def __getattr__(name: str):
    if name == "add_recession_shading":
        from detrlmi.plotting.recessions import add_recession_shading as _add_recession_shading

        return _add_recession_shading
    if name == "get_min_year":
        from detrlmi.plotting.recessions import get_min_year as _get_min_year

        return _get_min_year
    raise AttributeError(name)
