from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from detrlmi.config.models import OdbcSettings

logger = logging.getLogger(__name__)


def _connect(dsn: str):
    try:
        import pyodbc  # type: ignore[import-not-found]
    except ModuleNotFoundError as e:  # pragma: no cover
        raise ModuleNotFoundError(
            "Missing dependency: pyodbc is required to run ODBC queries. Install 'detrlmi[odbc]'."
        ) from e

    return pyodbc.connect(f"DSN={dsn}")


def run_query(query: str, dsn: Optional[str] = None, *, settings: Optional[OdbcSettings] = None) -> pd.DataFrame:
    """
    Run `query` against a named ODBC data source and return the rows as text columns.

    The connection is opened and closed around the single query.
    """
    dsn = dsn or (settings or OdbcSettings()).dsn
    conn = _connect(dsn)
    try:
        cursor = conn.cursor()
        cursor.execute(query)
        if cursor.description is None:
            return pd.DataFrame()
        columns = [column[0] for column in cursor.description]
        rows = [tuple(row) for row in cursor.fetchall()]
    finally:
        conn.close()

    logger.debug("ODBC query complete. dsn=%s rows=%d", dsn, len(rows))
    df = pd.DataFrame.from_records(rows, columns=columns)
    return df.astype("string")
