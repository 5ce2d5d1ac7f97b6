import unittest
from datetime import date

import pandas as pd

from detrlmi.analysis.recessions import RECESSION_COLUMNS, build_recession_table


def _usrec(start: str, values: list[int]) -> pd.DataFrame:
    return pd.DataFrame({"date": pd.date_range(start, periods=len(values), freq="MS"), "value": values})


class BuildRecessionTableTests(unittest.TestCase):
    def test_completed_recession_has_peak_and_trough(self) -> None:
        # 2019-01..2020-02 expansion, 2020-03..2020-04 recession, then expansion to 2020-12.
        usrec = _usrec("2019-01-01", [0] * 14 + [1, 1] + [0] * 8)

        table = build_recession_table(usrec, today=date(2021, 6, 15))

        self.assertEqual(list(table.columns), RECESSION_COLUMNS)
        self.assertEqual(len(table), 1)
        self.assertEqual(table.loc[0, "peak"], pd.Timestamp("2020-02-01"))
        self.assertEqual(table.loc[0, "trough"], pd.Timestamp("2020-04-01"))
        self.assertEqual(table.loc[0, "periodyear"], 2020)

    def test_ongoing_recession_closes_at_month_before_today(self) -> None:
        usrec = _usrec("2024-01-01", [0, 0, 0, 1, 1, 1])

        table = build_recession_table(usrec, today=date(2024, 8, 10))

        self.assertEqual(len(table), 1)
        self.assertEqual(table.loc[0, "peak"], pd.Timestamp("2024-03-01"))
        self.assertEqual(table.loc[0, "trough"], pd.Timestamp("2024-07-01"))

    def test_multiple_recessions_in_order(self) -> None:
        usrec = _usrec("2000-01-01", [0, 1, 1, 0, 0, 1, 0, 0])

        table = build_recession_table(usrec, today=date(2001, 1, 1))

        self.assertEqual(list(table["peak"]), [pd.Timestamp("2000-01-01"), pd.Timestamp("2000-05-01")])
        self.assertEqual(list(table["trough"]), [pd.Timestamp("2000-03-01"), pd.Timestamp("2000-06-01")])

    def test_missing_values_and_unsorted_input_are_handled(self) -> None:
        usrec = _usrec("2019-01-01", [0] * 14 + [1, 1] + [0] * 8).astype({"value": float}).iloc[::-1].copy()
        usrec.loc[usrec.index[0], "value"] = float("nan")

        table = build_recession_table(usrec, today=date(2021, 6, 15))

        self.assertEqual(len(table), 1)
        self.assertEqual(table.loc[0, "peak"], pd.Timestamp("2020-02-01"))

    def test_no_recession_gives_empty_table(self) -> None:
        table = build_recession_table(_usrec("2015-01-01", [0] * 12), today=date(2016, 3, 1))

        self.assertTrue(table.empty)

    def test_empty_series_gives_empty_table(self) -> None:
        table = build_recession_table(pd.DataFrame({"date": [], "value": []}), today=date(2024, 1, 1))

        self.assertTrue(table.empty)
        self.assertEqual(list(table.columns), RECESSION_COLUMNS)


if __name__ == "__main__":
    unittest.main()
