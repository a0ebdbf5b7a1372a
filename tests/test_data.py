import json
import tempfile
import unittest
from pathlib import Path

import numpy as np
from pydantic import ValidationError

from ib_valuation.data import dump_company_data, generate_company_data, load_company_data
from ib_valuation.errors import InsufficientData

from tests.fixtures import empty_company, make_company


class SnapshotFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_dump_writes_camel_case_and_loads_back(self) -> None:
        data = make_company("ABC")
        path = dump_company_data(data, self.dir / "nested" / "ABC.json")
        raw = json.loads(path.read_text(encoding="utf-8"))
        self.assertIn("incomeStatements", raw)
        self.assertIn("totalDebt", raw["balanceSheets"][0])
        self.assertEqual(load_company_data(path), data)

    def test_snake_case_keys_accepted(self) -> None:
        data = make_company("ABC")
        path = dump_company_data(data, self.dir / "snake.json", by_alias=False)
        self.assertIn("income_statements", json.loads(path.read_text(encoding="utf-8")))
        self.assertEqual(load_company_data(path).latest_balance().total_debt, 30e9)

    def test_market_data_style_payload(self) -> None:
        payload = {
            "profile": {"symbol": "XYZ", "marketCap": 5e9, "sharesOutstanding": 1e8, "unknownField": 1},
            "stockPrice": {"current": 50},
            "incomeStatements": [{"date": "2023-12-31", "revenue": 1e9, "netIncome": 1e8, "ebitda": 2e8}],
        }
        path = self.dir / "XYZ.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        data = load_company_data(path)
        self.assertEqual(data.symbol, "XYZ")
        self.assertEqual(data.latest_income().net_income, 1e8)
        self.assertEqual(data.last_fiscal_year(), 2023)
        self.assertEqual(data.beta, 1.0)
        with self.assertRaises(InsufficientData):
            data.latest_balance()

    def test_invalid_file_raises(self) -> None:
        path = self.dir / "bad.json"
        path.write_text(json.dumps({"profile": {"symbol": "BAD"}}), encoding="utf-8")
        with self.assertRaises(ValidationError):
            load_company_data(path)

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_company_data(self.dir / "nope.json")


class CompanyDataTests(unittest.TestCase):
    def test_derived_values(self) -> None:
        data = make_company(total_debt=30e9, cash=10e9, shares=10e9, price=50.0)
        self.assertEqual(data.net_debt(), 20e9)
        self.assertEqual(data.enterprise_value(), 520e9)
        self.assertEqual(data.last_fiscal_year(), 2023)

    def test_empty_history(self) -> None:
        data = empty_company()
        self.assertIsNone(data.last_fiscal_year())
        with self.assertRaises(InsufficientData):
            data.latest_income()


class SyntheticSnapshotTests(unittest.TestCase):
    def test_anchored_to_market_cap(self) -> None:
        data = generate_company_data("abc", market_cap=1e12, shares_outstanding=5e9, end_year=2023, rng=np.random.default_rng(1))
        self.assertEqual(data.symbol, "ABC")
        self.assertEqual(data.current_price, 200.0)
        self.assertEqual(len(data.income_statements), 5)
        self.assertEqual(len(data.balance_sheets), 5)
        self.assertAlmostEqual(data.latest_income().revenue / 1e9, 250.0)
        # latest earnings back out the anchoring 20x P/E
        self.assertAlmostEqual(data.profile.market_cap / data.latest_income().net_income, 20.0)
        self.assertEqual([s.date.year for s in data.income_statements], [2019, 2020, 2021, 2022, 2023])
        revenues = [s.revenue for s in data.income_statements]
        self.assertEqual(revenues, sorted(revenues))
        self.assertGreater(data.stock_price.fifty_two_week_high, data.current_price)
        self.assertLess(data.stock_price.fifty_two_week_low, data.current_price)

    def test_seeded_output_is_reproducible(self) -> None:
        a = generate_company_data("ABC", end_year=2023, rng=np.random.default_rng(9))
        b = generate_company_data("ABC", end_year=2023, rng=np.random.default_rng(9))
        self.assertEqual(a, b)

    def test_periods_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            generate_company_data("ABC", periods=0)


if __name__ == "__main__":
    unittest.main()
