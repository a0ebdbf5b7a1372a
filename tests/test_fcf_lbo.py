import math
import unittest

from ib_valuation.errors import InsufficientData
from ib_valuation.models.fcf import FCFInputs, FCFModel, average_fcf, fcf_per_share, fcf_yield
from ib_valuation.models.lbo import LBOInputs, LBOModel, sweep_debt

from tests.fixtures import ApproxMixin, empty_company, make_company


class FCFModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.data = make_company(revenue=100e9, growth=0.10, ocf_margin=0.25, capex_margin=0.05, net_margin=0.20)

    def test_historical_uses_capex_magnitude(self) -> None:
        result = FCFModel(self.data).analyze()
        self.assertEqual([h.year for h in result.historical], ["2021", "2022", "2023"])
        latest = result.historical[-1]
        self.assertApprox(latest.capex, 5e9)
        self.assertApprox(latest.fcf, 20e9)
        self.assertApprox(latest.fcf_margin, 0.20)
        self.assertApprox(latest.fcf_conversion, 1.0)

    def test_quality_metrics(self) -> None:
        m = FCFModel(self.data).analyze().metrics
        self.assertApprox(m.avg_fcf_margin, 0.20)
        self.assertApprox(m.fcf_growth_rate, 0.10)
        self.assertGreater(m.fcf_volatility, 0)

    def test_projection_walks_margin_to_target(self) -> None:
        result = FCFModel(self.data, FCFInputs(projection_years=5, target_fcf_margin=0.30)).analyze()
        margins = [p.fcf_margin for p in result.projections]
        self.assertApprox(margins[0], 0.22)
        self.assertApprox(margins[-1], 0.30)
        self.assertEqual(result.projections[0].year, 2024)
        self.assertApprox(result.projections[0].revenue, 100e9 * 1.08)

    def test_zero_net_income_flags_conversion(self) -> None:
        result = FCFModel(make_company(net_margin=0.0)).analyze()
        self.assertTrue(math.isnan(result.metrics.avg_fcf_conversion))
        self.assertIn("avg_fcf_conversion is not finite", result.warnings)

    def test_empty_history_raises(self) -> None:
        with self.assertRaises(InsufficientData):
            FCFModel(empty_company()).analyze()

    def test_yield_and_per_share(self) -> None:
        avg = average_fcf(self.data)
        self.assertGreater(avg, 0)
        self.assertApprox(fcf_yield(50.0, 1000.0), 0.05)
        self.assertApprox(fcf_per_share(20e9, 10e9), 2.0)
        self.assertTrue(math.isnan(fcf_per_share(1.0, 0)))


class LBOModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.data = make_company(price=20.0, shares=10e9, total_debt=30e9, cash=10e9)

    def test_sweep_never_over_repays_or_borrows(self) -> None:
        self.assertEqual(sweep_debt(100.0, 150.0), (100.0, 0.0))
        self.assertEqual(sweep_debt(100.0, 40.0), (40.0, 60.0))
        self.assertEqual(sweep_debt(100.0, -5.0), (0.0, 100.0))

    def test_entry_and_debt_structure(self) -> None:
        result = LBOModel(self.data).calculate()
        e, d = result.entry, result.debt
        self.assertApprox(e.purchase_price, 26.0)
        self.assertApprox(e.enterprise_value, 26.0 * 10e9 + 20e9)
        self.assertApprox(e.debt_financing, e.enterprise_value * 0.60)
        self.assertApprox(d.senior_debt + d.mezzanine_debt, e.debt_financing)
        self.assertApprox(d.senior_debt, e.debt_financing * 0.70)

    def test_ending_debt_never_negative(self) -> None:
        # tiny leverage so the sweep pays everything off early
        result = LBOModel(self.data, LBOInputs(debt_ratio=0.01, equity_ratio=0.99)).calculate()
        self.assertTrue(all(p.ending_debt >= 0 for p in result.projections))
        self.assertEqual(result.projections[-1].ending_debt, 0.0)

    def test_returns_consistent_with_exit(self) -> None:
        result = LBOModel(self.data, LBOInputs(holding_period=5, exit_multiple=12)).calculate()
        x, r = result.exit, result.returns
        self.assertApprox(x.exit_ev, result.projections[-1].ebitda * 12)
        self.assertApprox(r.moic, x.equity_value / result.entry.equity_contribution)
        self.assertApprox(r.irr, r.moic ** (1 / 5) - 1)
        self.assertEqual(len(result.projections), 5)


if __name__ == "__main__":
    unittest.main()
