import math
import unittest

import numpy as np
from pydantic import ValidationError

from ib_valuation.models.credit import CreditInputs, CreditModel, interest_coverage, pricing_tier
from ib_valuation.models.ipo import IPOInputs, IPOModel
from ib_valuation.models.sotp import BusinessSegment, SOTPInputs, SOTPModel, segment_multiple

from tests.fixtures import ApproxMixin, make_company


class CreditModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        # EBITDA 30B, debt 30B -> 1.0x; interest at 5% -> 20x coverage
        self.data = make_company(total_debt=30e9, cash=10e9, ebitda_margin=0.30)

    def test_historical_is_chronological(self) -> None:
        result = CreditModel(self.data).analyze()
        self.assertEqual([h.year for h in result.historical], ["2021", "2022", "2023"])
        latest = result.historical[-1]
        self.assertApprox(latest.leverage_ratio, 1.0)
        self.assertApprox(latest.net_leverage, 20e9 / 30e9)
        self.assertApprox(latest.interest_coverage, 20.0)

    def test_capacity_covenants_and_rating(self) -> None:
        result = CreditModel(self.data).analyze()
        cap = result.debt_capacity
        self.assertApprox(cap.max_debt, 90e9)
        self.assertApprox(cap.additional_borrowing, 60e9)
        self.assertApprox(result.covenants.leverage.covenant, 3.6)
        self.assertEqual(result.covenants.leverage.status, "pass")
        self.assertApprox(result.covenants.interest_coverage.covenant, 2.4)
        self.assertEqual(result.covenants.interest_coverage.status, "pass")
        self.assertEqual(result.current_pricing.leverage, "1.0x - 2.0x")
        self.assertEqual(result.recommendation.rating, "investment")

    def test_projection_and_maturities_anchor_to_last_fiscal_year(self) -> None:
        result = CreditModel(self.data, CreditInputs(projection_years=3)).analyze()
        self.assertEqual([p.year for p in result.projections], [2024, 2025, 2026])
        self.assertApprox(result.projections[0].ebitda, 30e9 * 1.08)
        self.assertEqual(
            [m.maturity for m in result.maturities], ["2024-06", "2025-12", "2026-06", "2027-12"]
        )
        self.assertApprox(sum(m.amount for m in result.maturities), 30e9)

    def test_over_levered_fails_covenant(self) -> None:
        result = CreditModel(make_company(total_debt=150e9)).analyze()
        self.assertEqual(result.covenants.leverage.status, "fail")
        self.assertLess(result.debt_capacity.headroom, 0)
        self.assertEqual(result.debt_capacity.additional_borrowing, 0.0)
        self.assertEqual(result.recommendation.rating, "high-yield")
        self.assertApprox(result.recommendation.max_debt_capacity, 90e9 * 0.8)

    def test_debt_free_company(self) -> None:
        result = CreditModel(make_company(total_debt=0.0)).analyze()
        self.assertTrue(math.isinf(result.historical[-1].interest_coverage))
        self.assertEqual(result.covenants.interest_coverage.status, "pass")
        self.assertEqual(result.current_pricing.leverage, "< 1.0x")

    def test_zero_ebitda_flags_leverage(self) -> None:
        result = CreditModel(make_company(ebitda_margin=0.0)).analyze()
        self.assertIsNone(result.current_pricing)
        self.assertEqual(result.recommendation.rating, "high-yield")
        self.assertIn("leverage_ratio is not finite", result.warnings)

    def test_helpers(self) -> None:
        self.assertTrue(math.isnan(interest_coverage(0.0, 0.0)))
        self.assertEqual(pricing_tier(4.0).leverage, "> 4.0x")
        self.assertIsNone(pricing_tier(-1.0))


class SOTPModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.data = make_company(ebitda_margin=0.30, total_debt=30e9, cash=10e9, shares=10e9)

    def test_derived_segments_sum_of_parts(self) -> None:
        result = SOTPModel(self.data).analyze()
        self.assertEqual([s.name for s in result.segments], ["Core", "Growth", "Legacy", "New Ventures"])
        core = result.segments[0]
        self.assertApprox(core.multiple, 8 + 0.30 * 20)
        gross = 18e9 * 14 + 7.5e9 * 18 + 3.6e9 * 6 + 0.9e9 * 25
        self.assertApprox(result.gross_value, gross)
        self.assertApprox(result.adjustments.corporate_overhead_value, -30e9 * 0.02 * 8)
        self.assertApprox(result.equity_value, gross - 4.8e9 - 20e9)
        self.assertApprox(result.per_share, result.equity_value / 10e9)
        self.assertApprox(sum(s.percent_of_total for s in result.segments), 1.0)
        # EBITDA share, not value share: Core carries 60% of EBITDA
        self.assertApprox(core.percent_of_total, 0.60)
        self.assertNotAlmostEqual(core.percent_of_total, core.value / gross)

    def test_net_debt_allocation_sums_to_net_debt(self) -> None:
        for method in ("proportional", "revenue", "ebitda", "equal"):
            result = SOTPModel(self.data, SOTPInputs(net_debt_allocation=method)).analyze()
            self.assertApprox(sum(s.allocated_net_debt for s in result.segments), 20e9)
        equal = SOTPModel(self.data, SOTPInputs(net_debt_allocation="equal")).analyze()
        self.assertApprox(equal.segments[0].allocated_net_debt, 5e9)

    def test_scenarios_scale_gross_value(self) -> None:
        result = SOTPModel(self.data).analyze()
        names = [s.name for s in result.scenarios]
        self.assertEqual(names, ["conservative", "base", "optimistic"])
        base = result.scenarios[1]
        self.assertApprox(base.equity_value, result.equity_value)
        self.assertApprox(result.scenarios[0].equity_value, result.gross_value * 0.85 - 4.8e9 - 20e9)

    def test_supplied_segments_and_methodologies(self) -> None:
        segments = (
            BusinessSegment(name="Cloud", revenue=60e9, ebitda=20e9, growth_rate=0.2, methodology="dcf"),
            BusinessSegment(name="Devices", revenue=40e9, ebitda=10e9, methodology="multiple"),
        )
        result = SOTPModel(self.data, SOTPInputs(segments=segments)).analyze()
        self.assertApprox(result.segments[0].multiple, 20.0)
        self.assertApprox(result.segments[1].multiple, 10.0)  # flat default
        self.assertApprox(result.gross_value, 20e9 * 20 + 10e9 * 10)
        self.assertEqual(segment_multiple(BusinessSegment(name="X", revenue=1, ebitda=1, multiple=7)), 7)

    def test_zero_shares_flags_per_share(self) -> None:
        result = SOTPModel(make_company(shares=0)).analyze()
        self.assertTrue(math.isnan(result.per_share))
        self.assertIn("per_share is not finite", result.warnings)


class IPOModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.data = make_company(shares=10e9, price=50.0, total_debt=30e9, cash=10e9)

    def test_default_offering(self) -> None:
        result = IPOModel(self.data, rng=np.random.default_rng(1)).analyze()
        o = result.offering
        self.assertApprox(o.primary_shares, 1.2e9)
        self.assertApprox(o.secondary_shares, 0.3e9)
        self.assertApprox(o.price.low, 42.5)
        self.assertApprox(o.price.mid, 50.0)
        self.assertApprox(o.price.high, 57.5)
        self.assertApprox(o.greenshoe_shares, 1.5e9 * 0.15)
        self.assertApprox(o.total_proceeds.mid, 1.5e9 * 50.0)

    def test_dilution_counts_primary_only(self) -> None:
        result = IPOModel(self.data, rng=np.random.default_rng(1)).analyze()
        self.assertApprox(result.post_money.shares_outstanding, 11.2e9)
        self.assertApprox(result.dilution.dilution_percent, 1.2 / 11.2)
        self.assertApprox(result.dilution.post_ipo_ownership, 10 / 11.2)
        self.assertEqual(result.dilution.pre_ipo_ownership, 1.0)

    def test_multiples_at_each_price(self) -> None:
        result = IPOModel(self.data, IPOInputs(price_low=40.0, price_high=60.0), rng=np.random.default_rng(1)).analyze()
        m = result.valuation_metrics
        self.assertApprox(m.ev_revenue.mid, (11.2e9 * 50.0 + 20e9) / 100e9)
        self.assertApprox(m.ev_revenue.low, (11.2e9 * 40.0 + 20e9) / 100e9)
        self.assertApprox(m.pe.high, 11.2e9 * 60.0 / 20e9)

    def test_comparable_ipos_and_pop(self) -> None:
        result = IPOModel(self.data, rng=np.random.default_rng(5)).analyze()
        self.assertEqual(len(result.comparable_ipos), 7)
        for c in result.comparable_ipos:
            self.assertApprox(c.first_day_close, c.offer_price * (1 + c.first_day_pop))
        pop = result.first_day_pop
        self.assertEqual((pop.conservative, pop.base, pop.optimistic), (0.05, 0.15, 0.30))

    def test_negative_greenshoe_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            IPOInputs(greenshoe=-0.1)


if __name__ == "__main__":
    unittest.main()
