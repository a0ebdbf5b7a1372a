import unittest

from pydantic import ValidationError

from ib_valuation.models.ma import MAInputs, MAModel

from tests.fixtures import ApproxMixin, make_company


ALL_STOCK = dict(cash_percent=0.0, stock_percent=1.0, debt_percent=0.0)
ALL_CASH = dict(cash_percent=1.0, stock_percent=0.0, debt_percent=0.0)


class MAModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        # acquirer: NI 10B on 1B shares at $200 (EPS 10, P/E 20)
        self.acquirer = make_company("ACQ", revenue=50e9, net_margin=0.20, shares=1e9, price=200.0, total_debt=30e9)
        # target: NI 1B on 1B shares at $30 (P/E 30)
        self.target = make_company("TGT", revenue=5e9, net_margin=0.20, shares=1e9, price=30.0, total_debt=5e9)

    def test_high_premium_stock_deal_is_dilutive(self) -> None:
        inputs = MAInputs(premium=0.5, cost_synergies=0.0, **ALL_STOCK)
        result = MAModel(self.acquirer, self.target, inputs).analyze()
        self.assertApprox(result.deal.offer_price, 45.0)
        self.assertApprox(result.deal.total_consideration, 45e9)
        self.assertApprox(result.deal.shares_issued, 0.225e9)
        self.assertApprox(result.acquirer_standalone.eps, 10.0)
        self.assertApprox(result.pro_forma.net_income, 11e9)
        self.assertApprox(result.pro_forma.eps, 11 / 1.225)
        self.assertFalse(result.accretion_dilution.is_accretive)
        self.assertLess(result.accretion_dilution.percent_change, 0)
        self.assertGreater(result.break_even.required_synergies, 0)

    def test_required_synergies_close_the_gap(self) -> None:
        base = MAModel(self.acquirer, self.target, MAInputs(premium=0.5, cost_synergies=0.0, **ALL_STOCK)).analyze()
        required = base.break_even.required_synergies
        fixed = MAModel(
            self.acquirer, self.target, MAInputs(premium=0.5, cost_synergies=required, **ALL_STOCK)
        ).analyze()
        self.assertApprox(fixed.synergies.synergy_adjusted_eps, 10.0)
        self.assertApprox(fixed.synergies.synergy_adjusted_percent_change, 0.0)
        # synergies are reported separately and leave the headline verdict alone
        self.assertFalse(fixed.accretion_dilution.is_accretive)

    def test_all_cash_deal_is_accretive_and_never_dilutes(self) -> None:
        result = MAModel(self.acquirer, self.target, MAInputs(**ALL_CASH)).analyze()
        self.assertEqual(result.deal.shares_issued, 0.0)
        self.assertApprox(result.pro_forma.eps, 11.0)
        self.assertTrue(result.accretion_dilution.is_accretive)
        self.assertEqual(result.break_even.required_synergies, 0.0)
        self.assertIsNone(result.break_even.max_premium)

    def test_max_premium_for_stock_deal(self) -> None:
        cheap = make_company("CHP", revenue=5e9, net_margin=0.20, shares=1e9, price=10.0)
        result = MAModel(self.acquirer, cheap, MAInputs(**ALL_STOCK)).analyze()
        # EPS cost of 0.05 per dollar issued: 1B of target NI supports 20B, twice the 10B market value
        self.assertApprox(result.break_even.max_premium, 1.0)
        at_limit = MAModel(self.acquirer, cheap, MAInputs(premium=1.0, **ALL_STOCK)).analyze()
        self.assertApprox(at_limit.pro_forma.eps, 10.0)

    def test_max_premium_floors_at_zero(self) -> None:
        result = MAModel(self.acquirer, self.target, MAInputs(**ALL_STOCK)).analyze()
        self.assertEqual(result.break_even.max_premium, 0.0)

    def test_default_mix_funding_and_leverage(self) -> None:
        result = MAModel(self.acquirer, self.target).analyze()
        deal = result.deal
        self.assertApprox(deal.total_consideration, 39e9)
        self.assertApprox(deal.cash_component, 39e9 * 0.40)
        self.assertApprox(deal.debt_component, 39e9 * 0.20)
        self.assertApprox(result.pro_forma.additional_interest, 39e9 * 0.20 * 0.06)
        self.assertApprox(result.synergies.cost_synergies, 39e9 * 0.02)
        credit = result.credit_metrics
        self.assertApprox(credit.leverage_pre, 30e9 / 15e9)
        self.assertApprox(credit.leverage_post, (30e9 + 5e9 + 7.8e9) / 16.5e9)
        self.assertApprox(result.pro_forma.revenue, 55e9)

    def test_target_price_override(self) -> None:
        model = MAModel(self.acquirer, self.target, MAInputs(target_price=40.0, premium=0.25))
        self.assertEqual(model.inputs.target_price, 40.0)
        self.assertApprox(model.analyze().deal.offer_price, 50.0)

    def test_mix_must_sum_to_one(self) -> None:
        with self.assertRaises(ValidationError):
            MAInputs(cash_percent=0.5, stock_percent=0.5, debt_percent=0.5)


if __name__ == "__main__":
    unittest.main()
