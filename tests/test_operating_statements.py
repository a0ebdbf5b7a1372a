import unittest

from ib_valuation.models.operating import (
    OperatingInputs,
    OperatingModel,
    find_breakeven,
    project_monthly,
    unit_economics,
)
from ib_valuation.models.three_statement import (
    ThreeStatementInputs,
    ThreeStatementModel,
    opening_carry,
    project_year,
)

from tests.fixtures import ApproxMixin, make_company


class UnitEconomicsTests(ApproxMixin, unittest.TestCase):
    def test_ltv_capped_by_lifetime_months(self) -> None:
        u = unit_economics(OperatingInputs(cac=100, arpu=100, gross_margin=0.75, churn_rate=0.02, ltv_months=24))
        self.assertApprox(u.ltv, 100 * 0.75 * 24)
        self.assertApprox(u.ltv_cac_ratio, 18.0)
        self.assertApprox(u.payback_period, 100 / 75)
        self.assertEqual(u.months_to_recover, 2)

    def test_zero_churn_uses_cap(self) -> None:
        u = unit_economics(OperatingInputs(churn_rate=0.0, ltv_months=36))
        self.assertApprox(u.ltv, 100 * 0.75 * 36)

    def test_zero_margin_payback_undefined(self) -> None:
        u = unit_economics(OperatingInputs(gross_margin=0.0))
        self.assertIsNone(u.months_to_recover)


class OperatingModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.data = make_company(revenue=100e9)

    def test_customer_build_truncates(self) -> None:
        rows = project_monthly(OperatingInputs(projection_months=2), 1000)
        first = rows[0]
        self.assertEqual((first.new_customers, first.churned_customers, first.customers), (50, 20, 1030))
        self.assertApprox(first.revenue, 103_000)
        self.assertApprox(first.ebitda, 103_000 * 0.75 - 50 * 100 - (103_000 * 0.30 + 50_000))
        self.assertApprox(rows[1].cumulative_cash_flow, rows[0].ebitda + rows[1].ebitda)

    def test_shrinking_customer_base_truncates_toward_zero(self) -> None:
        rows = project_monthly(OperatingInputs(monthly_growth=-0.0505, projection_months=1), 1000)
        self.assertEqual(rows[0].new_customers, -50)  # -50.5 truncated, not floored to -51
        self.assertEqual(rows[0].customers, 1000 - 50 - 20)

    def test_starting_customers_default_from_revenue(self) -> None:
        model = OperatingModel(self.data)
        self.assertEqual(model.inputs.starting_customers, 100_000_000)

    def test_rollups_preserve_totals(self) -> None:
        result = OperatingModel(self.data, OperatingInputs(starting_customers=1000)).analyze()
        self.assertEqual(len(result.monthly), 36)
        self.assertEqual([q.quarter for q in result.quarterly], list(range(1, 13)))
        self.assertEqual([a.year for a in result.annual], [1, 2, 3])
        total = sum(m.revenue for m in result.monthly)
        self.assertApprox(sum(q.revenue for q in result.quarterly), total)
        self.assertApprox(sum(a.revenue for a in result.annual), total)
        first_q = result.quarterly[0]
        self.assertApprox(
            first_q.operating_expenses,
            sum(m.operating_expenses + m.sales_marketing for m in result.monthly[:3]),
        )

    def test_breakeven_found(self) -> None:
        result = OperatingModel(self.data, OperatingInputs(starting_customers=100_000)).analyze()
        self.assertTrue(result.breakeven.achieved)
        self.assertEqual(result.breakeven.month, 1)

    def test_breakeven_not_reached(self) -> None:
        rows = project_monthly(OperatingInputs(monthly_growth=0.0, projection_months=12), 10)
        b = find_breakeven(rows)
        self.assertFalse(b.achieved)
        self.assertIsNone(b.month)
        self.assertEqual(b.customers, 10)

    def test_scenarios_bracket_base(self) -> None:
        result = OperatingModel(self.data, OperatingInputs(starting_customers=1000)).analyze()
        by_name = {s.name: s for s in result.scenarios}
        self.assertEqual(list(by_name), ["conservative", "base", "optimistic"])
        self.assertApprox(by_name["base"].revenue, sum(m.revenue for m in result.monthly))
        self.assertLess(by_name["conservative"].customers, by_name["base"].customers)
        self.assertGreater(by_name["optimistic"].customers, by_name["base"].customers)


class ThreeStatementTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.data = make_company(revenue=100e9, total_debt=30e9, cash=10e9, total_assets=200e9)

    def test_cash_rolls_forward(self) -> None:
        result = ThreeStatementModel(self.data).project()
        flows = result.cash_flow_statements
        self.assertApprox(flows[0].beginning_cash, 10e9)
        for prev, nxt in zip(flows, flows[1:]):
            self.assertApprox(nxt.beginning_cash, prev.ending_cash)
        for cf, bs in zip(flows, result.balance_sheets):
            self.assertApprox(bs.cash, cf.ending_cash)
            self.assertApprox(cf.ending_cash, cf.beginning_cash + cf.net_change_in_cash)

    def test_income_statement_links(self) -> None:
        result = ThreeStatementModel(self.data).project()
        first = result.income_statements[0]
        self.assertApprox(first.revenue, 100e9 * 1.15)
        self.assertApprox(first.interest_expense, 30e9 * 0.05)
        self.assertApprox(result.income_statements[1].revenue, first.revenue * 1.12)
        self.assertApprox(result.cash_flow_statements[0].net_income, first.net_income)

    def test_balance_sheet_balances(self) -> None:
        for bs in ThreeStatementModel(self.data).project().balance_sheets:
            self.assertApprox(bs.total_assets, bs.total_liabilities_and_equity)

    def test_repayment_never_takes_debt_negative(self) -> None:
        inputs = ThreeStatementInputs(annual_debt_issuance=-20e9)
        result = ThreeStatementModel(self.data, inputs).project()
        debts = [bs.total_debt for bs in result.balance_sheets]
        self.assertApprox(debts[0], 10e9)
        self.assertTrue(all(d >= 0 for d in debts))
        self.assertEqual(debts[-1], 0.0)
        self.assertApprox(result.cash_flow_statements[1].debt_issuance, -10e9)

    def test_opening_carry_and_single_step(self) -> None:
        inputs = ThreeStatementInputs()
        carry = opening_carry(self.data, inputs)
        self.assertApprox(carry.ppe, 200e9 * 0.40)
        self.assertApprox(carry.cash, 10e9)
        statements, nxt = project_year(1, carry, inputs)
        self.assertApprox(nxt.cash, statements.cash_flow.ending_cash)
        self.assertApprox(nxt.revenue, statements.income.revenue)
        self.assertApprox(statements.cash_flow.depreciation, 200e9 * 0.05)

    def test_snapshot_untouched(self) -> None:
        ThreeStatementModel(self.data).project()
        self.assertEqual(self.data.latest_balance().cash_and_equivalents, 10e9)


if __name__ == "__main__":
    unittest.main()
