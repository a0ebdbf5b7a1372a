import math
import unittest
from datetime import date

import numpy as np

from ib_valuation.errors import EmptyDataset
from ib_valuation.models.comps import CompsModel, PeerCompany, generate_peers
from ib_valuation.models.precedent import PrecedentTransactionModel, Transaction, generate_transactions

from tests.fixtures import ApproxMixin, make_company


def peer(symbol: str, ev: float, revenue: float, ebitda: float, market_cap: float, net_income: float) -> PeerCompany:
    return PeerCompany(
        symbol=symbol,
        name=symbol,
        market_cap=market_cap,
        enterprise_value=ev,
        revenue=revenue,
        ebitda=ebitda,
        net_income=net_income,
    )


def deal(ev_ebitda: float, premium: float, strategic: bool, year: int = 2022) -> Transaction:
    ebitda = 1e9
    value = ebitda * ev_ebitda
    return Transaction(
        date=date(year, 6, 1),
        target=f"T{ev_ebitda:g}",
        acquirer="Buyer",
        target_industry="Technology",
        deal_value=value,
        target_revenue=value / 3,
        target_ebitda=ebitda,
        premium=premium,
        strategic=strategic,
    )


class CompsModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        # target: EV 520B, revenue 100B, EBITDA 30B -> 17.33x
        self.data = make_company(price=50.0, shares=10e9, total_debt=30e9, cash=10e9)
        self.peers = [
            peer("A", 100.0, 25.0, 10.0, 90.0, 5.0),
            peer("B", 120.0, 30.0, 10.0, 110.0, 5.0),
            peer("C", 140.0, 35.0, 10.0, 130.0, 5.0),
            peer("OUT", 1000.0, 10.0, 1.0, 1000.0, 0.5),  # 1000x EBITDA
        ]

    def test_outlier_filtered_from_stats_but_kept_in_peers(self) -> None:
        result = CompsModel(self.data, peers=self.peers).analyze()
        self.assertEqual(len(result.peers), 4)
        self.assertIn("OUT", [p.symbol for p in result.peers])
        ev_ebitda = result.multiples.ev_ebitda
        self.assertEqual(ev_ebitda.count, 4)  # three peers plus the target
        self.assertApprox(ev_ebitda.low, 10.0)
        self.assertApprox(ev_ebitda.median, 12.0)
        self.assertApprox(ev_ebitda.high, 14.0)

    def test_implied_values_from_median(self) -> None:
        result = CompsModel(self.data, peers=self.peers).analyze()
        self.assertApprox(result.valuation.ev_ebitda.base, 30e9 * 12.0)
        self.assertApprox(result.implied_share_price.ev_ebitda.base, (360e9 - 20e9) / 10e9)
        self.assertTrue(result.is_finite)

    def test_target_row(self) -> None:
        target = CompsModel(self.data, peers=self.peers).analyze().target
        self.assertEqual(target.symbol, "TEST")
        self.assertApprox(target.enterprise_value, 520e9)
        self.assertApprox(target.pe, 500e9 / 20e9)

    def test_zero_ebitda_peer_is_nan_not_error(self) -> None:
        self.assertTrue(math.isnan(peer("Z", 10.0, 5.0, 0.0, 10.0, 1.0).ev_ebitda))

    def test_everything_filtered_raises(self) -> None:
        data = make_company(ebitda_margin=0.0001)  # target at ~52,000x EBITDA
        outliers = [peer("X", 1000.0, 100.0, 1.0, 100.0, 10.0), peer("Y", 2000.0, 100.0, 1.0, 100.0, 10.0)]
        with self.assertRaises(EmptyDataset):
            CompsModel(data, peers=outliers).analyze()

    def test_seeded_synthetic_peers_are_reproducible(self) -> None:
        a = CompsModel(self.data, rng=np.random.default_rng(3)).analyze()
        b = CompsModel(self.data, rng=np.random.default_rng(3)).analyze()
        self.assertEqual(a.multiples, b.multiples)
        self.assertEqual(len(generate_peers(1e9, np.random.default_rng(0))), 8)

    def test_synthetic_peers_are_structurally_valid(self) -> None:
        result = CompsModel(self.data, rng=np.random.default_rng()).analyze()
        for stats in (result.multiples.ev_revenue, result.multiples.ev_ebitda, result.multiples.pe):
            self.assertLessEqual(stats.low, stats.median)
            self.assertLessEqual(stats.median, stats.high)
            self.assertGreaterEqual(stats.count, 1)


class PrecedentModelTests(ApproxMixin, unittest.TestCase):
    def setUp(self) -> None:
        self.data = make_company(price=50.0, shares=10e9, total_debt=30e9, cash=10e9)
        self.deals = [
            deal(12, 0.20, strategic=True),
            deal(16, 0.30, strategic=True),
            deal(8, 0.40, strategic=False),
            deal(10, 0.50, strategic=False),
            deal(80, 0.25, strategic=False),  # outside (0, 50)
        ]

    def test_pooled_multiples_and_premiums(self) -> None:
        result = PrecedentTransactionModel(self.data, transactions=self.deals).analyze()
        self.assertEqual(result.multiples.ev_ebitda.count, 4)
        self.assertApprox(result.multiples.ev_ebitda.median, 10.0)
        self.assertApprox(result.multiples.ev_revenue.median, 3.0)
        self.assertEqual(result.premiums.count, 5)
        self.assertApprox(result.premiums.median, 0.30)
        self.assertEqual(len(result.transactions), 5)

    def test_buyer_breakdown(self) -> None:
        b = PrecedentTransactionModel(self.data, transactions=self.deals).analyze().buyers
        self.assertEqual((b.strategic_count, b.financial_count), (2, 2))
        self.assertApprox(b.strategic_median_ev_ebitda, 12.0)
        self.assertApprox(b.financial_median_ev_ebitda, 8.0)

    def test_missing_buyer_type_is_nan(self) -> None:
        only_strategic = [d for d in self.deals if d.strategic]
        b = PrecedentTransactionModel(self.data, transactions=only_strategic).analyze().buyers
        self.assertEqual(b.financial_count, 0)
        self.assertTrue(math.isnan(b.financial_median_ev_ebitda))

    def test_implied_share_price(self) -> None:
        result = PrecedentTransactionModel(self.data, transactions=self.deals).analyze()
        self.assertApprox(result.valuation.ev_ebitda.base, 30e9 * 10.0)
        self.assertApprox(result.implied_share_price.ev_ebitda.base, (300e9 - 20e9) / 10e9)

    def test_all_deals_filtered_raises(self) -> None:
        with self.assertRaises(EmptyDataset):
            PrecedentTransactionModel(self.data, transactions=[deal(90, 0.3, True), deal(95, 0.3, False)]).analyze()

    def test_generated_deals_newest_first(self) -> None:
        deals = generate_transactions(1e9, np.random.default_rng(11), industry="Software")
        self.assertEqual(len(deals), 15)
        dates = [d.date for d in deals]
        self.assertEqual(dates, sorted(dates, reverse=True))
        self.assertTrue(all(d.target_industry == "Software" for d in deals))
        self.assertTrue(all(0.15 <= d.premium <= 0.50 for d in deals))


if __name__ == "__main__":
    unittest.main()
