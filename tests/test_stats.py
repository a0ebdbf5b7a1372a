import math
import unittest

from ib_valuation.errors import DegenerateInput, EmptyDataset
from ib_valuation.models.stats import (
    cagr,
    filter_range,
    non_finite,
    percentile,
    ratio,
    ratio_or_nan,
    summarize,
    volatility,
)


class PercentileTests(unittest.TestCase):
    def test_nearest_rank_not_interpolated(self) -> None:
        values = [40, 10, 30, 20]
        self.assertEqual(percentile(values, 25), 10)
        self.assertEqual(percentile(values, 50), 20)
        self.assertEqual(percentile(values, 75), 30)
        self.assertEqual(percentile(values, 100), 40)

    def test_single_value(self) -> None:
        self.assertEqual(percentile([7.5], 25), 7.5)
        self.assertEqual(percentile([7.5], 75), 7.5)

    def test_empty_raises(self) -> None:
        with self.assertRaises(EmptyDataset):
            percentile([], 50)

    def test_out_of_range_percentile_rejected(self) -> None:
        with self.assertRaises(ValueError):
            percentile([1, 2, 3], 101)

    def test_summarize(self) -> None:
        s = summarize([10, 20, 30, 40])
        self.assertEqual((s.low, s.median, s.high), (10, 20, 30))
        self.assertAlmostEqual(s.mean, 25)
        self.assertEqual(s.count, 4)


class FilterTests(unittest.TestCase):
    def test_bounds_are_exclusive_and_drop_non_finite(self) -> None:
        values = [0.0, 5.0, 50.0, 49.9, math.nan, math.inf, -3.0]
        self.assertEqual(filter_range(values, 0.0, 50.0), [5.0, 49.9])

    def test_filtered_to_empty_then_summarized_raises(self) -> None:
        with self.assertRaises(EmptyDataset):
            summarize(filter_range([1000.0, -1.0], 0.0, 50.0))


class RatioTests(unittest.TestCase):
    def test_strict_ratio_raises_on_zero(self) -> None:
        with self.assertRaises(DegenerateInput):
            ratio(1.0, 0.0)

    def test_lenient_ratio_is_nan_on_zero(self) -> None:
        self.assertTrue(math.isnan(ratio_or_nan(1.0, 0.0)))
        self.assertEqual(ratio_or_nan(6.0, 3.0), 2.0)

    def test_volatility_of_zero_mean_raises(self) -> None:
        with self.assertRaises(DegenerateInput):
            volatility([-1.0, 1.0])

    def test_cagr(self) -> None:
        self.assertAlmostEqual(cagr(100, 121, 2), 0.10)
        self.assertTrue(math.isnan(cagr(0, 100, 3)))
        self.assertTrue(math.isnan(cagr(100, -50, 3)))

    def test_non_finite_names_only_bad_values(self) -> None:
        warnings = non_finite(a=1.0, b=math.nan, c=math.inf, d=None)
        self.assertEqual(warnings, ["b is not finite", "c is not finite"])


if __name__ == "__main__":
    unittest.main()
