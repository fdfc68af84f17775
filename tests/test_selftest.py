"""
Testes do autoteste de invariantes
"""

import unittest

from profilecut.heuristics import first_fit_decreasing
from profilecut.metrics import build_result
from profilecut.models import Constraints, CostModel, OptimizationItem
from profilecut.samples import sample_items, sample_stock_lengths
from profilecut.selftest import SelfTestReport, assert_invariants, run_pooling_self_test


class TestAssertInvariants(unittest.TestCase):

    def setUp(self):
        self.items = [
            OptimizationItem(profile_type="P", length=1000, quantity=5),
            OptimizationItem(profile_type="P", length=750, quantity=3),
        ]
        cuts = first_fit_decreasing(self.items, [6100.0], Constraints(), CostModel())
        self.result = build_result(cuts, "ffd", Constraints(), CostModel(), piece_count=8)

    def test_consistent_result(self):
        self.assertEqual(assert_invariants("ffd", self.result, [1000, 750]), [])

    def test_detects_broken_bar_accounting(self):
        cut = self.result.cuts[0]
        tampered = self.result.model_copy(update={
            "cuts": [cut.model_copy(update={"remaining_length": cut.remaining_length + 1})]
            + self.result.cuts[1:],
        })
        problems = assert_invariants("ffd", tampered, [1000, 750])
        self.assertTrue(any("usado + sobra" in p for p in problems))

    def test_detects_foreign_length(self):
        problems = assert_invariants("ffd", self.result, [1000])
        self.assertTrue(any("750" in p for p in problems))

    def test_detects_total_length_drift(self):
        tampered = self.result.model_copy(update={"total_length": self.result.total_length + 10})
        self.assertTrue(assert_invariants("ffd", tampered, [1000, 750]))


class TestSelfTestRun(unittest.TestCase):

    def test_sample_data_passes(self):
        report = run_pooling_self_test(sample_items(), sample_stock_lengths())
        self.assertTrue(report.passed, report.failures)
        self.assertEqual(report.checks, [
            "baseline-invariants", "pooled-invariants", "pooled-not-worse",
            "forced-fallback", "tiny-label",
        ])

    def test_report_records_failures(self):
        report = SelfTestReport()
        report.record("ok", [])
        report.record("quebrado", ["a", "b"])
        self.assertFalse(report.passed)
        self.assertEqual(report.checks, ["ok"])
        self.assertEqual(report.failures, ["quebrado: a", "quebrado: b"])


if __name__ == "__main__":
    unittest.main()
