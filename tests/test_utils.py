"""
Testes de relatórios e visualização
"""

import json
import os
import tempfile
import unittest

from profilecut import CutPlanner
from profilecut.models import OptimizationRequest, PoolingThresholds
from profilecut.samples import sample_items, sample_stock_lengths
from profilecut.utils import CutPlanReporter, create_visualization, export_result


class TestReports(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.result = CutPlanner().optimize_1d(sample_items(), stock_lengths=[6100, 6500, 7300])

    def test_text_report_lists_every_bar(self):
        text = CutPlanReporter(self.result).generate_text_report()
        self.assertIn("RELATÓRIO DE OTIMIZAÇÃO DE CORTES", text)
        for cut in self.result.cuts:
            self.assertIn(cut.plan_label, text)

    def test_dataframes(self):
        reporter = CutPlanReporter(self.result)
        self.assertEqual(len(reporter.cuts_dataframe()), self.result.total_segments)
        bars = reporter.bars_dataframe()
        self.assertEqual(len(bars), self.result.stock_count)
        self.assertAlmostEqual(bars["sobra"].sum(), self.result.total_waste)

    def test_export_all_formats(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            paths = export_result(self.result, temp_dir)
            self.assertEqual(len(paths), 4)
            for path in paths:
                self.assertTrue(os.path.exists(path))
            json_path = next(p for p in paths if p.endswith(".json"))
            with open(json_path, encoding="utf-8") as f:
                self.assertEqual(json.load(f)["stock_count"], self.result.stock_count)

    def test_export_selected_format(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            paths = export_result(self.result, temp_dir, formats=["txt"])
            self.assertEqual(len(paths), 1)
            self.assertTrue(paths[0].endswith(".txt"))

    def test_visualization_files(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            paths = create_visualization(self.result, temp_dir)
            for path in paths:
                self.assertTrue(os.path.getsize(path) > 0)


class TestPooledReport(unittest.TestCase):

    def test_mixed_bars_flagged(self):
        request = OptimizationRequest(items=sample_items(), stock_lengths=sample_stock_lengths(),
                                      algorithm="pooling",
                                      pooling_thresholds=PoolingThresholds(mixed_bar_ratio_max=1.0,
                                                                           efficiency_drop_max=100.0))
        result = CutPlanner().optimize_sync(request)
        text = CutPlanReporter(result).generate_text_report()
        if any(cut.is_mixed for cut in result.cuts):
            self.assertIn("(mista)", text)
        else:
            self.assertNotIn("(mista)", text)


if __name__ == "__main__":
    unittest.main()
