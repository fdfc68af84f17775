"""
Testes das heurísticas FFD, BFD, NFD e WFD
"""

import unittest

from profilecut.heuristics import POLICIES, run_heuristic, pack_in_sequence
from profilecut.metrics import summarize
from profilecut.models import Constraints, CostModel, OptimizationItem


def mixed_order():
    return [
        OptimizationItem(profile_type="AL-4020", length=1000, quantity=5, work_order_id="OP-1"),
        OptimizationItem(profile_type="AL-4020", length=750, quantity=3, work_order_id="OP-1"),
        OptimizationItem(profile_type="AL-4020", length=500, quantity=8, work_order_id="OP-2"),
    ]


class TestGreedyPackers(unittest.TestCase):

    def setUp(self):
        self.constraints = Constraints()
        self.cost_model = CostModel()
        self.items = mixed_order()

    def test_every_packer_conserves_pieces_and_accounting(self):
        for name in POLICIES:
            with self.subTest(algorithm=name):
                cuts = run_heuristic(name, self.items, [6100.0], self.constraints, self.cost_model)
                self.assertEqual(sum(cut.segment_count for cut in cuts), 16)
                for cut in cuts:
                    self.assertAlmostEqual(cut.used_length + cut.remaining_length, cut.stock_length, delta=1e-9)
                    self.assertEqual(cut.segment_count, len(cut.segments))
                    self.assertEqual(sum(entry.count for entry in cut.plan), cut.segment_count)

    def test_expected_layout(self):
        for name in POLICIES:
            with self.subTest(algorithm=name):
                cuts = run_heuristic(name, self.items, [6100.0], self.constraints, self.cost_model)
                self.assertEqual(len(cuts), 2)
                self.assertEqual(cuts[0].plan_label, "5 × 1000 mm + 1 × 750 mm")
                self.assertEqual(cuts[1].plan_label, "2 × 750 mm + 8 × 500 mm")
                self.assertAlmostEqual(cuts[0].remaining_length, 328.5)
                self.assertAlmostEqual(cuts[1].remaining_length, 564.5)

    def test_efficiency_matches_totals(self):
        cuts = run_heuristic("ffd", self.items, [6100.0], self.constraints, self.cost_model)
        summary = summarize(cuts, self.constraints, self.cost_model)
        stock = sum(cut.stock_length for cut in cuts)
        waste = sum(cut.remaining_length for cut in cuts)
        self.assertAlmostEqual(summary.total_waste, 893.0)
        self.assertAlmostEqual(summary.efficiency, (stock - waste) / stock * 100)

    def test_best_fit_prefers_tightest_bar(self):
        items = [
            OptimizationItem(profile_type="P", length=5000, quantity=1),
            OptimizationItem(profile_type="P", length=4000, quantity=1),
            OptimizationItem(profile_type="P", length=900, quantity=1),
        ]
        constraints = Constraints(kerf_width=0, start_safety=0, end_safety=0)
        bfd = run_heuristic("bfd", items, [6100.0], constraints, self.cost_model)
        wfd = run_heuristic("wfd", items, [6100.0], constraints, self.cost_model)
        # 900 cabe nas duas barras: BFD escolhe a de 5000 (sobra 200), WFD a de 4000
        self.assertEqual(bfd[0].plan_label, "1 × 5000 mm + 1 × 900 mm")
        self.assertEqual(wfd[1].plan_label, "1 × 4000 mm + 1 × 900 mm")

    def test_next_fit_never_revisits_closed_bars(self):
        items = [
            OptimizationItem(profile_type="P", length=4000, quantity=1),
            OptimizationItem(profile_type="P", length=3000, quantity=1),
            OptimizationItem(profile_type="P", length=2000, quantity=1),
        ]
        constraints = Constraints(kerf_width=0, start_safety=0, end_safety=0)
        nfd = run_heuristic("nfd", items, [6100.0], constraints, self.cost_model)
        ffd = run_heuristic("ffd", items, [6100.0], constraints, self.cost_model)
        self.assertEqual(nfd[1].plan_label, "1 × 3000 mm + 1 × 2000 mm")
        self.assertEqual(ffd[0].plan_label, "1 × 4000 mm + 1 × 2000 mm")

    def test_max_cuts_per_stock_opens_new_bar(self):
        items = [OptimizationItem(profile_type="P", length=10, quantity=5)]
        constraints = Constraints(max_cuts_per_stock=2)
        cuts = run_heuristic("ffd", items, [6100.0], constraints, self.cost_model)
        self.assertEqual([cut.segment_count for cut in cuts], [2, 2, 1])

    def test_sequence_packing_keeps_order(self):
        pieces = [
            OptimizationItem(profile_type="P", length=500, quantity=1),
            OptimizationItem(profile_type="P", length=1000, quantity=1),
        ]
        cuts = pack_in_sequence(pieces, [6100.0], self.constraints, self.cost_model)
        self.assertEqual([s.length for s in cuts[0].segments], [500, 1000])


class TestMonotonicity(unittest.TestCase):

    def test_kerf_increases_kerf_loss(self):
        items = mixed_order()
        without = summarize(run_heuristic("ffd", items, [6100.0], Constraints(kerf_width=0), CostModel()),
                            Constraints(kerf_width=0), CostModel())
        with_kerf = summarize(run_heuristic("ffd", items, [6100.0], Constraints(kerf_width=3.5), CostModel()),
                              Constraints(kerf_width=3.5), CostModel())
        self.assertEqual(without.total_kerf_loss, 0)
        self.assertGreater(with_kerf.total_kerf_loss, without.total_kerf_loss)

    def test_safety_increases_safety_reserve(self):
        items = mixed_order()
        low = Constraints(start_safety=0, end_safety=0)
        high = Constraints(start_safety=5, end_safety=5)
        low_summary = summarize(run_heuristic("ffd", items, [6100.0], low, CostModel()), low, CostModel())
        high_summary = summarize(run_heuristic("ffd", items, [6100.0], high, CostModel()), high, CostModel())
        self.assertEqual(low_summary.total_safety_reserve, 0)
        self.assertGreater(high_summary.total_safety_reserve, low_summary.total_safety_reserve)

    def test_efficiency_counts_kerf_and_safety_as_used(self):
        # mesmas duas barras: kerf e margens viram comprimento usado, não sobra
        items = mixed_order()
        for low, high in [
            (Constraints(kerf_width=0), Constraints(kerf_width=3.5)),
            (Constraints(start_safety=0, end_safety=0), Constraints(start_safety=5, end_safety=5)),
        ]:
            with self.subTest(low=low, high=high):
                low_summary = summarize(run_heuristic("ffd", items, [6100.0], low, CostModel()), low, CostModel())
                high_summary = summarize(run_heuristic("ffd", items, [6100.0], high, CostModel()), high, CostModel())
                self.assertEqual(low_summary.stock_count, 2)
                self.assertEqual(high_summary.stock_count, 2)
                self.assertGreater(high_summary.efficiency, low_summary.efficiency)
                self.assertLess(high_summary.total_waste, low_summary.total_waste)


if __name__ == "__main__":
    unittest.main()
