"""
Testes do pooling de perfis entre ordens de produção
"""

import unittest

from profilecut.models import Constraints, CostModel, OptimizationItem, PoolingThresholds
from profilecut.pooling import (
    BarPattern, PoolingEngine, collect_pools, distribute_to_work_orders,
    generate_patterns, optimize_per_work_order, pool_key, select_patterns
)
from profilecut.samples import sample_items


def item(length, quantity, work_order, profile="AL-4020", **attrs):
    return OptimizationItem(profile_type=profile, length=length, quantity=quantity,
                            work_order_id=work_order, **attrs)


def half_bar_orders():
    """Duas ordens com uma peça de 3000 mm cada: juntas cabem numa barra"""
    return [item(3000, 1, "OP-A"), item(3000, 1, "OP-B")]


class TestPools(unittest.TestCase):

    def test_pool_key_defaults(self):
        self.assertEqual(pool_key(item(1000, 1, "OP-1")), "AL-4020|UNKNOWN|AA6063|E6|TOL-N")
        self.assertEqual(pool_key(item(1000, 1, "OP-1", die_id="D7", alloy="AA6061")),
                         "AL-4020|D7|AA6061|E6|TOL-N")

    def test_demand_merged_across_work_orders(self):
        pools = collect_pools([
            item(1000, 2, "OP-1"),
            item(1000, 3, "OP-2"),
            item(500, 1, "OP-2"),
            item(1000, 1, "OP-3", profile="AL-3030"),
        ])
        self.assertEqual(len(pools), 2)
        demand = pools[0].demands[1000]
        self.assertEqual(demand.quantity, 5)
        self.assertEqual(dict(demand.work_orders), {"OP-1": 2, "OP-2": 3})
        self.assertEqual(pools[0].lengths, [1000, 500])


class TestPatterns(unittest.TestCase):

    def test_single_and_mixed_patterns_fit_the_bar(self):
        pool = collect_pools([item(1200, 4, "OP-1"), item(800, 4, "OP-2")])[0]
        constraints = Constraints()
        patterns = generate_patterns(pool, [6100.0], constraints)

        self.assertIn([(1200, 5)], [p.plan for p in patterns])
        self.assertIn([(800, 7)], [p.plan for p in patterns])
        self.assertTrue(any(len(p.plan) == 2 for p in patterns))
        for pattern in patterns:
            self.assertLessEqual(pattern.used_length, pattern.stock_length)
            self.assertAlmostEqual(pattern.used_length + pattern.remaining_length, pattern.stock_length)

    def test_selection_covers_demand_exactly(self):
        pool = collect_pools([item(1200, 4, "OP-1"), item(800, 4, "OP-2")])[0]
        constraints = Constraints()
        bars, unmet = select_patterns(pool, generate_patterns(pool, [6100.0], constraints), constraints)
        self.assertEqual(unmet, {})
        produced = {}
        for bar in bars:
            for length, count in bar.plan:
                produced[length] = produced.get(length, 0) + count
        self.assertEqual(produced, {1200: 4, 800: 4})

    def test_floor_share_with_remainder_to_largest_need(self):
        pool = collect_pools([item(1000, 1, "OP-A"), item(1000, 1, "OP-B"), item(1000, 1, "OP-C")])[0]
        bar = BarPattern(stock_length=6100, plan=[(1000, 2)], used_length=2007.5, remaining_length=4092.5)
        assignments = distribute_to_work_orders(pool, [bar])
        self.assertEqual(assignments, [[(1000, "OP-A"), (1000, "OP-B")]])

    def test_proportional_distribution(self):
        pool = collect_pools([item(1000, 3, "OP-A"), item(1000, 1, "OP-B")])[0]
        bar = BarPattern(stock_length=6100, plan=[(1000, 4)], used_length=4014.5, remaining_length=2085.5)
        pieces = distribute_to_work_orders(pool, [bar])[0]
        self.assertEqual([wo for _, wo in pieces].count("OP-A"), 3)
        self.assertEqual([wo for _, wo in pieces].count("OP-B"), 1)


class TestAdoption(unittest.TestCase):

    def setUp(self):
        self.constraints = Constraints()
        self.cost_model = CostModel()

    def engine(self, thresholds=None):
        return PoolingEngine([6100.0], self.constraints, self.cost_model, thresholds)

    def test_baseline_runs_each_work_order_separately(self):
        cuts = optimize_per_work_order(half_bar_orders(), [6100.0], self.constraints, self.cost_model)
        self.assertEqual(len(cuts), 2)
        self.assertEqual([cut.id for cut in cuts], ["bar-1", "bar-2"])
        self.assertFalse(any(cut.is_mixed for cut in cuts))

    def test_mixed_ratio_above_threshold_is_rejected(self):
        outcome = self.engine().run(half_bar_orders())
        self.assertFalse(outcome.decision.adopted)
        self.assertIn("mixed-bar-ratio-above-maximum", outcome.decision.reason)
        self.assertIs(outcome.cuts, outcome.baseline_cuts)
        self.assertEqual(len(outcome.pooled_cuts), 1)
        self.assertTrue(outcome.pooled_cuts[0].is_mixed)

    def test_adopted_when_all_thresholds_pass(self):
        thresholds = PoolingThresholds(mixed_bar_ratio_max=1.0)
        outcome = self.engine(thresholds).run(half_bar_orders())
        self.assertTrue(outcome.decision.adopted)
        self.assertEqual(len(outcome.cuts), 1)
        self.assertEqual(outcome.cuts[0].work_order_breakdown, {"OP-A": 1, "OP-B": 1})
        self.assertLess(outcome.decision.pooled_waste, outcome.decision.baseline_waste)

    def test_unreachable_threshold_returns_baseline(self):
        thresholds = PoolingThresholds(waste_reduction_min=float("inf"), efficiency_drop_max=0.0,
                                       mixed_bar_ratio_max=0.0)
        outcome = self.engine(thresholds).run(sample_items())
        self.assertFalse(outcome.decision.adopted)
        self.assertIs(outcome.cuts, outcome.baseline_cuts)

    def test_permissive_thresholds_never_increase_waste(self):
        thresholds = PoolingThresholds(waste_reduction_min=0.0, efficiency_drop_max=0.2, mixed_bar_ratio_max=0.3)
        outcome = self.engine(thresholds).run(sample_items())
        chosen = sum(cut.remaining_length for cut in outcome.cuts)
        baseline = sum(cut.remaining_length for cut in outcome.baseline_cuts)
        self.assertLessEqual(chosen, baseline + 1e-6)

    def test_pooled_cuts_conserve_pieces(self):
        outcome = self.engine(PoolingThresholds(mixed_bar_ratio_max=1.0)).run(sample_items())
        expected = sum(i.quantity for i in sample_items())
        self.assertEqual(sum(cut.segment_count for cut in outcome.pooled_cuts), expected)
        for cut in outcome.pooled_cuts:
            self.assertAlmostEqual(cut.used_length + cut.remaining_length, cut.stock_length, delta=1e-9)
            self.assertEqual(sum(cut.work_order_breakdown.values()), cut.segment_count)

    def test_pools_never_mix_profiles(self):
        outcome = self.engine(PoolingThresholds(mixed_bar_ratio_max=1.0)).run(sample_items())
        for cut in outcome.pooled_cuts:
            self.assertEqual(len({s.profile_type for s in cut.segments}), 1)


if __name__ == "__main__":
    unittest.main()
