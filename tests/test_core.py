"""
Testes do serviço CutPlanner: validação, precedência de dados e despacho
"""

import unittest
from unittest import mock

from profilecut import (
    CutPlanner, ConfigurationError, InMemoryDataProvider, InvariantViolation,
    UnsupportedAlgorithm, ValidationError
)
from profilecut.metrics import dominates
from profilecut.models import (
    Algorithm, Constraints, MaterialStockLength, OptimizationItem,
    OptimizationObjective, OptimizationRequest, PoolingThresholds
)
from profilecut.samples import sample_items, sample_stock_lengths


def mixed_order():
    return [
        OptimizationItem(profile_type="AL-4020", length=1000, quantity=5, work_order_id="OP-1"),
        OptimizationItem(profile_type="AL-4020", length=750, quantity=3, work_order_id="OP-1"),
        OptimizationItem(profile_type="AL-4020", length=500, quantity=8, work_order_id="OP-2"),
    ]


class FailingStockProvider(InMemoryDataProvider):

    async def get_material_stock_lengths(self):
        raise RuntimeError("banco de dados fora do ar")


class TestValidation(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.planner = CutPlanner()

    async def test_empty_items_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            await self.planner.optimize(OptimizationRequest(items=[]))
        self.assertIn("non-empty items", str(ctx.exception))

    async def test_weights_must_sum_to_one(self):
        objectives = [
            OptimizationObjective(type="minimize-waste", weight=0.5),
            OptimizationObjective(type="minimize-cost", weight=0.4),
        ]
        with mock.patch("profilecut.core.run_heuristic") as packer:
            with self.assertRaises(ValidationError):
                await self.planner.optimize(OptimizationRequest(items=mixed_order(), objectives=objectives))
        packer.assert_not_called()

    async def test_objectives_required(self):
        with self.assertRaises(ValidationError):
            await self.planner.optimize(OptimizationRequest(items=mixed_order(), objectives=[]))

    async def test_piece_longer_than_any_bar(self):
        items = [OptimizationItem(profile_type="P", length=6098, quantity=1)]
        with self.assertRaises(ValidationError):
            await self.planner.optimize(OptimizationRequest(items=items))

    async def test_unknown_algorithm(self):
        with self.assertRaises(UnsupportedAlgorithm):
            await self.planner.optimize(OptimizationRequest(items=mixed_order(), algorithm="simplex"))

    async def test_no_items_and_no_provider(self):
        with self.assertRaises(ConfigurationError):
            await self.planner.optimize(OptimizationRequest())


class TestDataPrecedence(unittest.IsolatedAsyncioTestCase):

    async def test_provider_supplies_missing_inputs(self):
        provider = InMemoryDataProvider(
            items=mixed_order(),
            stock_lengths=[MaterialStockLength(stock_length=7300)],
            constraints=Constraints(kerf_width=0),
        )
        result = await CutPlanner(provider=provider).optimize(OptimizationRequest())
        self.assertEqual({cut.stock_length for cut in result.cuts}, {7300.0})
        self.assertEqual(result.total_kerf_loss, 0)
        self.assertEqual(result.total_segments, 16)

    async def test_explicit_inputs_win_over_provider(self):
        provider = InMemoryDataProvider(
            items=[OptimizationItem(profile_type="P", length=100, quantity=1)],
            stock_lengths=[MaterialStockLength(stock_length=7300)],
        )
        request = OptimizationRequest(items=mixed_order(), stock_lengths=[MaterialStockLength(stock_length=6100)])
        result = await CutPlanner(provider=provider).optimize(request)
        self.assertEqual(result.total_segments, 16)
        self.assertEqual({cut.stock_length for cut in result.cuts}, {6100.0})

    async def test_provider_failure_falls_back_to_defaults(self):
        planner = CutPlanner(provider=FailingStockProvider(items=mixed_order()))
        with self.assertLogs("profilecut-core", level="WARNING"):
            result = await planner.optimize(OptimizationRequest())
        self.assertEqual({cut.stock_length for cut in result.cuts}, {6100.0})

    async def test_work_order_items_from_provider(self):
        planner = CutPlanner(provider=InMemoryDataProvider(items=mixed_order()))
        result = await planner.optimize_work_order("OP-2")
        self.assertEqual(result.total_segments, 8)


class TestDispatch(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.planner = CutPlanner()

    async def test_every_algorithm_produces_consistent_result(self):
        for algorithm in Algorithm:
            with self.subTest(algorithm=algorithm.value):
                result = await self.planner.optimize(
                    OptimizationRequest(items=mixed_order(), algorithm=algorithm.value))
                self.assertEqual(result.algorithm, algorithm.value)
                self.assertEqual(sum(cut.segment_count for cut in result.cuts), 16)
                stock = sum(cut.stock_length for cut in result.cuts)
                waste = sum(cut.remaining_length for cut in result.cuts)
                self.assertAlmostEqual(result.efficiency, (stock - waste) / stock * 100)
                self.assertAlmostEqual(result.total_length, sum(cut.used_length for cut in result.cuts))
                for cut in result.cuts:
                    self.assertAlmostEqual(cut.used_length + cut.remaining_length, cut.stock_length, delta=1e-9)
                for a in result.pareto_frontier:
                    for b in result.pareto_frontier:
                        self.assertFalse(dominates(a, b))

    async def test_request_ids_increase(self):
        first = await self.planner.optimize(OptimizationRequest(items=mixed_order()))
        second = await self.planner.optimize(OptimizationRequest(items=mixed_order()))
        self.assertTrue(first.request_id.startswith("opt-"))
        self.assertTrue(first.request_id.endswith("-1"))
        self.assertTrue(second.request_id.endswith("-2"))

    async def test_rng_stream_continues_between_calls(self):
        request = OptimizationRequest(items=mixed_order(), algorithm="genetic")
        await self.planner.optimize(request)
        state_after_first = self.planner.rng.state
        await self.planner.optimize(request)
        self.assertNotEqual(self.planner.rng.state, state_after_first)

    async def test_same_seed_same_genetic_result(self):
        request = OptimizationRequest(items=mixed_order(), algorithm="genetic")
        a = await CutPlanner(seed=42).optimize(request)
        b = await CutPlanner(seed=42).optimize(request)
        self.assertEqual([c.plan_label for c in a.cuts], [c.plan_label for c in b.cuts])

    async def test_invariant_violation_carries_context(self):
        with mock.patch("profilecut.core.run_heuristic", side_effect=InvariantViolation("barra inconsistente")):
            with self.assertRaises(InvariantViolation) as ctx:
                await self.planner.optimize(OptimizationRequest(items=mixed_order(), algorithm="bfd"))
        self.assertEqual(ctx.exception.algorithm, "bfd")
        self.assertIsNotNone(ctx.exception.request_id)
        self.assertIn("bfd", str(ctx.exception))

    async def test_pooling_decision_in_metadata(self):
        request = OptimizationRequest(items=sample_items(), stock_lengths=sample_stock_lengths(),
                                      algorithm="pooling",
                                      pooling_thresholds=PoolingThresholds(waste_reduction_min=float("inf")))
        result = await self.planner.optimize(request)
        self.assertFalse(result.metadata["pooling"]["adopted"])
        self.assertEqual(result.metadata["strategy"], "per-work-order")

    async def test_low_efficiency_recommendation(self):
        items = [OptimizationItem(profile_type="P", length=1000, quantity=1)]
        result = await self.planner.optimize(OptimizationRequest(items=items))
        self.assertEqual(result.efficiency_category, "poor")
        self.assertEqual(result.recommendations[0].severity, "critical")

    def test_sync_wrapper(self):
        result = CutPlanner().optimize_1d(mixed_order(), stock_lengths=[6100], algorithm="nfd")
        self.assertEqual(result.stock_count, 2)


class TestSelfTest(unittest.IsolatedAsyncioTestCase):

    async def test_passes_on_sample_data(self):
        report = await CutPlanner().run_pooling_self_test(items=sample_items(),
                                                          stock_lengths=sample_stock_lengths())
        self.assertTrue(report.passed, report.failures)
        self.assertIn("forced-fallback", report.checks)
        self.assertIn("tiny-label", report.checks)

    async def test_uses_provider_data(self):
        provider = InMemoryDataProvider(items=sample_items(), stock_lengths=sample_stock_lengths())
        report = await CutPlanner().run_pooling_self_test(provider=provider)
        self.assertTrue(report.passed, report.failures)

    async def test_requires_a_data_source(self):
        with self.assertRaises(ConfigurationError):
            await CutPlanner().run_pooling_self_test()


if __name__ == "__main__":
    unittest.main()
