"""
Autoteste de invariantes do pooling

Executa baseline e pooling sobre a mesma entrada e confere as identidades
contábeis, o ganho de sobra e o fallback forçado.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from .accounting import normalize_stock_lengths
from .heuristics import first_fit_decreasing
from .metrics import build_result
from .models import (
    OptimizationItem, MaterialStockLength, Constraints, CostModel,
    OptimizationResult, PoolingThresholds
)
from .pooling import PoolingEngine

logger = logging.getLogger("profilecut-selftest")

TOLERANCE = 1e-6
TINY_ITEM_LENGTH = 687.0
TINY_ITEM_LABEL = "1 × 687 mm"


@dataclass
class SelfTestReport:
    passed: bool = True
    checks: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    def record(self, name: str, problems: Sequence[str]):
        if problems:
            self.passed = False
            self.failures.extend(f"{name}: {problem}" for problem in problems)
        else:
            self.checks.append(name)


def assert_invariants(name: str, result: OptimizationResult, input_lengths: Iterable[float]) -> List[str]:
    """Lista de problemas encontrados (vazia quando tudo confere)"""
    allowed = set(input_lengths)
    problems = []
    for cut in result.cuts:
        if abs(cut.used_length + cut.remaining_length - cut.stock_length) > 1e-9:
            problems.append(f"{name}/{cut.id}: usado + sobra != barra")
        if cut.segment_count != len(cut.segments):
            problems.append(f"{name}/{cut.id}: segment_count diverge dos segmentos")
        if sum(entry.count for entry in cut.plan) != cut.segment_count:
            problems.append(f"{name}/{cut.id}: plano diverge de segment_count")
        illegal = sorted({s.length for s in cut.segments if s.length not in allowed})
        if illegal:
            problems.append(f"{name}/{cut.id}: comprimentos fora da entrada {illegal}")

    used = sum(cut.used_length for cut in result.cuts)
    if abs(used - result.total_length) > TOLERANCE:
        problems.append(f"{name}: total_length {result.total_length} != soma usada {used}")
    if not math.isfinite(result.efficiency) or not math.isfinite(result.total_waste):
        problems.append(f"{name}: métricas não finitas")
    return problems


def _result(cuts, algorithm, constraints, cost_model, piece_count) -> OptimizationResult:
    return build_result(cuts, algorithm, constraints, cost_model, piece_count)


def run_pooling_self_test(items: Sequence[OptimizationItem],
                          stock_lengths: Sequence[MaterialStockLength] = None,
                          constraints: Constraints = None,
                          cost_model: CostModel = None) -> SelfTestReport:
    constraints = constraints or Constraints()
    cost_model = cost_model or CostModel()
    lengths = normalize_stock_lengths(stock_lengths)
    input_lengths = {item.length for item in items}
    piece_count = sum(item.quantity for item in items)
    report = SelfTestReport()

    permissive = PoolingThresholds(waste_reduction_min=0.0, efficiency_drop_max=0.2, mixed_bar_ratio_max=0.3)
    outcome = PoolingEngine(lengths, constraints, cost_model, permissive).run(items)
    baseline = _result(outcome.baseline_cuts, "pooling", constraints, cost_model, piece_count)
    pooled = _result(outcome.cuts, "pooling", constraints, cost_model, piece_count)

    report.record("baseline-invariants", assert_invariants("baseline", baseline, input_lengths))
    report.record("pooled-invariants", assert_invariants("pooled", pooled, input_lengths))

    problems = []
    if pooled.total_waste > baseline.total_waste + TOLERANCE:
        problems.append(f"sobra agrupada {pooled.total_waste} > baseline {baseline.total_waste}")
    if baseline.efficiency - pooled.efficiency > permissive.efficiency_drop_max + TOLERANCE:
        problems.append(f"queda de eficiência {baseline.efficiency - pooled.efficiency:.4f} pp")
    report.record("pooled-not-worse", problems)

    unreachable = PoolingThresholds(waste_reduction_min=float("inf"), efficiency_drop_max=0.0,
                                    mixed_bar_ratio_max=0.0)
    forced = PoolingEngine(lengths, constraints, cost_model, unreachable).run(items)
    fallback = _result(forced.cuts, "pooling", constraints, cost_model, piece_count)
    problems = []
    if forced.decision.adopted:
        problems.append("pooling adotado com limiar inatingível")
    if abs(fallback.total_waste - baseline.total_waste) > TOLERANCE:
        problems.append(f"fallback {fallback.total_waste} != baseline {baseline.total_waste}")
    report.record("forced-fallback", problems)

    tiny = [OptimizationItem(profile_type="SELFTEST", length=TINY_ITEM_LENGTH, quantity=1,
                             work_order_id="SELFTEST")]
    tiny_cuts = first_fit_decreasing(tiny, [6100.0], constraints, cost_model)
    label = tiny_cuts[0].plan_label if tiny_cuts else ""
    report.record("tiny-label", [] if label == TINY_ITEM_LABEL else [f"rótulo '{label}'"])

    if report.passed:
        logger.info("Autoteste de pooling aprovado (%d verificações)", len(report.checks))
    else:
        logger.error("Autoteste de pooling falhou: %s", report.failures)
    return report
