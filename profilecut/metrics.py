"""
Síntese de resultados: métricas, custos, fronteira de Pareto e recomendações
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .models import (
    Constraints, CostModel, Cut, CostBreakdown, PerformanceMetrics,
    ParetoPoint, Recommendation, WasteDistribution, OptimizationResult,
    Priority, WasteCategory
)

TIME_COMPLEXITY = {
    "ffd": "O(n²)",
    "bfd": "O(n²)",
    "nfd": "O(n)",
    "wfd": "O(n²)",
    "genetic": "O(n²)",
    "simulated-annealing": "O(n²)",
    "branch-and-bound": "O(2^n)",
    "pooling": "O(n²)",
}

SCALABILITY = {
    "ffd": 8,
    "bfd": 8,
    "nfd": 9,
    "wfd": 6,
    "genetic": 7,
    "simulated-annealing": 7,
    "branch-and-bound": 3,
    "pooling": 8,
}


@dataclass
class PackingSummary:
    """Totais de uma lista de barras finalizadas"""
    stock_count: int
    total_segments: int
    total_stock_length: float
    total_waste: float
    total_length: float
    efficiency: float
    setup_time: float
    cutting_time: float
    total_kerf_loss: float
    total_safety_reserve: float
    cost_breakdown: CostBreakdown

    @property
    def total_time(self) -> float:
        return self.setup_time + self.cutting_time

    @property
    def total_cost(self) -> float:
        return self.cost_breakdown.total_cost


def summarize(cuts: Sequence[Cut], constraints: Constraints, cost_model: CostModel) -> PackingSummary:
    stock_count = len(cuts)
    total_segments = sum(cut.segment_count for cut in cuts)
    total_stock = sum(cut.stock_length for cut in cuts)
    total_waste = sum(cut.remaining_length for cut in cuts)
    total_length = sum(cut.used_length for cut in cuts)
    efficiency = (total_stock - total_waste) / total_stock * 100 if total_stock > 0 else 0.0

    setup_time = stock_count * config.SETUP_TIME_PER_STOCK
    cutting_time = total_segments * config.CUTTING_TIME_PER_SEGMENT

    breakdown = CostBreakdown(
        material_cost=total_length * cost_model.material_cost,
        cutting_cost=total_segments * cost_model.cutting_cost,
        setup_cost=stock_count * cost_model.setup_cost,
        waste_cost=total_waste * cost_model.waste_cost,
        time_cost=(setup_time + cutting_time) * cost_model.time_cost,
        energy_cost=stock_count * constraints.energy_per_stock * cost_model.energy_cost,
    )
    breakdown.total_cost = (
        breakdown.material_cost + breakdown.cutting_cost + breakdown.setup_cost
        + breakdown.waste_cost + breakdown.time_cost + breakdown.energy_cost
    )

    return PackingSummary(
        stock_count=stock_count,
        total_segments=total_segments,
        total_stock_length=total_stock,
        total_waste=total_waste,
        total_length=total_length,
        efficiency=efficiency,
        setup_time=setup_time,
        cutting_time=cutting_time,
        total_kerf_loss=sum(cut.kerf_loss for cut in cuts),
        total_safety_reserve=stock_count * (constraints.start_safety + constraints.end_safety),
        cost_breakdown=breakdown,
    )


def pareto_point(summary: PackingSummary, algorithm: str) -> ParetoPoint:
    return ParetoPoint(
        waste=summary.total_waste,
        cost=summary.total_cost,
        time=summary.total_time,
        efficiency=summary.efficiency,
        algorithm=algorithm,
    )


def dominates(a: ParetoPoint, b: ParetoPoint) -> bool:
    """a domina b: não pior em todos os objetivos e melhor em ao menos um"""
    no_worse = (a.waste <= b.waste and a.cost <= b.cost and a.time <= b.time
                and a.efficiency >= b.efficiency)
    better = (a.waste < b.waste or a.cost < b.cost or a.time < b.time
              or a.efficiency > b.efficiency)
    return no_worse and better


def pareto_frontier(points: Sequence[ParetoPoint]) -> List[ParetoPoint]:
    """Remove pontos dominados e duplicatas (mantém o primeiro)"""
    frontier: List[ParetoPoint] = []
    for point in points:
        if any(dominates(other, point) for other in points):
            continue
        duplicate = any(
            (p.waste, p.cost, p.time, p.efficiency) == (point.waste, point.cost, point.time, point.efficiency)
            for p in frontier
        )
        if not duplicate:
            frontier.append(point)
    return frontier


def waste_distribution(cuts: Sequence[Cut]) -> WasteDistribution:
    distribution = WasteDistribution(total_pieces=sum(cut.segment_count for cut in cuts))
    for cut in cuts:
        category = WasteCategory(cut.waste_category).value
        setattr(distribution, category, getattr(distribution, category) + 1)
        if cut.is_reclaimable:
            distribution.reclaimable += 1
    return distribution


def confidence_score(efficiency: float, total_waste: float, total_cost: float) -> int:
    confidence = 100.0
    confidence *= 0.4 * (efficiency / 100) + 0.6
    confidence *= 0.3 * max(0.0, 1 - total_waste / 10000) + 0.7
    confidence *= 0.3 * max(0.0, 1 - total_cost / 10000) + 0.7
    return int(max(0, min(100, round(confidence))))


def efficiency_category(efficiency: float) -> str:
    if efficiency >= 90:
        return "excellent"
    if efficiency >= 80:
        return "good"
    if efficiency >= 70:
        return "average"
    return "poor"


def recommendations(efficiency: float) -> List[Recommendation]:
    result = []
    if efficiency < config.RECOMMENDATION_EFFICIENCY_THRESHOLD:
        critical = efficiency < config.CRITICAL_EFFICIENCY_THRESHOLD
        result.append(Recommendation(
            type="algorithm-change",
            priority=Priority.HIGH if critical else Priority.MEDIUM,
            message="Consider using a more advanced optimization algorithm",
            description=f"Eficiência de {efficiency:.1f}% abaixo de "
                        f"{config.RECOMMENDATION_EFFICIENCY_THRESHOLD:.0f}%",
            expected_improvement=15,
            implementation_effort="medium",
            severity="critical" if critical else "warning",
            impact="high",
        ))
    return result


def memory_estimate(piece_count: int) -> float:
    return float(round(piece_count * 0.1 * min(10, piece_count / 100)))


def build_result(cuts: List[Cut], algorithm: str, constraints: Constraints, cost_model: CostModel,
                 piece_count: int, alternatives: Sequence[ParetoPoint] = (),
                 request_id: Optional[str] = None, execution_time_ms: float = 0.0,
                 cpu_usage: float = 0.0, convergence_rate: float = config.DEFAULT_CONVERGENCE_RATE,
                 metadata: Optional[Dict[str, Any]] = None) -> OptimizationResult:
    """Monta o OptimizationResult a partir de barras já finalizadas"""
    summary = summarize(cuts, constraints, cost_model)
    bars = summary.stock_count
    distribution = waste_distribution(cuts)

    own_point = pareto_point(summary, algorithm)
    frontier = pareto_frontier([own_point, *alternatives])

    waste_percentage = (summary.total_waste / summary.total_stock_length * 100
                        if summary.total_stock_length > 0 else 0.0)
    meters = summary.total_length / 1000

    return OptimizationResult(
        request_id=request_id,
        algorithm=algorithm,
        cuts=cuts,
        efficiency=summary.efficiency,
        total_waste=summary.total_waste,
        total_cost=summary.total_cost,
        total_length=summary.total_length,
        stock_count=bars,
        total_segments=summary.total_segments,
        cost_breakdown=summary.cost_breakdown,
        performance_metrics=PerformanceMetrics(
            time_complexity=TIME_COMPLEXITY.get(algorithm, "O(n²)"),
            space_complexity="O(n)",
            convergence_rate=convergence_rate,
            scalability=SCALABILITY.get(algorithm, 5),
            memory_usage=memory_estimate(piece_count),
            cpu_usage=cpu_usage,
        ),
        pareto_frontier=frontier,
        recommendations=recommendations(summary.efficiency),
        confidence=confidence_score(summary.efficiency, summary.total_waste, summary.total_cost),
        total_kerf_loss=summary.total_kerf_loss,
        total_safety_reserve=summary.total_safety_reserve,
        waste_distribution=distribution,
        waste_percentage=waste_percentage,
        reclaimable_waste_percentage=distribution.reclaimable / bars * 100 if bars else 0.0,
        average_waste=summary.total_waste / bars if bars else 0.0,
        average_cuts_per_stock=summary.total_segments / bars if bars else 0.0,
        setup_time=summary.setup_time,
        cutting_time=summary.cutting_time,
        total_time=summary.total_time,
        efficiency_category=efficiency_category(summary.efficiency),
        quality_score=max(0.0, min(100.0, summary.efficiency - summary.total_waste / 100)),
        cost_per_meter=summary.total_cost / meters if meters > 0 else 0.0,
        execution_time_ms=execution_time_ms,
        metadata=metadata or {},
    )
