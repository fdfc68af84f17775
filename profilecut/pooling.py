"""
Pooling de perfis entre ordens de produção

Peças do mesmo perfil (mesma matriz, liga, acabamento e tolerância) de ordens
diferentes são agrupadas e cortadas juntas com padrões de barra. O resultado
agrupado só substitui o baseline (FFD por ordem) quando melhora a sobra sem
perder eficiência e sem misturar ordens demais.
"""

import logging
import math
from collections import Counter, OrderedDict
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .accounting import (
    expand_items, finalize_cuts, max_pieces_on_bar, new_stock, place_piece,
    renumber_cuts, validate_global_invariants
)
from .heuristics import first_fit_decreasing
from .metrics import PackingSummary, summarize
from .models import (
    OptimizationItem, Constraints, CostModel, Cut, PoolingThresholds
)

logger = logging.getLogger("profilecut-pooling")

MIXED_PATTERNS_PER_PAIR = 3


@dataclass
class DemandVector:
    length: float
    quantity: int = 0
    work_orders: Dict[str, int] = field(default_factory=OrderedDict)


@dataclass
class ProfilePool:
    key: str
    profile_type: str
    demands: Dict[float, DemandVector] = field(default_factory=OrderedDict)

    @property
    def lengths(self) -> List[float]:
        return sorted(self.demands, reverse=True)


@dataclass
class BarPattern:
    stock_length: float
    plan: List[Tuple[float, int]]     # (comprimento, quantidade), maior primeiro
    used_length: float
    remaining_length: float

    @property
    def pieces(self) -> int:
        return sum(count for _, count in self.plan)


@dataclass
class PoolingDecision:
    adopted: bool
    reason: str
    baseline_waste: float
    pooled_waste: Optional[float]
    baseline_efficiency: float
    pooled_efficiency: Optional[float]
    mixed_ratio: float

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class PoolingOutcome:
    cuts: List[Cut]
    baseline_cuts: List[Cut]
    pooled_cuts: Optional[List[Cut]]
    decision: PoolingDecision


def pool_key(item: OptimizationItem) -> str:
    return "|".join([
        item.profile_type,
        item.die_id or config.POOL_DEFAULT_DIE,
        item.alloy or config.POOL_DEFAULT_ALLOY,
        item.surface or config.POOL_DEFAULT_SURFACE,
        item.tolerance or config.POOL_DEFAULT_TOLERANCE,
    ])


def collect_pools(items: Sequence[OptimizationItem]) -> List[ProfilePool]:
    """Agrupa a demanda por chave de pool, na ordem em que aparece"""
    pools: Dict[str, ProfilePool] = OrderedDict()
    for item in items:
        key = pool_key(item)
        pool = pools.setdefault(key, ProfilePool(key=key, profile_type=item.profile_type))
        demand = pool.demands.setdefault(item.length, DemandVector(length=item.length))
        demand.quantity += item.quantity
        demand.work_orders[item.work_order_id] = demand.work_orders.get(item.work_order_id, 0) + item.quantity
    return list(pools.values())


def pattern_used_length(plan: Sequence[Tuple[float, int]], constraints: Constraints) -> float:
    pieces = sum(count for _, count in plan)
    total = sum(length * count for length, count in plan)
    kerfs = max(0, pieces - 1) * constraints.kerf_width
    return constraints.start_safety + constraints.end_safety + total + kerfs


def _pattern(stock_length: float, plan: List[Tuple[float, int]], constraints: Constraints) -> BarPattern:
    used = pattern_used_length(plan, constraints)
    return BarPattern(stock_length=stock_length, plan=plan, used_length=used,
                      remaining_length=stock_length - used)


def generate_patterns(pool: ProfilePool, stock_lengths: Sequence[float],
                      constraints: Constraints) -> List[BarPattern]:
    """
    Padrões de barra para o pool

    Padrões simples repetem um comprimento o máximo possível. Padrões mistos
    combinam dois comprimentos: para cada quantidade do maior, o espaço
    restante é preenchido com o menor; guardam-se os de menor sobra.
    """
    k = constraints.kerf_width
    s1, s2 = constraints.start_safety, constraints.end_safety
    max_cuts = constraints.max_cuts_per_stock
    lengths = pool.lengths
    patterns = []

    for stock_length in stock_lengths:
        for length in lengths:
            count = min(max_pieces_on_bar(length, stock_length, k, s1, s2), max_cuts)
            if count > 0:
                patterns.append(_pattern(stock_length, [(length, count)], constraints))

        for i, longer in enumerate(lengths):
            longer_max = min(max_pieces_on_bar(longer, stock_length, k, s1, s2), max_cuts)
            for shorter in lengths[i + 1:]:
                mixed = []
                for longer_count in range(longer_max, 0, -1):
                    used = pattern_used_length([(longer, longer_count)], constraints)
                    shorter_count = math.floor((stock_length - used + 1e-9) / (shorter + k))
                    shorter_count = min(shorter_count, max_cuts - longer_count)
                    if shorter_count > 0:
                        mixed.append(_pattern(stock_length, [(longer, longer_count), (shorter, shorter_count)],
                                              constraints))
                mixed.sort(key=lambda p: p.remaining_length)
                patterns.extend(mixed[:MIXED_PATTERNS_PER_PAIR])
    return patterns


def select_patterns(pool: ProfilePool, patterns: Sequence[BarPattern],
                    constraints: Constraints) -> Tuple[List[BarPattern], Dict[float, int]]:
    """
    Seleção gulosa de padrões até esgotar a demanda

    Cada padrão é recortado para a demanda ainda não atendida e pontuado por
    peças / (sobra + 1). Retorna as barras escolhidas e a demanda que sobrou.
    """
    remaining = {length: demand.quantity for length, demand in pool.demands.items()}
    selected = []
    while any(remaining.values()):
        best, best_score = None, -1.0
        for pattern in patterns:
            clipped = [(length, min(count, remaining[length])) for length, count in pattern.plan]
            clipped = [(length, count) for length, count in clipped if count > 0]
            if not clipped:
                continue
            candidate = _pattern(pattern.stock_length, clipped, constraints)
            score = candidate.pieces / (candidate.remaining_length + 1)
            if score > best_score:
                best, best_score = candidate, score
        if best is None:
            break
        selected.append(best)
        for length, count in best.plan:
            remaining[length] -= count
    return selected, {length: qty for length, qty in remaining.items() if qty > 0}


def distribute_to_work_orders(pool: ProfilePool,
                              bars: Sequence[BarPattern]) -> List[List[Tuple[float, str]]]:
    """
    Devolve, para cada barra, a lista (comprimento, ordem) de suas peças

    Cada ordem recebe o piso da sua fatia proporcional da necessidade
    restante; as peças que sobram vão, uma a uma, para a ordem com maior
    necessidade ainda não atendida.
    """
    needs = {length: OrderedDict(demand.work_orders) for length, demand in pool.demands.items()}
    assignments = []
    for bar in bars:
        pieces = []
        for length, count in bar.plan:
            open_needs = OrderedDict((wo, need) for wo, need in needs[length].items() if need > 0)
            total = sum(open_needs.values())
            shares = OrderedDict((wo, math.floor(count * need / total)) for wo, need in open_needs.items())

            leftover = count - sum(shares.values())
            while leftover > 0:
                target = max(open_needs, key=lambda wo: open_needs[wo] - shares[wo])
                shares[target] += 1
                leftover -= 1

            for wo, share in shares.items():
                needs[length][wo] -= share
                pieces.extend([(length, wo)] * share)
        assignments.append(pieces)
    return assignments


def build_pool_cuts(pool: ProfilePool, bars: Sequence[BarPattern],
                    assignments: Sequence[List[Tuple[float, str]]], first_index: int,
                    constraints: Constraints, cost_model: CostModel) -> List[Cut]:
    cuts = []
    for offset, (bar, pieces) in enumerate(zip(bars, assignments)):
        cut = new_stock(bar.stock_length, first_index + offset, constraints, pool.profile_type)
        for length, work_order_id in pieces:
            piece = OptimizationItem(profile_type=pool.profile_type, length=length,
                                     quantity=1, work_order_id=work_order_id)
            place_piece(cut, piece, constraints, cost_model)
        breakdown = Counter(work_order_id for _, work_order_id in pieces)
        cut.work_order_breakdown = dict(breakdown)
        cut.is_mixed = len(breakdown) > 1
        cut.pool_key = pool.key
        cuts.append(cut)
    return finalize_cuts(cuts, constraints)


def optimize_pooled(items: Sequence[OptimizationItem], stock_lengths: Sequence[float],
                    constraints: Constraints, cost_model: CostModel) -> Tuple[List[Cut], Dict[str, dict]]:
    """Corta cada pool com padrões; devolve as barras e a demanda não atendida por pool"""
    cuts: List[Cut] = []
    unmet = {}
    for pool in collect_pools(items):
        patterns = generate_patterns(pool, stock_lengths, constraints)
        bars, missing = select_patterns(pool, patterns, constraints)
        if missing:
            unmet[pool.key] = missing
            continue
        assignments = distribute_to_work_orders(pool, bars)
        cuts.extend(build_pool_cuts(pool, bars, assignments, len(cuts), constraints, cost_model))
        logger.debug("Pool %s: %d padrões, %d barras", pool.key, len(patterns), len(bars))
    return cuts, unmet


def optimize_per_work_order(items: Sequence[OptimizationItem], stock_lengths: Sequence[float],
                            constraints: Constraints, cost_model: CostModel) -> List[Cut]:
    """Baseline: FFD executado separadamente para cada ordem de produção"""
    by_work_order: Dict[str, List[OptimizationItem]] = OrderedDict()
    for item in items:
        by_work_order.setdefault(item.work_order_id, []).append(item)

    cuts: List[Cut] = []
    for work_order_id, group in by_work_order.items():
        group_cuts = first_fit_decreasing(group, stock_lengths, constraints, cost_model)
        for cut in group_cuts:
            cut.work_order_breakdown = {work_order_id: cut.segment_count}
        cuts.extend(group_cuts)
    return renumber_cuts(cuts)


def mixed_ratio(cuts: Sequence[Cut]) -> float:
    return sum(1 for cut in cuts if cut.is_mixed) / len(cuts) if cuts else 0.0


def decide_adoption(baseline: PackingSummary, pooled: PackingSummary, ratio: float,
                    thresholds: PoolingThresholds) -> PoolingDecision:
    """O agrupado só é adotado se passar nos três limiares"""
    required_reduction = baseline.total_waste * thresholds.waste_reduction_min
    reduction = baseline.total_waste - pooled.total_waste
    efficiency_drop = baseline.efficiency - pooled.efficiency

    reasons = []
    if not reduction >= required_reduction:
        reasons.append("waste-reduction-below-minimum")
    if efficiency_drop > thresholds.efficiency_drop_max:
        reasons.append("efficiency-drop-above-maximum")
    if ratio > thresholds.mixed_bar_ratio_max:
        reasons.append("mixed-bar-ratio-above-maximum")

    return PoolingDecision(
        adopted=not reasons,
        reason=",".join(reasons) or "accepted",
        baseline_waste=baseline.total_waste,
        pooled_waste=pooled.total_waste,
        baseline_efficiency=baseline.efficiency,
        pooled_efficiency=pooled.efficiency,
        mixed_ratio=ratio,
    )


class PoolingEngine:
    """Compara o baseline por ordem com o corte agrupado e escolhe um deles"""

    def __init__(self, stock_lengths: Sequence[float], constraints: Constraints,
                 cost_model: CostModel, thresholds: PoolingThresholds = None):
        self.stock_lengths = stock_lengths
        self.constraints = constraints
        self.cost_model = cost_model
        self.thresholds = thresholds or PoolingThresholds()

    def run(self, items: Sequence[OptimizationItem]) -> PoolingOutcome:
        expected = len(expand_items(items))
        input_lengths = {item.length for item in items}

        baseline_cuts = optimize_per_work_order(items, self.stock_lengths, self.constraints, self.cost_model)
        baseline = summarize(baseline_cuts, self.constraints, self.cost_model)

        pooled_cuts, unmet = optimize_pooled(items, self.stock_lengths, self.constraints, self.cost_model)
        if unmet:
            logger.warning("Pooling sem padrão para toda a demanda %s; mantendo baseline", unmet)
            decision = PoolingDecision(
                adopted=False, reason="unmet-demand",
                baseline_waste=baseline.total_waste, pooled_waste=None,
                baseline_efficiency=baseline.efficiency, pooled_efficiency=None,
                mixed_ratio=0.0,
            )
            return PoolingOutcome(cuts=baseline_cuts, baseline_cuts=baseline_cuts,
                                  pooled_cuts=None, decision=decision)

        validate_global_invariants(pooled_cuts, expected_pieces=expected, input_lengths=input_lengths)
        pooled = summarize(pooled_cuts, self.constraints, self.cost_model)
        decision = decide_adoption(baseline, pooled, mixed_ratio(pooled_cuts), self.thresholds)
        logger.info("Pooling %s: sobra %.1f -> %.1f mm, eficiência %.2f%% -> %.2f%%, mistas %.0f%%",
                    "adotado" if decision.adopted else "rejeitado",
                    baseline.total_waste, pooled.total_waste,
                    baseline.efficiency, pooled.efficiency, decision.mixed_ratio * 100)

        chosen = pooled_cuts if decision.adopted else baseline_cuts
        return PoolingOutcome(cuts=chosen, baseline_cuts=baseline_cuts,
                              pooled_cuts=pooled_cuts, decision=decision)
