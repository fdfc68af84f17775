"""
Backends de cálculo de fitness do algoritmo genético

O backend vetorizado pontua a população inteira em lote com numpy; o backend
de CPU faz o mesmo cálculo item a item. A escolha é feita uma vez, na
construção do CutPlanner, por `probe_fitness_backend`.
"""

import logging
from typing import List, Sequence

import numpy as np

from . import config
from .metrics import PackingSummary
from .models import CostBreakdown, ObjectiveType, OptimizationObjective

logger = logging.getLogger("profilecut-accelerator")

# ordem das colunas da matriz de componentes
OBJECTIVE_ORDER = [
    ObjectiveType.MAXIMIZE_EFFICIENCY,
    ObjectiveType.MINIMIZE_WASTE,
    ObjectiveType.MINIMIZE_COST,
    ObjectiveType.MINIMIZE_TIME,
]


def objective_weights(objectives: Sequence[OptimizationObjective]) -> List[float]:
    """Pesos somados por tipo de objetivo, na ordem de OBJECTIVE_ORDER"""
    weights = [0.0] * len(OBJECTIVE_ORDER)
    for objective in objectives:
        weights[OBJECTIVE_ORDER.index(ObjectiveType(objective.type))] += objective.weight
    return weights


class FitnessBackend:
    """Interface: pontua um lote de empacotamentos em [0, 1]"""
    name = "base"

    def score(self, summaries: Sequence[PackingSummary], weights: Sequence[float]) -> List[float]:
        raise NotImplementedError


class CpuFitnessBackend(FitnessBackend):
    name = "cpu"

    def score(self, summaries, weights):
        scores = []
        for summary in summaries:
            components = (
                summary.efficiency / 100,
                1 - summary.total_waste / summary.total_stock_length if summary.total_stock_length > 0 else 0.0,
                1 - summary.total_cost / (summary.total_cost + config.GA_COST_NORMALIZER),
                1 - summary.total_time / (summary.total_time + config.GA_TIME_NORMALIZER),
            )
            fitness = sum(w * c for w, c in zip(weights, components))
            scores.append(max(0.0, min(1.0, fitness)))
        return scores


class VectorizedFitnessBackend(FitnessBackend):
    name = "numpy"

    def score(self, summaries, weights):
        data = np.array(
            [[s.efficiency, s.total_waste, s.total_stock_length, s.total_cost, s.total_time]
             for s in summaries],
            dtype=np.float64,
        ).reshape(-1, 5)
        efficiency, waste, stock, cost, time_ = data.T

        waste_score = np.zeros_like(waste)
        np.divide(waste, stock, out=waste_score, where=stock > 0)
        waste_score = np.where(stock > 0, 1 - waste_score, 0.0)

        components = np.column_stack([
            efficiency / 100,
            waste_score,
            1 - cost / (cost + config.GA_COST_NORMALIZER),
            1 - time_ / (time_ + config.GA_TIME_NORMALIZER),
        ])
        fitness = components @ np.asarray(weights, dtype=np.float64)
        return np.clip(fitness, 0.0, 1.0).tolist()


def _probe_summary() -> PackingSummary:
    breakdown = CostBreakdown(total_cost=120.0)
    return PackingSummary(
        stock_count=2, total_segments=6, total_stock_length=12200.0, total_waste=900.0,
        total_length=11300.0, efficiency=92.6, setup_time=10.0, cutting_time=12.0,
        total_kerf_loss=14.0, total_safety_reserve=8.0, cost_breakdown=breakdown,
    )


def probe_fitness_backend(preferred: FitnessBackend = None) -> FitnessBackend:
    """Testa o backend acelerado e cai para CPU se ele falhar ou divergir"""
    candidate = preferred or VectorizedFitnessBackend()
    cpu = CpuFitnessBackend()
    if isinstance(candidate, CpuFitnessBackend):
        return candidate

    sample = [_probe_summary()]
    weights = [0.5, 0.3, 0.2, 0.0]
    try:
        expected = cpu.score(sample, weights)
        actual = candidate.score(sample, weights)
    except Exception as exc:
        logger.warning("Backend de fitness %s indisponível (%s); usando CPU", candidate.name, exc)
        return cpu

    if len(actual) != 1 or abs(actual[0] - expected[0]) > 1e-9:
        logger.warning("Backend de fitness %s divergiu no teste; usando CPU", candidate.name)
        return cpu

    logger.info("Backend de fitness selecionado: %s", candidate.name)
    return candidate
