"""
Simulated annealing a partir da solução FFD
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence

from . import config
from .accounting import rebuild_cut, validate_global_invariants
from .heuristics import first_fit_decreasing
from .models import OptimizationItem, Constraints, CostModel, Cut
from .rng import LinearCongruentialRNG

logger = logging.getLogger("profilecut-annealing")


@dataclass
class AnnealingOutcome:
    cuts: List[Cut]
    energy: float
    iterations: int
    accepted_moves: int


def energy(cuts: Sequence[Cut]) -> float:
    """Sobra total mais penalidade por barra utilizada"""
    return sum(cut.remaining_length for cut in cuts) + config.SA_STOCK_PENALTY * len(cuts)


class SimulatedAnnealing:

    def __init__(self, rng: LinearCongruentialRNG, stock_lengths: Sequence[float],
                 constraints: Constraints, cost_model: CostModel):
        self.rng = rng
        self.stock_lengths = stock_lengths
        self.constraints = constraints
        self.cost_model = cost_model

    def run(self, items: Sequence[OptimizationItem]) -> AnnealingOutcome:
        current = first_fit_decreasing(items, self.stock_lengths, self.constraints, self.cost_model)
        current_energy = energy(current)
        best, best_energy = current, current_energy

        temperature = config.SA_INITIAL_TEMPERATURE
        iterations = 0
        accepted = 0
        while temperature > config.SA_FINAL_TEMPERATURE and iterations < config.SA_MAX_ITERATIONS:
            candidate = self._neighbor(current)
            candidate_energy = energy(candidate)
            delta = candidate_energy - current_energy

            probability = 1.0 if delta < 0 else math.exp(-delta / temperature)
            if self.rng.next() < probability:
                current, current_energy = candidate, candidate_energy
                accepted += 1
                if current_energy < best_energy:
                    best, best_energy = current, current_energy

            temperature *= config.SA_COOLING_RATE
            iterations += 1

        logger.debug("SA: %d iterações, %d movimentos aceitos, energia %.2f",
                     iterations, accepted, best_energy)
        validate_global_invariants(best, expected_pieces=sum(item.quantity for item in items),
                                   input_lengths={item.length for item in items})
        return AnnealingOutcome(cuts=best, energy=best_energy, iterations=iterations,
                                accepted_moves=accepted)

    def _neighbor(self, cuts: List[Cut]) -> List[Cut]:
        """Troca uma peça entre duas barras se ambas continuarem viáveis"""
        count = len(cuts)
        if count < 2:
            return cuts
        i = self.rng.randint(count)
        j = self.rng.randint(count)
        if i == j:
            return cuts

        bar_a, bar_b = cuts[i], cuts[j]
        if not bar_a.segments or not bar_b.segments:
            return cuts
        index_a = self.rng.randint(len(bar_a.segments))
        index_b = self.rng.randint(len(bar_b.segments))
        length_a = bar_a.segments[index_a].length
        length_b = bar_b.segments[index_b].length

        if (bar_a.remaining_length + length_a - length_b < 0
                or bar_b.remaining_length + length_b - length_a < 0):
            return cuts

        pieces_a = list(bar_a.segments)
        pieces_b = list(bar_b.segments)
        pieces_a[index_a], pieces_b[index_b] = pieces_b[index_b], pieces_a[index_a]

        neighbor = list(cuts)
        neighbor[i] = rebuild_cut(bar_a, pieces_a, self.constraints, self.cost_model)
        neighbor[j] = rebuild_cut(bar_b, pieces_b, self.constraints, self.cost_model)
        return neighbor
