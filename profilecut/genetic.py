"""
Algoritmo genético sobre permutações de peças

Cada cromossomo é uma ordem das peças expandidas; o empacotamento é
first-fit na ordem do cromossomo.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from . import config
from .accelerator import CpuFitnessBackend, FitnessBackend, objective_weights
from .accounting import expand_items, validate_global_invariants
from .heuristics import pack_in_sequence
from .metrics import PackingSummary, summarize
from .models import (
    OptimizationItem, Constraints, CostModel, Cut, OptimizationObjective,
    PerformanceSettings, default_objectives
)
from .rng import LinearCongruentialRNG

logger = logging.getLogger("profilecut-genetic")


@dataclass
class Individual:
    chromosome: List[OptimizationItem]
    cuts: List[Cut]
    summary: PackingSummary
    fitness: float = 0.0


@dataclass
class GeneticOutcome:
    cuts: List[Cut]
    fitness: float
    generations_run: int
    backend: str


class GeneticOptimizer:
    """GA com elitismo, torneio, order crossover e mutação por troca"""

    def __init__(self, rng: LinearCongruentialRNG, backend: FitnessBackend,
                 stock_lengths: Sequence[float], constraints: Constraints,
                 cost_model: CostModel, objectives: Sequence[OptimizationObjective] = None,
                 performance: PerformanceSettings = None):
        self.rng = rng
        self.backend = backend
        self.stock_lengths = stock_lengths
        self.constraints = constraints
        self.cost_model = cost_model
        self.weights = objective_weights(objectives or default_objectives())
        performance = performance or PerformanceSettings()
        self.population_size = min(performance.population_size or config.GA_MAX_POPULATION,
                                   config.GA_MAX_POPULATION)
        self.generations = min(performance.generations or config.GA_MAX_GENERATIONS,
                               config.GA_MAX_GENERATIONS)
        self.convergence_threshold = performance.convergence_threshold

    def run(self, items: Sequence[OptimizationItem]) -> GeneticOutcome:
        pieces = expand_items(items)
        input_lengths = {item.length for item in items}

        if len(pieces) == 1:
            # uma única peça: não há ordem a otimizar
            cuts = pack_in_sequence(pieces, self.stock_lengths, self.constraints, self.cost_model)
            validate_global_invariants(cuts, expected_pieces=1, input_lengths=input_lengths)
            individual = self._evaluate([pieces])[0]
            return GeneticOutcome(cuts=cuts, fitness=individual.fitness,
                                  generations_run=0, backend=self.backend.name)

        population = self._evaluate([self.rng.shuffle(pieces) for _ in range(self.population_size)])
        elite_count = math.floor(self.population_size * config.GA_ELITE_FRACTION)
        generations_run = 0

        for generation in range(self.generations):
            population.sort(key=lambda ind: ind.fitness, reverse=True)
            elites = population[:elite_count]

            children = []
            while len(elites) + len(children) < self.population_size:
                parent_a = self._tournament(population)
                parent_b = self._tournament(population)
                if self.rng.next() < config.GA_CROSSOVER_RATE:
                    child = self._order_crossover(parent_a.chromosome, parent_b.chromosome)
                else:
                    child = list(parent_a.chromosome)
                if self.rng.next() < config.GA_MUTATION_RATE:
                    child = self._swap_mutation(child)
                children.append(child)

            population = elites + self._evaluate(children)
            generations_run = generation + 1

            variance = float(np.var([ind.fitness for ind in population]))
            if generation > config.GA_MIN_GENERATIONS_BEFORE_STOP and variance < self.convergence_threshold:
                logger.debug("GA convergiu na geração %d (variância %.6f)", generation, variance)
                break

        best = population[0]
        for individual in population[1:]:
            if individual.fitness > best.fitness:
                best = individual

        validate_global_invariants(best.cuts, expected_pieces=len(pieces), input_lengths=input_lengths)
        return GeneticOutcome(cuts=best.cuts, fitness=best.fitness,
                              generations_run=generations_run, backend=self.backend.name)

    def _evaluate(self, chromosomes: List[List[OptimizationItem]]) -> List[Individual]:
        individuals = []
        for chromosome in chromosomes:
            cuts = pack_in_sequence(chromosome, self.stock_lengths, self.constraints, self.cost_model)
            individuals.append(Individual(chromosome, cuts, summarize(cuts, self.constraints, self.cost_model)))

        summaries = [ind.summary for ind in individuals]
        try:
            scores = self.backend.score(summaries, self.weights)
        except Exception as exc:
            logger.warning("Backend de fitness %s falhou (%s); continuando em CPU", self.backend.name, exc)
            self.backend = CpuFitnessBackend()
            scores = self.backend.score(summaries, self.weights)

        for individual, score in zip(individuals, scores):
            individual.fitness = score
        return individuals

    def _tournament(self, population: List[Individual]) -> Individual:
        best = None
        for _ in range(config.GA_TOURNAMENT_SIZE):
            candidate = population[self.rng.randint(len(population))]
            if best is None or candidate.fitness > best.fitness:
                best = candidate
        return best

    def _order_crossover(self, parent_a: List[OptimizationItem],
                         parent_b: List[OptimizationItem]) -> List[OptimizationItem]:
        """
        Order crossover (OX) com identidades repetidas

        Copia uma fatia inclusiva do pai A e completa com o pai B na ordem,
        pulando tantas ocorrências de cada identidade quantas já vieram da
        fatia. O filho é sempre uma permutação das mesmas peças.
        """
        size = len(parent_a)
        start = self.rng.randint(size)
        end = self.rng.randint(size - start) + start

        child = [None] * size
        child[start:end + 1] = parent_a[start:end + 1]
        reserved = Counter(piece.identity for piece in parent_a[start:end + 1])

        filler = []
        for piece in parent_b:
            if reserved[piece.identity] > 0:
                reserved[piece.identity] -= 1
            else:
                filler.append(piece)

        free_positions = [i for i, gene in enumerate(child) if gene is None]
        for position, piece in zip(free_positions, filler):
            child[position] = piece
        return child

    def _swap_mutation(self, chromosome: List[OptimizationItem]) -> List[OptimizationItem]:
        mutated = list(chromosome)
        i = self.rng.randint(len(mutated))
        j = self.rng.randint(len(mutated))
        mutated[i], mutated[j] = mutated[j], mutated[i]
        return mutated
