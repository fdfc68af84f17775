"""
Gerador congruencial linear determinístico

A sequência é parte do contrato: a mesma semente produz os mesmos
resultados do algoritmo genético e do simulated annealing.
"""

from typing import List, TypeVar

from . import config

T = TypeVar("T")

_MULTIPLIER = 1664525
_INCREMENT = 1013904223
_MODULUS = 4294967296  # 2**32


class LinearCongruentialRNG:
    """LCG com estado persistente entre chamadas"""

    def __init__(self, seed: int = config.RNG_SEED):
        self.seed = seed
        self.state = seed

    def next(self) -> float:
        """Próximo valor em [0, 1)"""
        self.state = (self.state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self.state / _MODULUS

    def randint(self, upper: int) -> int:
        """Inteiro em [0, upper)"""
        return int(self.next() * upper)

    def shuffle(self, values: List[T]) -> List[T]:
        """Fisher-Yates sobre uma cópia da lista"""
        shuffled = list(values)
        for i in range(len(shuffled) - 1, 0, -1):
            j = int(self.next() * (i + 1))
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled
