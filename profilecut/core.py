"""
Núcleo do sistema ProfileCut: validação, despacho e síntese
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from . import config
from .accelerator import FitnessBackend, probe_fitness_backend
from .accounting import normalize_stock_lengths, preprocess_items, usable_length
from .annealing import SimulatedAnnealing
from .branch_bound import BranchAndBound
from .exceptions import (
    OptimizationError, ValidationError, ConfigurationError, UnsupportedAlgorithm
)
from .genetic import GeneticOptimizer
from .heuristics import POLICIES, run_heuristic
from .metrics import build_result, pareto_point, summarize
from .models import (
    Algorithm, OptimizationItem, MaterialStockLength, Constraints, Cut,
    OptimizationObjective, OptimizationRequest, OptimizationResult,
    PoolingThresholds
)
from .pooling import PoolingEngine
from .providers import DataProvider, UnconfiguredProvider
from .rng import LinearCongruentialRNG
from .selftest import SelfTestReport, run_pooling_self_test

logger = logging.getLogger("profilecut-core")

# (barras, metadados) devolvidos por cada algoritmo
RunnerOutput = Tuple[List[Cut], Dict[str, Any]]

ALGORITHM_DESCRIPTIONS = {
    Algorithm.FFD.value: "First Fit Decreasing - primeira barra que comporta a peça",
    Algorithm.BFD.value: "Best Fit Decreasing - barra com a menor sobra resultante",
    Algorithm.NFD.value: "Next Fit Decreasing - apenas a última barra aberta",
    Algorithm.WFD.value: "Worst Fit Decreasing - barra com a maior sobra resultante",
    Algorithm.GENETIC.value: "Algoritmo genético sobre a ordem das peças",
    Algorithm.SIMULATED_ANNEALING.value: "Simulated annealing a partir do FFD",
    Algorithm.BRANCH_AND_BOUND.value: "Branch-and-bound limitado (minimiza barras)",
    Algorithm.POOLING.value: "Pooling de perfis entre ordens de produção",
}


class CutPlanner:
    """
    Serviço principal de otimização de cortes

    Mantém o contador de requisições, o gerador pseudoaleatório (que não é
    reiniciado entre chamadas) e o backend de fitness escolhido na
    construção. Todo o resto é delegado a funções puras.
    """

    def __init__(self, provider: Optional[DataProvider] = None, seed: int = config.RNG_SEED,
                 fitness_backend: Optional[FitnessBackend] = None,
                 provider_timeout: float = config.PROVIDER_TIMEOUT_S):
        """
        Args:
            provider: Fonte opcional de itens, estoque e restrições
            seed: Semente do gerador congruencial
            fitness_backend: Backend preferido para o GA (testado antes do uso)
            provider_timeout: Tempo máximo de cada chamada ao provider (s)
        """
        self.provider = provider
        self.provider_timeout = provider_timeout
        self.rng = LinearCongruentialRNG(seed)
        self.fitness_backend = probe_fitness_backend(fitness_backend)
        self._request_counter = 0
        self.algorithms = {
            Algorithm.FFD.value: self._run_heuristic,
            Algorithm.BFD.value: self._run_heuristic,
            Algorithm.NFD.value: self._run_heuristic,
            Algorithm.WFD.value: self._run_heuristic,
            Algorithm.GENETIC.value: self._run_genetic,
            Algorithm.SIMULATED_ANNEALING.value: self._run_annealing,
            Algorithm.BRANCH_AND_BOUND.value: self._run_branch_and_bound,
            Algorithm.POOLING.value: self._run_pooling,
        }

    def next_request_id(self) -> str:
        self._request_counter += 1
        return f"opt-{int(time.time() * 1000)}-{self._request_counter}"

    async def optimize(self, request: OptimizationRequest) -> OptimizationResult:
        """
        Otimiza o corte de acordo com a requisição

        Raises:
            ValidationError: entrada inválida (nenhum empacotamento é feito)
            ConfigurationError: sem itens e sem provider de dados
            UnsupportedAlgorithm: algoritmo desconhecido
            InvariantViolation: contabilidade inconsistente (sem resultado parcial)
        """
        request_id = self.next_request_id()
        algorithm = request.algorithm
        start_time = time.perf_counter()
        cpu_start = time.process_time()

        self.validate_objectives(request.objectives)
        items, stock_lengths, constraints = await self._resolve_inputs(request)
        self.validate_items(items, stock_lengths, constraints)
        items = preprocess_items(items)

        runner = self.algorithms.get(algorithm)
        if runner is None:
            raise UnsupportedAlgorithm(
                f"Algoritmo não suportado: {algorithm}. Disponíveis: {', '.join(self.algorithms)}",
                request_id=request_id, algorithm=algorithm,
            )

        logger.info("Otimizando %d itens com %s", len(items), algorithm,
                    extra={"request_id": request_id, "algorithm": algorithm})
        try:
            cuts, metadata = runner(algorithm, items, stock_lengths, constraints, request)
            alternatives = self._greedy_alternatives(algorithm, items, stock_lengths, constraints, request)
        except OptimizationError as exc:
            logger.error("Falha em %s: %s", algorithm, exc,
                         extra={"request_id": request_id, "algorithm": algorithm})
            raise type(exc)(f"[{request_id}] {algorithm}: {exc}",
                            request_id=request_id, algorithm=algorithm) from exc
        except Exception as exc:
            logger.exception("Erro inesperado em %s", algorithm,
                             extra={"request_id": request_id, "algorithm": algorithm})
            raise OptimizationError(f"[{request_id}] {algorithm}: {exc}",
                                    request_id=request_id, algorithm=algorithm) from exc

        elapsed = time.perf_counter() - start_time
        cpu_usage = min(100.0, (time.process_time() - cpu_start) / elapsed * 100) if elapsed > 0 else 0.0
        metadata.update({
            "stock_lengths": stock_lengths,
            "fitness_backend": self.fitness_backend.name,
        })

        result = build_result(
            cuts, algorithm, constraints, request.cost_model,
            piece_count=sum(item.quantity for item in items),
            alternatives=alternatives,
            request_id=request_id,
            execution_time_ms=elapsed * 1000,
            cpu_usage=cpu_usage,
            metadata=metadata,
        )
        logger.info("Concluído: %d barras, eficiência %.2f%%", result.stock_count, result.efficiency,
                    extra={"request_id": request_id, "algorithm": algorithm,
                           "duration_ms": round(elapsed * 1000, 2)})
        return result

    def optimize_sync(self, request: OptimizationRequest) -> OptimizationResult:
        """Versão síncrona de `optimize` para scripts e CLI"""
        return asyncio.run(self.optimize(request))

    def optimize_1d(self, items: List[OptimizationItem], stock_lengths: Sequence[float] = None,
                    algorithm: str = Algorithm.FFD.value, constraints: Constraints = None) -> OptimizationResult:
        """Método de conveniência com comprimentos de barra simples"""
        request = OptimizationRequest(
            items=items,
            stock_lengths=[MaterialStockLength(stock_length=s) for s in stock_lengths] if stock_lengths else None,
            constraints=constraints,
            algorithm=algorithm,
        )
        return self.optimize_sync(request)

    async def optimize_work_order(self, work_order_id: str,
                                  algorithm: str = Algorithm.FFD.value) -> OptimizationResult:
        """Otimiza os itens de uma única ordem buscados no provider"""
        provider = self.provider or UnconfiguredProvider()
        items = await self._call_provider(provider.get_work_order_items(work_order_id))
        return await self.optimize(OptimizationRequest(items=items, algorithm=algorithm))

    async def run_pooling_self_test(self, provider: Optional[DataProvider] = None,
                                    items: Optional[List[OptimizationItem]] = None,
                                    stock_lengths: Optional[List[MaterialStockLength]] = None,
                                    constraints: Optional[Constraints] = None) -> SelfTestReport:
        request = OptimizationRequest(items=items, stock_lengths=stock_lengths, constraints=constraints)
        resolved = await self._resolve_inputs(request, provider or self.provider)
        items, lengths, constraints = resolved
        self.validate_items(items, lengths, constraints)
        return run_pooling_self_test(
            preprocess_items(items),
            [MaterialStockLength(stock_length=s) for s in lengths],
            constraints,
        )

    def list_algorithms(self) -> Dict[str, str]:
        return dict(ALGORITHM_DESCRIPTIONS)

    # ── validação ───────────────────────────────────────────────────

    @staticmethod
    def validate_objectives(objectives: Sequence[OptimizationObjective]):
        if not objectives:
            raise ValidationError("Ao menos um objetivo de otimização é necessário")
        total = sum(objective.weight for objective in objectives)
        if abs(total - 1.0) > config.WEIGHT_SUM_TOLERANCE:
            raise ValidationError(f"Os pesos dos objetivos devem somar 1 (soma atual: {total:.6f})")

    @staticmethod
    def validate_items(items: Sequence[OptimizationItem], stock_lengths: Sequence[float],
                       constraints: Constraints):
        if not items:
            raise ValidationError("Lista de itens vazia: non-empty items required")
        longest = max(usable_length(s, constraints) for s in stock_lengths)
        too_long = sorted({item.length for item in items if item.length > longest})
        if too_long:
            raise ValidationError(
                f"Peças maiores que o comprimento útil da maior barra ({longest} mm): {too_long}"
            )

    # ── resolução de dados ──────────────────────────────────────────

    async def _call_provider(self, call):
        return await asyncio.wait_for(call, timeout=self.provider_timeout)

    async def _resolve_inputs(self, request: OptimizationRequest,
                              provider: Optional[DataProvider] = None
                              ) -> Tuple[List[OptimizationItem], List[float], Constraints]:
        """Precedência: requisição explícita, provider, padrões"""
        provider = provider or self.provider

        if request.items is not None:
            items = list(request.items)
        elif provider is None:
            raise ConfigurationError(
                "Nenhum item informado e nenhum provider de dados configurado")
        else:
            try:
                items = await self._call_provider(provider.get_optimization_items())
            except ConfigurationError:
                raise
            except Exception as exc:
                raise ConfigurationError(f"Falha ao obter itens do provider: {exc}") from exc

        stock = request.stock_lengths
        if not stock and provider is not None:
            stock = await self._provider_fallback(provider.get_material_stock_lengths(), "comprimentos de estoque")
        constraints = request.constraints
        if constraints is None and provider is not None:
            constraints = await self._provider_fallback(provider.get_constraints(), "restrições")

        return items, normalize_stock_lengths(stock), constraints or Constraints()

    async def _provider_fallback(self, call, what: str):
        try:
            return await self._call_provider(call)
        except Exception as exc:
            logger.warning("Provider falhou ao obter %s (%s); usando padrões", what, exc)
            return None

    # ── algoritmos ──────────────────────────────────────────────────

    def _run_heuristic(self, algorithm, items, stock_lengths, constraints, request) -> RunnerOutput:
        cuts = run_heuristic(algorithm, items, stock_lengths, constraints, request.cost_model)
        return cuts, {}

    def _run_genetic(self, algorithm, items, stock_lengths, constraints, request) -> RunnerOutput:
        optimizer = GeneticOptimizer(self.rng, self.fitness_backend, stock_lengths, constraints,
                                     request.cost_model, request.objectives, request.performance)
        outcome = optimizer.run(items)
        return outcome.cuts, {
            "generations": outcome.generations_run,
            "fitness": outcome.fitness,
            "fitness_backend_used": outcome.backend,
        }

    def _run_annealing(self, algorithm, items, stock_lengths, constraints, request) -> RunnerOutput:
        outcome = SimulatedAnnealing(self.rng, stock_lengths, constraints, request.cost_model).run(items)
        return outcome.cuts, {
            "iterations": outcome.iterations,
            "accepted_moves": outcome.accepted_moves,
            "energy": outcome.energy,
        }

    def _run_branch_and_bound(self, algorithm, items, stock_lengths, constraints, request) -> RunnerOutput:
        outcome = BranchAndBound(stock_lengths, constraints, request.cost_model).run(items)
        return outcome.cuts, {
            "nodes_explored": outcome.nodes_explored,
            "improved_on_bfd": outcome.improved_on_bfd,
        }

    def _run_pooling(self, algorithm, items, stock_lengths, constraints, request) -> RunnerOutput:
        thresholds = request.pooling_thresholds or PoolingThresholds()
        outcome = PoolingEngine(stock_lengths, constraints, request.cost_model, thresholds).run(items)
        return outcome.cuts, {
            "pooling": outcome.decision.as_dict(),
            "strategy": "pooled" if outcome.decision.adopted else "per-work-order",
        }

    def _greedy_alternatives(self, algorithm, items, stock_lengths, constraints, request):
        """Pontos candidatos à fronteira de Pareto: as quatro heurísticas na mesma entrada"""
        points = []
        for name in POLICIES:
            if name == algorithm:
                continue
            cuts = run_heuristic(name, items, stock_lengths, constraints, request.cost_model)
            points.append(pareto_point(summarize(cuts, constraints, request.cost_model), name))
        return points
