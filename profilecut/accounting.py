"""
Contabilidade de corte compartilhada por todos os algoritmos

Todas as barras são criadas, preenchidas e finalizadas aqui, de modo que as
identidades de comprimento valem igualmente para qualquer estratégia:

    used_length + remaining_length == stock_length      (após finalizar)
    segment_count == len(segments) == soma do plano
"""

import math
import logging
from typing import Iterable, List, Optional, Sequence

from . import config
from .exceptions import InvariantViolation
from .models import (
    OptimizationItem, MaterialStockLength, Constraints, CostModel,
    Segment, Cut, PlanEntry, WasteCategory
)

logger = logging.getLogger("profilecut-accounting")

IDENTITY_TOLERANCE = 1e-9


def format_length(value: float) -> str:
    """1000.0 -> '1000', 687.5 -> '687.5'"""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def preprocess_items(items: Iterable[OptimizationItem]) -> List[OptimizationItem]:
    """Garante comprimento >= 1 e quantidade >= 1"""
    prepared = []
    for item in items:
        length = max(1.0, float(item.length))
        quantity = max(1, int(item.quantity))
        prepared.append(item.model_copy(update={
            "length": length,
            "quantity": quantity,
            "total_length": length * quantity,
        }))
    return prepared


def expand_items(items: Iterable[OptimizationItem]) -> List[OptimizationItem]:
    """Expande cada item em `quantity` cópias unitárias"""
    pieces = []
    for item in items:
        unit = item.model_copy(update={"quantity": 1, "total_length": item.length})
        pieces.extend([unit] * item.quantity)
    return pieces


def sort_descending(pieces: Sequence[OptimizationItem]) -> List[OptimizationItem]:
    return sorted(pieces, key=lambda p: p.length, reverse=True)


def normalize_stock_lengths(stock_lengths: Optional[Sequence[MaterialStockLength]]) -> List[float]:
    """Comprimentos únicos em ordem crescente; padrão de uma barra de 6100 mm"""
    lengths = sorted({float(s.stock_length) for s in stock_lengths or []})
    return lengths or [config.DEFAULT_STOCK_LENGTH]


def usable_length(stock_length: float, constraints: Constraints) -> float:
    return stock_length - constraints.start_safety - constraints.end_safety


def max_pieces_on_bar(length: float, stock_length: float, kerf: float,
                      start_safety: float, end_safety: float) -> int:
    """n peças de mesmo comprimento usam s1 + n·L + (n-1)·k + s2"""
    usable = stock_length - start_safety - end_safety
    return max(0, math.floor((usable + kerf) / (length + kerf)))


def select_best_stock_length(length: float, stock_lengths: Sequence[float],
                             constraints: Constraints) -> float:
    """
    Escolhe o comprimento de barra para uma nova barra

    Critérios em ordem: menor sobra com o máximo de repetições da peça,
    maior número de peças, menor barra. Barras que não comportam a peça
    são ignoradas; se nenhuma comportar, retorna a maior.
    """
    k = constraints.kerf_width
    s1, s2 = constraints.start_safety, constraints.end_safety
    best = None
    best_key = None
    for stock_length in stock_lengths:
        pieces = max_pieces_on_bar(length, stock_length, k, s1, s2)
        if pieces < 1:
            continue
        used = s1 + pieces * length + (pieces - 1) * k + s2
        remainder = stock_length - used
        key = (remainder, -pieces, stock_length)
        if best_key is None or _better_stock(key, best_key):
            best, best_key = stock_length, key
    if best is None:
        return max(stock_lengths)
    return best


def _better_stock(key, current) -> bool:
    remainder, neg_pieces, stock_length = key
    best_remainder, best_neg_pieces, best_stock = current
    if abs(remainder - best_remainder) > IDENTITY_TOLERANCE:
        return remainder < best_remainder
    if neg_pieces != best_neg_pieces:
        return neg_pieces < best_neg_pieces
    return stock_length < best_stock


def new_stock(stock_length: float, index: int, constraints: Constraints,
              profile_type: Optional[str] = None) -> Cut:
    """Abre uma barra vazia já descontando as margens de segurança"""
    return Cut(
        id=f"bar-{index + 1}",
        stock_index=index,
        stock_length=stock_length,
        profile_type=profile_type,
        used_length=constraints.start_safety,
        remaining_length=usable_length(stock_length, constraints),
        safety_margin=constraints.start_safety + constraints.end_safety,
        setup_time=config.SETUP_TIME_PER_STOCK,
    )


def kerf_for(cut: Cut, constraints: Constraints) -> float:
    """O kerf só é cobrado quando a barra já tem ao menos uma peça"""
    return constraints.kerf_width if cut.segment_count > 0 else 0.0


def space_needed(cut: Cut, length: float, constraints: Constraints) -> float:
    return length + kerf_for(cut, constraints)


def can_place(cut: Cut, length: float, constraints: Constraints) -> bool:
    if cut.segment_count >= constraints.max_cuts_per_stock:
        return False
    return cut.remaining_length + IDENTITY_TOLERANCE >= space_needed(cut, length, constraints)


def add_segment(cut: Cut, piece, kerf: float, cost_model: CostModel,
                constraints: Constraints) -> Segment:
    """
    Posiciona uma peça após o último corte

    `piece` precisa expor profile_type, length e work_order_id.
    """
    position = cut.used_length + kerf
    unit_cost = piece.length * cost_model.material_cost
    segment = Segment(
        id=f"{cut.id}-seg-{cut.segment_count + 1}",
        sequence_number=cut.segment_count + 1,
        length=piece.length,
        position=position,
        end_position=position + piece.length,
        kerf_width=kerf,
        profile_type=piece.profile_type,
        work_order_id=piece.work_order_id,
        unit_cost=unit_cost,
        total_cost=unit_cost,
    )
    cut.segments.append(segment)
    cut.segment_count += 1
    cut.used_length += piece.length + kerf
    cut.remaining_length = (
        cut.stock_length - constraints.start_safety - constraints.end_safety
        - (cut.used_length - constraints.start_safety)
    )
    cut.kerf_loss += kerf
    if cut.profile_type is None:
        cut.profile_type = piece.profile_type

    if cut.segment_count != len(cut.segments):
        raise InvariantViolation(
            f"Barra {cut.id}: segment_count={cut.segment_count} "
            f"mas {len(cut.segments)} segmentos"
        )
    return segment


def place_piece(cut: Cut, piece, constraints: Constraints, cost_model: CostModel) -> Segment:
    return add_segment(cut, piece, kerf_for(cut, constraints), cost_model, constraints)


def waste_category(remaining: float) -> WasteCategory:
    for limit, name in config.WASTE_CATEGORY_LIMITS:
        if remaining < limit:
            return WasteCategory(name)
    return WasteCategory.EXCESSIVE


def plan_label(plan: Sequence[PlanEntry]) -> str:
    if not plan:
        return "No pieces"
    return " + ".join(f"{entry.count} × {format_length(entry.length)} mm" for entry in plan)


def _build_plan(cut: Cut) -> List[PlanEntry]:
    counts = {}
    for segment in cut.segments:
        counts[segment.length] = counts.get(segment.length, 0) + 1
    return [PlanEntry(length=length, count=count)
            for length, count in sorted(counts.items(), key=lambda kv: kv[0], reverse=True)]


def finalize_cut(cut: Cut, constraints: Constraints) -> Cut:
    """Fecha a barra: margem final, sobra, plano e classificação"""
    cut.used_length += constraints.end_safety
    cut.remaining_length = max(0.0, cut.stock_length - cut.used_length)
    _check_identity(cut)

    cut.plan = _build_plan(cut)
    cut.plan_label = plan_label(cut.plan)
    planned = sum(entry.count for entry in cut.plan)
    if planned != cut.segment_count:
        raise InvariantViolation(
            f"Barra {cut.id}: plano soma {planned} peças, segment_count={cut.segment_count}"
        )

    cut.waste_category = waste_category(cut.remaining_length)
    cut.is_reclaimable = cut.remaining_length >= constraints.min_scrap_length
    cut.estimated_cutting_time = cut.segment_count * config.CUTTING_TIME_PER_SEGMENT
    cut.setup_time = config.SETUP_TIME_PER_STOCK
    return cut


def finalize_cuts(cuts: List[Cut], constraints: Constraints) -> List[Cut]:
    for cut in cuts:
        finalize_cut(cut, constraints)
    return cuts


def rebuild_cut(cut: Cut, pieces: Sequence, constraints: Constraints,
                cost_model: CostModel) -> Cut:
    """Recria a barra do zero, já finalizada, com as peças na ordem dada"""
    rebuilt = new_stock(cut.stock_length, cut.stock_index, constraints, cut.profile_type)
    rebuilt.id = cut.id
    for piece in pieces:
        place_piece(rebuilt, piece, constraints, cost_model)
    rebuilt.work_order_breakdown = dict(cut.work_order_breakdown)
    rebuilt.is_mixed = cut.is_mixed
    rebuilt.pool_key = cut.pool_key
    return finalize_cut(rebuilt, constraints)


def renumber_cuts(cuts: List[Cut], first_index: int = 0) -> List[Cut]:
    """Reatribui índices e ids ao concatenar barras de execuções separadas"""
    for offset, cut in enumerate(cuts):
        cut.stock_index = first_index + offset
        cut.id = f"bar-{cut.stock_index + 1}"
        for segment in cut.segments:
            segment.id = f"{cut.id}-seg-{segment.sequence_number}"
    return cuts


def _check_identity(cut: Cut):
    drift = abs(cut.used_length + cut.remaining_length - cut.stock_length)
    if drift >= IDENTITY_TOLERANCE:
        raise InvariantViolation(
            f"Barra {cut.id}: usado {cut.used_length} + sobra {cut.remaining_length} "
            f"!= barra {cut.stock_length}"
        )


def validate_global_invariants(cuts: Sequence[Cut], expected_pieces: Optional[int] = None,
                               input_lengths: Optional[Iterable[float]] = None):
    """Valida barras finalizadas; qualquer violação aborta a execução"""
    allowed = set(input_lengths) if input_lengths is not None else None
    for cut in cuts:
        _check_identity(cut)
        if cut.segment_count != len(cut.segments):
            raise InvariantViolation(
                f"Barra {cut.id}: segment_count={cut.segment_count} "
                f"mas {len(cut.segments)} segmentos"
            )
        if sum(entry.count for entry in cut.plan) != cut.segment_count:
            raise InvariantViolation(f"Barra {cut.id}: plano não confere com as peças")
        for value in (cut.used_length, cut.remaining_length, cut.kerf_loss):
            if not math.isfinite(value) or value < 0:
                raise InvariantViolation(f"Barra {cut.id}: comprimento inválido {value}")
        if allowed is not None:
            unknown = [s.length for s in cut.segments if s.length not in allowed]
            if unknown:
                logger.warning("Barra %s contém comprimentos fora da entrada: %s", cut.id, unknown)

    if expected_pieces is not None:
        placed = sum(cut.segment_count for cut in cuts)
        if placed != expected_pieces:
            raise InvariantViolation(
                f"Conservação de peças violada: {placed} posicionadas, {expected_pieces} esperadas"
            )
