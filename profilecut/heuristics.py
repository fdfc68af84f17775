"""
Heurísticas gulosas de empacotamento 1D (FFD, BFD, NFD, WFD)

Pipeline comum: expandir itens, ordenar por comprimento decrescente e
posicionar peça a peça. Quando nenhuma barra aberta comporta a peça, abre-se
uma nova com o comprimento escolhido por `select_best_stock_length`.
"""

from typing import Callable, Dict, List, Optional, Sequence

from .accounting import (
    can_place, expand_items, finalize_cuts, new_stock, place_piece,
    select_best_stock_length, sort_descending, space_needed,
    validate_global_invariants
)
from .models import OptimizationItem, Constraints, CostModel, Cut

# (barras abertas, peça, restrições) -> índice da barra ou None
PlacementPolicy = Callable[[List[Cut], OptimizationItem, Constraints], Optional[int]]


def first_fit(cuts: List[Cut], piece: OptimizationItem, constraints: Constraints) -> Optional[int]:
    """Primeira barra, em ordem de abertura, que comporta a peça"""
    for index, cut in enumerate(cuts):
        if can_place(cut, piece.length, constraints):
            return index
    return None


def best_fit(cuts: List[Cut], piece: OptimizationItem, constraints: Constraints) -> Optional[int]:
    """Barra que deixa a menor sobra após o posicionamento"""
    best_index, best_leftover = None, None
    for index, cut in enumerate(cuts):
        if not can_place(cut, piece.length, constraints):
            continue
        leftover = cut.remaining_length - space_needed(cut, piece.length, constraints)
        if best_leftover is None or leftover < best_leftover:
            best_index, best_leftover = index, leftover
    return best_index


def next_fit(cuts: List[Cut], piece: OptimizationItem, constraints: Constraints) -> Optional[int]:
    """Só a barra aberta mais recentemente é considerada"""
    if cuts and can_place(cuts[-1], piece.length, constraints):
        return len(cuts) - 1
    return None


def worst_fit(cuts: List[Cut], piece: OptimizationItem, constraints: Constraints) -> Optional[int]:
    """Barra que deixa a maior sobra após o posicionamento"""
    best_index, best_leftover = None, None
    for index, cut in enumerate(cuts):
        if not can_place(cut, piece.length, constraints):
            continue
        leftover = cut.remaining_length - space_needed(cut, piece.length, constraints)
        if best_leftover is None or leftover > best_leftover:
            best_index, best_leftover = index, leftover
    return best_index


POLICIES: Dict[str, PlacementPolicy] = {
    "ffd": first_fit,
    "bfd": best_fit,
    "nfd": next_fit,
    "wfd": worst_fit,
}


def pack_pieces(pieces: Sequence[OptimizationItem], stock_lengths: Sequence[float],
                constraints: Constraints, cost_model: CostModel,
                policy: PlacementPolicy = first_fit) -> List[Cut]:
    """Empacota as peças na ordem recebida e devolve barras finalizadas"""
    cuts: List[Cut] = []
    for piece in pieces:
        index = policy(cuts, piece, constraints)
        if index is None:
            stock_length = select_best_stock_length(piece.length, stock_lengths, constraints)
            cuts.append(new_stock(stock_length, len(cuts), constraints, piece.profile_type))
            index = len(cuts) - 1
        place_piece(cuts[index], piece, constraints, cost_model)
    return finalize_cuts(cuts, constraints)


def pack_in_sequence(pieces: Sequence[OptimizationItem], stock_lengths: Sequence[float],
                     constraints: Constraints, cost_model: CostModel) -> List[Cut]:
    """First-fit sem ordenação (avaliação de cromossomos e completação gulosa)"""
    return pack_pieces(pieces, stock_lengths, constraints, cost_model, first_fit)


def run_heuristic(name: str, items: Sequence[OptimizationItem], stock_lengths: Sequence[float],
                  constraints: Constraints, cost_model: CostModel) -> List[Cut]:
    """Executa FFD/BFD/NFD/WFD sobre os itens (ainda não expandidos)"""
    pieces = sort_descending(expand_items(items))
    cuts = pack_pieces(pieces, stock_lengths, constraints, cost_model, POLICIES[name])
    validate_global_invariants(cuts, expected_pieces=len(pieces),
                               input_lengths={item.length for item in items})
    return cuts


def first_fit_decreasing(items, stock_lengths, constraints, cost_model) -> List[Cut]:
    return run_heuristic("ffd", items, stock_lengths, constraints, cost_model)


def best_fit_decreasing(items, stock_lengths, constraints, cost_model) -> List[Cut]:
    return run_heuristic("bfd", items, stock_lengths, constraints, cost_model)


def next_fit_decreasing(items, stock_lengths, constraints, cost_model) -> List[Cut]:
    return run_heuristic("nfd", items, stock_lengths, constraints, cost_model)


def worst_fit_decreasing(items, stock_lengths, constraints, cost_model) -> List[Cut]:
    return run_heuristic("wfd", items, stock_lengths, constraints, cost_model)
