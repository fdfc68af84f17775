"""
Branch-and-bound limitado sobre atribuições parciais

Minimiza o número de barras. A busca é em largura (fila FIFO), limitada em
profundidade e em nós explorados; não há garantia de ótimo.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import List, Sequence

from . import config
from .accounting import (
    can_place, expand_items, finalize_cuts, new_stock, place_piece,
    select_best_stock_length, sort_descending, validate_global_invariants
)
from .heuristics import best_fit_decreasing, first_fit
from .models import OptimizationItem, Constraints, CostModel, Cut

logger = logging.getLogger("profilecut-branch-bound")


@dataclass
class Node:
    cuts: List[Cut]          # barras abertas (não finalizadas)
    next_index: int
    lower_bound: float


@dataclass
class BranchBoundOutcome:
    cuts: List[Cut]
    nodes_explored: int
    improved_on_bfd: bool


def _copy_cut(cut: Cut) -> Cut:
    return cut.model_copy(update={"segments": list(cut.segments)})


class BranchAndBound:

    def __init__(self, stock_lengths: Sequence[float], constraints: Constraints,
                 cost_model: CostModel, max_depth: int = config.BNB_MAX_DEPTH,
                 max_nodes: int = config.BNB_MAX_NODES, subtract_free_space: bool = False):
        self.stock_lengths = stock_lengths
        self.max_stock = max(stock_lengths)
        self.constraints = constraints
        self.cost_model = cost_model
        self.max_depth = max_depth
        self.max_nodes = max_nodes
        self.subtract_free_space = subtract_free_space

    def run(self, items: Sequence[OptimizationItem]) -> BranchBoundOutcome:
        incumbent = best_fit_decreasing(items, self.stock_lengths, self.constraints, self.cost_model)
        pieces = sort_descending(expand_items(items))
        self._suffix = self._suffix_lengths(pieces)

        best_count = len(incumbent)
        best_cuts = None
        max_depth = min(len(pieces), self.max_depth)

        queue = deque([Node(cuts=[], next_index=0, lower_bound=0)])
        explored = 0
        while queue and explored < self.max_nodes:
            node = queue.popleft()
            explored += 1
            if node.lower_bound >= best_count:
                continue

            if node.next_index == len(pieces) or node.next_index >= max_depth:
                completed = self._complete_greedily(node, pieces)
                if len(completed) < best_count:
                    best_count, best_cuts = len(completed), completed
                continue

            for child in self._branch(node, pieces[node.next_index]):
                if child.lower_bound < best_count:
                    queue.append(child)

        logger.debug("B&B: %d nós explorados, %d barras (BFD: %d)",
                     explored, best_count, len(incumbent))

        if best_cuts is None:
            return BranchBoundOutcome(cuts=incumbent, nodes_explored=explored, improved_on_bfd=False)

        cuts = finalize_cuts([_copy_cut(cut) for cut in best_cuts], self.constraints)
        validate_global_invariants(cuts, expected_pieces=len(pieces),
                                   input_lengths={item.length for item in items})
        return BranchBoundOutcome(cuts=cuts, nodes_explored=explored, improved_on_bfd=True)

    def _branch(self, node: Node, piece: OptimizationItem) -> List[Node]:
        children = []
        for index, cut in enumerate(node.cuts):
            if not can_place(cut, piece.length, self.constraints):
                continue
            cuts = list(node.cuts)
            cuts[index] = _copy_cut(cut)
            place_piece(cuts[index], piece, self.constraints, self.cost_model)
            children.append(self._node(cuts, node.next_index + 1))

        stock_length = select_best_stock_length(piece.length, self.stock_lengths, self.constraints)
        fresh = new_stock(stock_length, len(node.cuts), self.constraints, piece.profile_type)
        place_piece(fresh, piece, self.constraints, self.cost_model)
        children.append(self._node(list(node.cuts) + [fresh], node.next_index + 1))
        return children

    def _node(self, cuts: List[Cut], next_index: int) -> Node:
        """
        Limite inferior: barras abertas + barras para o comprimento restante

        Com `subtract_free_space`, o espaço livre das barras abertas é
        descontado do comprimento restante antes da divisão.
        """
        remaining = self._suffix[next_index]
        if self.subtract_free_space:
            remaining = max(0.0, remaining - sum(cut.remaining_length for cut in cuts))
        bound = len(cuts) + math.ceil(remaining / self.max_stock)
        return Node(cuts=cuts, next_index=next_index, lower_bound=bound)

    def _complete_greedily(self, node: Node, pieces: List[OptimizationItem]) -> List[Cut]:
        cuts = [_copy_cut(cut) for cut in node.cuts]
        for piece in pieces[node.next_index:]:
            index = first_fit(cuts, piece, self.constraints)
            if index is None:
                stock_length = select_best_stock_length(piece.length, self.stock_lengths, self.constraints)
                cuts.append(new_stock(stock_length, len(cuts), self.constraints, piece.profile_type))
                index = len(cuts) - 1
            place_piece(cuts[index], piece, self.constraints, self.cost_model)
        return cuts

    @staticmethod
    def _suffix_lengths(pieces: List[OptimizationItem]) -> List[float]:
        suffix = [0.0] * (len(pieces) + 1)
        for i in range(len(pieces) - 1, -1, -1):
            suffix[i] = suffix[i + 1] + pieces[i].length
        return suffix
