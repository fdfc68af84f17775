"""
Fontes de dados externas (ordens de produção, estoque, restrições)
"""

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, Field

from .exceptions import ConfigurationError
from .models import OptimizationItem, MaterialStockLength, Constraints


class ItemFilter(BaseModel):
    """Filtro opcional para busca de itens"""
    work_order_ids: Optional[List[str]] = Field(None, description="Ordens de produção aceitas")
    profile_types: Optional[List[str]] = Field(None, description="Perfis aceitos")

    def matches(self, item: OptimizationItem) -> bool:
        if self.work_order_ids is not None and item.work_order_id not in self.work_order_ids:
            return False
        if self.profile_types is not None and item.profile_type not in self.profile_types:
            return False
        return True


@runtime_checkable
class DataProvider(Protocol):
    async def get_optimization_items(self, item_filter: Optional[ItemFilter] = None) -> List[OptimizationItem]:
        ...

    async def get_material_stock_lengths(self) -> List[MaterialStockLength]:
        ...

    async def get_constraints(self) -> Optional[Constraints]:
        ...

    async def get_work_order_items(self, work_order_id: str) -> List[OptimizationItem]:
        ...


class InMemoryDataProvider:
    """Provider em memória, usado na demo, nos testes e na API de exemplo"""

    def __init__(self, items: Sequence[OptimizationItem] = (),
                 stock_lengths: Sequence[MaterialStockLength] = (),
                 constraints: Optional[Constraints] = None):
        self.items = list(items)
        self.stock_lengths = list(stock_lengths)
        self.constraints = constraints

    async def get_optimization_items(self, item_filter: Optional[ItemFilter] = None) -> List[OptimizationItem]:
        if item_filter is None:
            return list(self.items)
        return [item for item in self.items if item_filter.matches(item)]

    async def get_material_stock_lengths(self) -> List[MaterialStockLength]:
        return list(self.stock_lengths)

    async def get_constraints(self) -> Optional[Constraints]:
        return self.constraints

    async def get_work_order_items(self, work_order_id: str) -> List[OptimizationItem]:
        return [item for item in self.items if item.work_order_id == work_order_id]


class UnconfiguredProvider:
    """Marca a ausência de fonte de dados real"""

    async def get_optimization_items(self, item_filter: Optional[ItemFilter] = None) -> List[OptimizationItem]:
        raise ConfigurationError("Nenhuma fonte de dados configurada para itens de otimização")

    async def get_material_stock_lengths(self) -> List[MaterialStockLength]:
        raise ConfigurationError("Nenhuma fonte de dados configurada para comprimentos de estoque")

    async def get_constraints(self) -> Optional[Constraints]:
        raise ConfigurationError("Nenhuma fonte de dados configurada para restrições")

    async def get_work_order_items(self, work_order_id: str) -> List[OptimizationItem]:
        raise ConfigurationError(f"Nenhuma fonte de dados configurada para a ordem {work_order_id}")
