"""
Dados de exemplo para a demonstração, a API e o autoteste
"""

from typing import List

from .models import OptimizationItem, MaterialStockLength


def sample_items() -> List[OptimizationItem]:
    """Duas ordens de produção com perfis em comum e uma terceira isolada"""
    return [
        OptimizationItem(profile_type="AL-4020", length=1200, quantity=10, work_order_id="OP-1001"),
        OptimizationItem(profile_type="AL-4020", length=800, quantity=6, work_order_id="OP-1001"),
        OptimizationItem(profile_type="AL-4020", length=800, quantity=9, work_order_id="OP-1002"),
        OptimizationItem(profile_type="AL-4020", length=600, quantity=20, work_order_id="OP-1002"),
        OptimizationItem(profile_type="AL-3030", length=2450, quantity=4, work_order_id="OP-1003",
                         alloy="AA6061", surface="ANOD"),
    ]


def sample_stock_lengths() -> List[MaterialStockLength]:
    return [
        MaterialStockLength(stock_length=6100, cost_per_stock=96.0),
        MaterialStockLength(stock_length=6500, cost_per_stock=102.0),
        MaterialStockLength(stock_length=7300, cost_per_stock=114.0),
    ]
