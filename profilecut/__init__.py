"""
ProfileCut - Otimização de corte de barras e perfis

Planeja o corte de peças de perfis (alumínio, aço) em barras brutas,
minimizando sobra, custo e tempo sob restrições de kerf e margens de
segurança.
"""

from .core import CutPlanner
from .exceptions import (
    OptimizationError, ValidationError, ConfigurationError,
    InvariantViolation, UnsupportedAlgorithm
)
from .models import (
    Algorithm, OptimizationItem, MaterialStockLength, Constraints, CostModel,
    OptimizationObjective, PerformanceSettings, PoolingThresholds, Segment, Cut,
    OptimizationResult, OptimizationRequest
)
from .providers import DataProvider, InMemoryDataProvider, ItemFilter

__version__ = "1.0.0"
__author__ = "ProfileCut Team"

__all__ = [
    "CutPlanner",
    "OptimizationError",
    "ValidationError",
    "ConfigurationError",
    "InvariantViolation",
    "UnsupportedAlgorithm",
    "Algorithm",
    "OptimizationItem",
    "MaterialStockLength",
    "Constraints",
    "CostModel",
    "OptimizationObjective",
    "PerformanceSettings",
    "PoolingThresholds",
    "Segment",
    "Cut",
    "OptimizationResult",
    "OptimizationRequest",
    "DataProvider",
    "InMemoryDataProvider",
    "ItemFilter",
]
