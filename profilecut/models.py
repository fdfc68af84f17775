"""
Modelos de dados para o sistema ProfileCut
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator
from enum import Enum

from . import config


class Algorithm(str, Enum):
    """Algoritmos de otimização suportados"""
    FFD = "ffd"
    BFD = "bfd"
    NFD = "nfd"
    WFD = "wfd"
    GENETIC = "genetic"
    SIMULATED_ANNEALING = "simulated-annealing"
    BRANCH_AND_BOUND = "branch-and-bound"
    POOLING = "pooling"


class ObjectiveType(str, Enum):
    """Objetivos de otimização"""
    MINIMIZE_WASTE = "minimize-waste"
    MINIMIZE_COST = "minimize-cost"
    MINIMIZE_TIME = "minimize-time"
    MAXIMIZE_EFFICIENCY = "maximize-efficiency"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class WasteCategory(str, Enum):
    """Classificação da sobra de uma barra"""
    MINIMAL = "minimal"       # < 50 mm
    SMALL = "small"           # < 100 mm
    MEDIUM = "medium"         # < 200 mm
    LARGE = "large"           # < 500 mm
    EXCESSIVE = "excessive"


class OptimizationItem(BaseModel):
    """Peça de perfil requisitada por uma ordem de produção"""
    profile_type: str = Field(..., description="Tipo/código do perfil")
    length: float = Field(..., gt=0, description="Comprimento da peça (mm)")
    quantity: int = Field(..., ge=1, description="Quantidade necessária")
    work_order_id: str = Field("UNASSIGNED", description="Ordem de produção de origem")
    total_length: Optional[float] = Field(None, description="length × quantity")
    die_id: Optional[str] = Field(None, description="Matriz de extrusão")
    alloy: Optional[str] = Field(None, description="Liga")
    surface: Optional[str] = Field(None, description="Acabamento superficial")
    tolerance: Optional[str] = Field(None, description="Classe de tolerância")

    @model_validator(mode="after")
    def fill_total_length(self):
        if self.total_length is None:
            self.total_length = self.length * self.quantity
        return self

    @property
    def identity(self) -> str:
        """Identidade usada pelo cruzamento do algoritmo genético"""
        return f"{self.profile_type}_{self.length}_{self.work_order_id}"


class MaterialStockLength(BaseModel):
    """Comprimento de barra bruta disponível em estoque"""
    stock_length: float = Field(..., gt=0, description="Comprimento da barra (mm)")
    profile_type: Optional[str] = Field(None, description="Perfil da barra")
    cost_per_mm: float = Field(0.0, ge=0, description="Custo por mm")
    cost_per_stock: float = Field(0.0, ge=0, description="Custo por barra")
    material_grade: Optional[str] = Field(None, description="Grau do material")
    weight: Optional[float] = Field(None, description="Peso da barra (kg)")


class Constraints(BaseModel):
    """Restrições físicas de corte"""
    kerf_width: float = Field(config.DEFAULT_KERF_WIDTH, ge=0, description="Espessura da serra (mm)")
    start_safety: float = Field(config.DEFAULT_START_SAFETY, ge=0, description="Margem inicial (mm)")
    end_safety: float = Field(config.DEFAULT_END_SAFETY, ge=0, description="Margem final (mm)")
    min_scrap_length: float = Field(config.DEFAULT_MIN_SCRAP_LENGTH, ge=0,
                                    description="Menor retalho reaproveitável (mm)")
    energy_per_stock: float = Field(config.DEFAULT_ENERGY_PER_STOCK, ge=0, description="kWh por barra")
    max_waste_percentage: float = Field(config.DEFAULT_MAX_WASTE_PERCENTAGE, ge=0)
    max_cuts_per_stock: int = Field(config.DEFAULT_MAX_CUTS_PER_STOCK, ge=1)
    safety_margin: float = Field(config.DEFAULT_SAFETY_MARGIN, ge=0)
    allow_partial_stocks: bool = True
    prioritize_small_waste: bool = True
    reclaim_waste_only: bool = False
    balance_complexity: bool = True
    respect_material_grades: bool = True


class CostModel(BaseModel):
    """Taxas unitárias usadas na composição de custos"""
    material_cost: float = Field(config.DEFAULT_MATERIAL_COST, ge=0)
    cutting_cost: float = Field(config.DEFAULT_CUTTING_COST, ge=0)
    setup_cost: float = Field(config.DEFAULT_SETUP_COST, ge=0)
    waste_cost: float = Field(config.DEFAULT_WASTE_COST, ge=0)
    time_cost: float = Field(config.DEFAULT_TIME_COST, ge=0)
    energy_cost: float = Field(config.DEFAULT_ENERGY_COST, ge=0)


class OptimizationObjective(BaseModel):
    type: ObjectiveType
    weight: float = Field(..., ge=0, le=1)
    priority: Priority = Priority.MEDIUM


def default_objectives() -> List[OptimizationObjective]:
    return [OptimizationObjective(type=t, weight=w) for t, w in config.DEFAULT_OBJECTIVES]


class PerformanceSettings(BaseModel):
    max_iterations: int = Field(config.SA_MAX_ITERATIONS, ge=1)
    convergence_threshold: float = Field(0.001, ge=0)
    parallel_processing: bool = False
    cache_results: bool = False
    population_size: Optional[int] = Field(None, ge=2)
    generations: Optional[int] = Field(None, ge=1)


class PoolingThresholds(BaseModel):
    """Limiares de adoção do pooling (o padrão é conservador)"""
    waste_reduction_min: float = Field(config.POOLING_WASTE_REDUCTION_MIN,
                                       description="Fração mínima de redução da sobra do baseline")
    efficiency_drop_max: float = Field(config.POOLING_EFFICIENCY_DROP_MAX,
                                       description="Queda máxima de eficiência (pontos percentuais)")
    mixed_bar_ratio_max: float = Field(config.POOLING_MIXED_BAR_RATIO_MAX,
                                       description="Fração máxima de barras mistas")


class Segment(BaseModel):
    """Peça posicionada dentro de uma barra"""
    id: str
    sequence_number: int
    length: float
    position: float = Field(..., description="Início da peça a partir da ponta da barra (mm)")
    end_position: float
    kerf_width: float = Field(0.0, description="Kerf cobrado antes desta peça")
    profile_type: str
    work_order_id: str
    unit_cost: float = 0.0
    total_cost: float = 0.0


class PlanEntry(BaseModel):
    length: float
    count: int


class Cut(BaseModel):
    """Uma barra bruta e as peças atribuídas a ela"""
    id: str
    stock_index: int
    stock_length: float
    profile_type: Optional[str] = None
    segments: List[Segment] = Field(default_factory=list)
    used_length: float
    remaining_length: float
    segment_count: int = 0
    kerf_loss: float = 0.0
    safety_margin: float = 0.0
    plan: List[PlanEntry] = Field(default_factory=list)
    plan_label: str = ""
    waste_category: WasteCategory = WasteCategory.MINIMAL
    is_reclaimable: bool = False
    setup_time: float = 0.0
    estimated_cutting_time: float = 0.0
    work_order_breakdown: Dict[str, int] = Field(default_factory=dict)
    is_mixed: bool = False
    pool_key: Optional[str] = None


class CostBreakdown(BaseModel):
    material_cost: float = 0.0
    cutting_cost: float = 0.0
    setup_cost: float = 0.0
    waste_cost: float = 0.0
    time_cost: float = 0.0
    energy_cost: float = 0.0
    total_cost: float = 0.0


class PerformanceMetrics(BaseModel):
    time_complexity: str
    space_complexity: str
    convergence_rate: float
    scalability: float
    memory_usage: float = Field(..., description="Estimativa em MB")
    cpu_usage: float = Field(..., description="Tempo de CPU / tempo de relógio (%)")


class ParetoPoint(BaseModel):
    waste: float
    cost: float
    time: float
    efficiency: float
    algorithm: str


class Recommendation(BaseModel):
    type: str
    priority: Priority
    message: str
    description: str
    expected_improvement: float
    implementation_effort: str
    severity: str
    impact: str


class WasteDistribution(BaseModel):
    minimal: int = 0
    small: int = 0
    medium: int = 0
    large: int = 0
    excessive: int = 0
    reclaimable: int = 0
    total_pieces: int = 0


class OptimizationResult(BaseModel):
    """Resultado completo da otimização"""
    request_id: Optional[str] = None
    algorithm: str = Field(..., description="Algoritmo utilizado")
    cuts: List[Cut] = Field(..., description="Barras utilizadas")
    efficiency: float = Field(..., description="Aproveitamento percentual total")
    total_waste: float = Field(..., description="Sobra total (mm)")
    total_cost: float
    total_length: float = Field(..., description="Comprimento total consumido (mm)")
    stock_count: int
    total_segments: int
    cost_breakdown: CostBreakdown
    performance_metrics: PerformanceMetrics
    pareto_frontier: List[ParetoPoint] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    confidence: int
    total_kerf_loss: float
    total_safety_reserve: float
    waste_distribution: WasteDistribution
    waste_percentage: float
    reclaimable_waste_percentage: float
    average_waste: float
    average_cuts_per_stock: float
    setup_time: float
    cutting_time: float
    total_time: float
    efficiency_category: str
    quality_score: float
    cost_per_meter: float
    execution_time_ms: float = 0.0
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Metadados adicionais")


class OptimizationRequest(BaseModel):
    """Requisição para otimização"""
    items: Optional[List[OptimizationItem]] = Field(
        None, description="Peças a cortar; None busca no provider de dados")
    stock_lengths: Optional[List[MaterialStockLength]] = None
    constraints: Optional[Constraints] = None
    objectives: List[OptimizationObjective] = Field(default_factory=default_objectives)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    cost_model: CostModel = Field(default_factory=CostModel)
    algorithm: str = Field(Algorithm.FFD.value, description="Algoritmo de otimização")
    pooling_thresholds: Optional[PoolingThresholds] = None

    @field_validator("algorithm")
    @classmethod
    def normalize_algorithm(cls, v):
        return v.strip().lower()
