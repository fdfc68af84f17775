"""
Configuração padrão do ProfileCut

Todos os valores abaixo são os padrões usados quando a requisição, o
provider de dados e o ambiente não informam nada.
"""

import os

# ── Estoque ─────────────────────────────────────────────────────────
DEFAULT_STOCK_LENGTH = 6100.0         # mm

# ── Restrições de corte ─────────────────────────────────────────────
DEFAULT_KERF_WIDTH = 3.5              # mm
DEFAULT_START_SAFETY = 2.0            # mm
DEFAULT_END_SAFETY = 2.0              # mm
DEFAULT_MIN_SCRAP_LENGTH = 75.0       # mm, retalho reaproveitável
DEFAULT_ENERGY_PER_STOCK = 0.5        # kWh por barra
DEFAULT_MAX_WASTE_PERCENTAGE = 10.0
DEFAULT_MAX_CUTS_PER_STOCK = 50
DEFAULT_SAFETY_MARGIN = 2.0

# ── Modelo de custos ────────────────────────────────────────────────
DEFAULT_MATERIAL_COST = 0.05          # por mm utilizado
DEFAULT_CUTTING_COST = 0.10           # por corte
DEFAULT_SETUP_COST = 2.00             # por barra
DEFAULT_WASTE_COST = 0.03             # por mm de sobra
DEFAULT_TIME_COST = 0.50              # por minuto
DEFAULT_ENERGY_COST = 0.15            # por kWh

# ── Tempos de operação (minutos) ────────────────────────────────────
SETUP_TIME_PER_STOCK = 5.0
CUTTING_TIME_PER_SEGMENT = 2.0

# ── Categorias de sobra (limites superiores exclusivos, mm) ─────────
WASTE_CATEGORY_LIMITS = [
    (50.0, "minimal"),
    (100.0, "small"),
    (200.0, "medium"),
    (500.0, "large"),
]

# ── Objetivos ───────────────────────────────────────────────────────
DEFAULT_OBJECTIVES = [
    ("maximize-efficiency", 0.5),
    ("minimize-waste", 0.3),
    ("minimize-cost", 0.2),
]
WEIGHT_SUM_TOLERANCE = 1e-6

# ── Gerador pseudoaleatório ─────────────────────────────────────────
RNG_SEED = 12345

# ── Algoritmo genético ──────────────────────────────────────────────
GA_MAX_POPULATION = 20
GA_MAX_GENERATIONS = 50
GA_MUTATION_RATE = 0.15
GA_CROSSOVER_RATE = 0.8
GA_ELITE_FRACTION = 0.1
GA_TOURNAMENT_SIZE = 3
GA_MIN_GENERATIONS_BEFORE_STOP = 10
GA_COST_NORMALIZER = 10000.0
GA_TIME_NORMALIZER = 1000.0

# ── Simulated annealing ─────────────────────────────────────────────
SA_INITIAL_TEMPERATURE = 1000.0
SA_FINAL_TEMPERATURE = 0.1
SA_COOLING_RATE = 0.95
SA_MAX_ITERATIONS = 1000
SA_STOCK_PENALTY = 100.0

# ── Branch and bound ────────────────────────────────────────────────
BNB_MAX_DEPTH = 20
BNB_MAX_NODES = 10000

# ── Pooling entre ordens de produção ────────────────────────────────
POOL_DEFAULT_DIE = "UNKNOWN"
POOL_DEFAULT_ALLOY = "AA6063"
POOL_DEFAULT_SURFACE = "E6"
POOL_DEFAULT_TOLERANCE = "TOL-N"
POOLING_WASTE_REDUCTION_MIN = 0.01    # fração da sobra do baseline
POOLING_EFFICIENCY_DROP_MAX = 0.2     # pontos percentuais
POOLING_MIXED_BAR_RATIO_MAX = 0.30

# ── Métricas ────────────────────────────────────────────────────────
RECOMMENDATION_EFFICIENCY_THRESHOLD = 85.0
CRITICAL_EFFICIENCY_THRESHOLD = 70.0
DEFAULT_CONVERGENCE_RATE = 0.95

# ── Provider de dados ───────────────────────────────────────────────
PROVIDER_TIMEOUT_S = float(os.getenv("PROFILECUT_PROVIDER_TIMEOUT", "10"))

# ── Logging ─────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("PROFILECUT_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("PROFILECUT_LOG_JSON", "false").lower() in ("1", "true", "yes")
