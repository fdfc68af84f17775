"""
Exceções do motor de otimização ProfileCut
"""

from typing import Optional


class OptimizationError(Exception):
    """Erro base de qualquer falha de otimização"""

    def __init__(self, message: str, request_id: Optional[str] = None,
                 algorithm: Optional[str] = None):
        super().__init__(message)
        self.request_id = request_id
        self.algorithm = algorithm


class ValidationError(OptimizationError):
    """Entrada rejeitada antes de qualquer empacotamento"""


class ConfigurationError(OptimizationError):
    """Nenhuma fonte de dados configurada (itens ausentes e sem provider)"""


class InvariantViolation(OptimizationError):
    """Contabilidade de corte inconsistente; a execução é abortada"""


class UnsupportedAlgorithm(OptimizationError):
    """Identificador de algoritmo desconhecido"""
