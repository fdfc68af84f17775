"""
Servidor FastAPI principal para o ProfileCut
"""

import logging
import tempfile
from pathlib import Path
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from profilecut import CutPlanner, __version__, config
from profilecut.exceptions import (
    OptimizationError, ValidationError, ConfigurationError, UnsupportedAlgorithm
)
from profilecut.logging_config import setup_logging
from profilecut.models import OptimizationRequest, OptimizationResult
from profilecut.samples import sample_items, sample_stock_lengths
from profilecut.utils import CutPlanReporter, create_visualization as save_visualization

logger = logging.getLogger("profilecut-api")

app = FastAPI(
    title="ProfileCut API",
    description="API para otimização de corte de barras e perfis",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Instância global: o contador de requisições e o gerador são compartilhados
cut_planner = CutPlanner()


def _http_error(exc: OptimizationError) -> HTTPException:
    if isinstance(exc, (ValidationError, UnsupportedAlgorithm)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@app.get("/")
async def root():
    return {
        "message": "ProfileCut API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "ProfileCut API",
        "version": __version__,
        "fitness_backend": cut_planner.fitness_backend.name,
    }


@app.post("/optimize", response_model=OptimizationResult)
async def optimize(request: OptimizationRequest):
    """
    Otimiza o corte das peças informadas

    Returns:
        Resultado da otimização em formato JSON
    """
    try:
        return await cut_planner.optimize(request)
    except OptimizationError as e:
        raise _http_error(e)


@app.post("/optimize/batch")
async def optimize_batch(requests: List[OptimizationRequest]):
    """Otimização em lote; falhas individuais não interrompem o lote"""
    results = []
    errors = []
    for index, request in enumerate(requests):
        try:
            results.append(await cut_planner.optimize(request))
        except OptimizationError as e:
            logger.warning("Requisição %d do lote falhou: %s", index, e)
            errors.append({"index": index, "error": type(e).__name__, "detail": str(e)})

    return {
        "total_requests": len(requests),
        "successful": len(results),
        "failed": len(errors),
        "results": results,
        "errors": errors,
    }


@app.get("/algorithms")
async def get_algorithms():
    return {
        "algorithms": cut_planner.list_algorithms(),
        "default": "ffd",
    }


@app.post("/report/generate")
async def generate_report(optimization_result: OptimizationResult, format: str = "all"):
    """
    Gera relatórios em diferentes formatos

    Args:
        optimization_result: Resultado da otimização
        format: Formato do relatório (txt, csv, json, all)
    """
    formats = ["txt", "csv", "json"] if format == "all" else [format]
    unknown = set(formats) - {"txt", "csv", "json"}
    if unknown:
        raise HTTPException(status_code=400, detail=f"Formato desconhecido: {', '.join(sorted(unknown))}")

    reporter = CutPlanReporter(optimization_result)
    results = {}

    if "txt" in formats:
        results["txt"] = reporter.generate_text_report()

    if "json" in formats:
        results["json"] = optimization_result.model_dump(mode="json")

    if "csv" in formats:
        results["csv"] = {
            "cortes": reporter.cuts_dataframe().to_csv(index=False),
            "barras": reporter.bars_dataframe().to_csv(index=False),
        }

    return {
        "formats_generated": formats,
        "results": results
    }


@app.post("/visualization/create")
async def create_visualization(optimization_result: OptimizationResult):
    """Renderiza os gráficos e informa os arquivos gerados"""
    with tempfile.TemporaryDirectory() as temp_dir:
        paths = save_visualization(optimization_result, temp_dir)
        return {
            "message": "Visualizações criadas com sucesso",
            "files_created": [Path(p).name for p in paths],
        }


@app.get("/examples/1d")
async def get_1d_example():
    """Exemplo de requisição de otimização"""
    request = OptimizationRequest(
        items=sample_items(),
        stock_lengths=sample_stock_lengths(),
        algorithm="pooling",
    )
    return request.model_dump(mode="json", exclude_none=True)


@app.get("/self-test")
async def self_test():
    """Autoteste de invariantes do pooling sobre os dados de exemplo"""
    try:
        report = await cut_planner.run_pooling_self_test(
            items=sample_items(), stock_lengths=sample_stock_lengths())
    except OptimizationError as e:
        raise _http_error(e)
    return {
        "passed": report.passed,
        "checks": report.checks,
        "failures": report.failures,
    }


if __name__ == "__main__":
    setup_logging(config.LOG_LEVEL, config.LOG_JSON)
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
