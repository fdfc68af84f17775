#!/usr/bin/env python3
"""
Script principal para executar o sistema ProfileCut
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path

from profilecut import CutPlanner, OptimizationError, OptimizationRequest, config
from profilecut.logging_config import setup_logging
from profilecut.models import Algorithm
from profilecut.samples import sample_items, sample_stock_lengths
from profilecut.utils import CutPlanReporter, export_result, create_visualization

logger = logging.getLogger("profilecut-cli")


def run_demo(algorithm: str):
    """Executa demonstração do sistema"""
    planner = CutPlanner()
    items = sample_items()

    logger.info("%d itens de %d ordens de produção carregados",
                len(items), len({item.work_order_id for item in items}))

    request = OptimizationRequest(
        items=items,
        stock_lengths=sample_stock_lengths(),
        algorithm=algorithm,
    )
    result = planner.optimize_sync(request)

    print(CutPlanReporter(result).generate_text_report())
    if "pooling" in result.metadata:
        print(f"\nDecisão de pooling: {result.metadata['pooling']}")
    return result


def run_self_test() -> bool:
    """Autoteste de invariantes do pooling com os dados de exemplo"""
    planner = CutPlanner()
    report = asyncio.run(planner.run_pooling_self_test(
        items=sample_items(), stock_lengths=sample_stock_lengths()))

    for check in report.checks:
        print(f"  ok    {check}")
    for failure in report.failures:
        print(f"  FALHA {failure}")
    return report.passed


def run_api_server():
    """Inicia o servidor da API"""
    import uvicorn

    logger.info("Servidor em http://localhost:8000 (documentação em /docs)")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )


def run_tests():
    """Executa os testes do sistema"""
    import unittest

    loader = unittest.TestLoader()
    start_dir = Path(__file__).parent / 'tests'
    suite = loader.discover(str(start_dir), pattern='test_*.py', top_level_dir=str(Path(__file__).parent))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    if not result.wasSuccessful():
        logger.error("%d falhas, %d erros", len(result.failures), len(result.errors))
    return result.wasSuccessful()


def main():
    """Função principal"""

    parser = argparse.ArgumentParser(
        description="ProfileCut - Otimização de corte de barras e perfis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemplos de uso:
  python run.py demo                          # Executa demonstração (FFD)
  python run.py demo --algorithm pooling      # Demonstração com pooling
  python run.py demo --export results         # Executa demo e exporta resultados
  python run.py selftest                      # Autoteste de invariantes
  python run.py api                           # Inicia servidor da API
  python run.py test                          # Executa testes
        """
    )

    parser.add_argument(
        'command',
        choices=['demo', 'api', 'test', 'selftest'],
        help='Comando a executar'
    )

    parser.add_argument(
        '--algorithm',
        default=Algorithm.FFD.value,
        choices=[a.value for a in Algorithm],
        help='Algoritmo usado na demonstração'
    )

    parser.add_argument(
        '--export',
        metavar='DIR',
        help='Diretório para exportar resultados'
    )

    parser.add_argument(
        '--visualization',
        action='store_true',
        help='Criar visualizações dos resultados'
    )

    parser.add_argument(
        '--log-level',
        default=config.LOG_LEVEL.upper(),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        type=str.upper,
        help='Nível de log'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        default=config.LOG_JSON,
        help='Logs estruturados em JSON'
    )

    args = parser.parse_args()
    setup_logging(args.log_level, args.json_logs)

    try:
        if args.command == 'demo':
            result = run_demo(args.algorithm)

            if args.export:
                written = export_result(result, args.export)
                if args.visualization:
                    written.extend(create_visualization(result, args.export))
                print(f"\nArquivos gerados em {args.export}: {len(written)}")

        elif args.command == 'api':
            run_api_server()

        elif args.command == 'test':
            sys.exit(0 if run_tests() else 1)

        elif args.command == 'selftest':
            sys.exit(0 if run_self_test() else 1)

    except KeyboardInterrupt:
        print("\nSistema interrompido pelo usuário")
    except OptimizationError as e:
        logger.error("Falha na otimização: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
