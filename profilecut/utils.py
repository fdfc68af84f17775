"""
Utilitários para visualização e relatórios do ProfileCut
"""

import logging
from typing import List, Optional
from pathlib import Path
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle
import numpy as np
import pandas as pd

from .accounting import format_length
from .models import OptimizationResult

logger = logging.getLogger("profilecut-utils")


class CutPlanVisualizer:
    """Visualização dos planos de corte"""

    def __init__(self, result: OptimizationResult):
        self.result = result
        self.colors = plt.cm.Set3(np.linspace(0, 1, 12))

    def _work_order_colors(self):
        orders = []
        for cut in self.result.cuts:
            for segment in cut.segments:
                if segment.work_order_id not in orders:
                    orders.append(segment.work_order_id)
        return {wo: self.colors[i % len(self.colors)] for i, wo in enumerate(orders)}

    def plot_cuts(self, save_path: Optional[str] = None, show: bool = False) -> Optional[plt.Figure]:
        """Uma faixa por barra: peças coloridas por ordem, kerf e sobra"""
        cuts = self.result.cuts
        if not cuts:
            logger.info("Nenhuma barra para visualizar")
            return None

        colors = self._work_order_colors()
        fig, ax = plt.subplots(figsize=(14, max(2.0, 0.6 * len(cuts) + 1)))
        longest = max(cut.stock_length for cut in cuts)

        for row, cut in enumerate(cuts):
            y = len(cuts) - row - 1
            ax.add_patch(Rectangle((0, y - 0.35), cut.stock_length, 0.7,
                                   facecolor="whitesmoke", edgecolor="black", linewidth=1))
            for segment in cut.segments:
                ax.add_patch(Rectangle((segment.position, y - 0.3), segment.length, 0.6,
                                       facecolor=colors[segment.work_order_id],
                                       edgecolor="black", linewidth=0.5))
                if segment.length > longest * 0.04:
                    ax.text(segment.position + segment.length / 2, y, format_length(segment.length),
                            ha="center", va="center", fontsize=7)
            if cut.remaining_length > 0:
                ax.add_patch(Rectangle((cut.used_length, y - 0.3), cut.remaining_length, 0.6,
                                       facecolor="red", alpha=0.3, hatch="//"))
            ax.text(longest * 1.01, y, f"{cut.plan_label}  |  sobra {cut.remaining_length:.1f} mm",
                    va="center", fontsize=7)

        ax.set_xlim(0, longest * 1.45)
        ax.set_ylim(-0.6, len(cuts) - 0.4)
        ax.set_yticks(range(len(cuts)))
        ax.set_yticklabels([f"{cut.id} ({format_length(cut.stock_length)})" for cut in reversed(cuts)],
                           fontsize=7)
        ax.set_xlabel("Posição (mm)")
        ax.set_title(f"{self.result.algorithm} - Eficiência: {self.result.efficiency:.1f}%")
        fig.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches="tight")
        if show:
            plt.show()
        plt.close(fig)
        return fig

    def create_summary_chart(self, save_path: Optional[str] = None, show: bool = False) -> plt.Figure:
        """Sobra por barra, categorias de sobra, fronteira de Pareto e custos"""
        fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2, figsize=(14, 9))

        ids = [cut.id for cut in self.result.cuts]
        waste = [cut.remaining_length for cut in self.result.cuts]
        ax1.bar(ids, waste, color="skyblue", edgecolor="navy")
        ax1.set_title("Sobra por barra")
        ax1.set_ylabel("Sobra (mm)")
        ax1.tick_params(axis="x", rotation=90, labelsize=7)

        distribution = self.result.waste_distribution
        categories = ["minimal", "small", "medium", "large", "excessive"]
        counts = [getattr(distribution, c) for c in categories]
        if sum(counts):
            ax2.pie(counts, labels=categories, autopct="%1.0f%%", startangle=90)
        ax2.set_title("Categorias de sobra")

        frontier = self.result.pareto_frontier
        ax3.scatter([p.waste for p in frontier], [p.cost for p in frontier], s=80, alpha=0.7)
        for point in frontier:
            ax3.annotate(point.algorithm, (point.waste, point.cost), xytext=(5, 5), textcoords="offset points")
        ax3.set_xlabel("Sobra (mm)")
        ax3.set_ylabel("Custo")
        ax3.set_title("Fronteira de Pareto")
        ax3.grid(True, alpha=0.3)

        breakdown = self.result.cost_breakdown.model_dump()
        breakdown.pop("total_cost")
        ax4.barh(list(breakdown), list(breakdown.values()), color="lightgreen", edgecolor="darkgreen")
        ax4.set_title(f"Custos (total {self.result.total_cost:.2f})")

        fig.tight_layout()
        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches="tight")
        if show:
            plt.show()
        plt.close(fig)
        return fig


class CutPlanReporter:
    """Geração de relatórios"""

    def __init__(self, result: OptimizationResult):
        self.result = result

    def generate_text_report(self) -> str:
        result = self.result
        report = []
        report.append("=" * 60)
        report.append("RELATÓRIO DE OTIMIZAÇÃO DE CORTES")
        report.append("=" * 60)
        report.append("")

        report.append("RESUMO GERAL:")
        report.append(f"  • Requisição: {result.request_id or '-'}")
        report.append(f"  • Algoritmo: {result.algorithm}")
        report.append(f"  • Eficiência: {result.efficiency:.2f}% ({result.efficiency_category})")
        report.append(f"  • Sobra total: {result.total_waste:.1f} mm")
        report.append(f"  • Barras utilizadas: {result.stock_count}")
        report.append(f"  • Peças: {result.total_segments}")
        report.append(f"  • Perda em kerf: {result.total_kerf_loss:.1f} mm")
        report.append(f"  • Custo total: {result.total_cost:.2f} ({result.cost_per_meter:.2f}/m)")
        report.append(f"  • Tempo estimado: {result.total_time:.0f} min")
        report.append(f"  • Confiança: {result.confidence}%")
        report.append(f"  • Tempo de processamento: {result.execution_time_ms:.1f} ms")
        report.append("")

        report.append("PLANOS DE CORTE:")
        report.append("-" * 40)
        for i, cut in enumerate(result.cuts, 1):
            flag = " (mista)" if cut.is_mixed else ""
            report.append(f"\n{i}. {cut.id} - barra {format_length(cut.stock_length)} mm{flag}")
            report.append(f"   • Plano: {cut.plan_label}")
            report.append(f"   • Sobra: {cut.remaining_length:.1f} mm ({cut.waste_category.value}"
                          f"{', reaproveitável' if cut.is_reclaimable else ''})")

        if result.recommendations:
            report.append("\nRECOMENDAÇÕES:")
            report.append("-" * 25)
            for recommendation in result.recommendations:
                report.append(f"  [{recommendation.severity}] {recommendation.message}")

        report.append("\n" + "=" * 60)
        return "\n".join(report)

    def cuts_dataframe(self) -> pd.DataFrame:
        """Uma linha por peça cortada"""
        rows = []
        for cut in self.result.cuts:
            for segment in cut.segments:
                rows.append({
                    "barra": cut.id,
                    "comprimento_barra": cut.stock_length,
                    "sequencia": segment.sequence_number,
                    "perfil": segment.profile_type,
                    "ordem_producao": segment.work_order_id,
                    "comprimento": segment.length,
                    "posicao": segment.position,
                    "kerf": segment.kerf_width,
                    "sobra_barra": cut.remaining_length,
                })
        return pd.DataFrame(rows)

    def bars_dataframe(self) -> pd.DataFrame:
        """Uma linha por barra"""
        return pd.DataFrame([{
            "barra": cut.id,
            "comprimento_barra": cut.stock_length,
            "plano": cut.plan_label,
            "pecas": cut.segment_count,
            "usado": cut.used_length,
            "sobra": cut.remaining_length,
            "categoria": cut.waste_category.value,
            "reaproveitavel": cut.is_reclaimable,
            "mista": cut.is_mixed,
        } for cut in self.result.cuts])

    def generate_csv_report(self, file_path: str) -> List[str]:
        paths = [f"{file_path}_cortes.csv", f"{file_path}_barras.csv"]
        self.cuts_dataframe().to_csv(paths[0], index=False, encoding="utf-8")
        self.bars_dataframe().to_csv(paths[1], index=False, encoding="utf-8")
        return paths

    def generate_json_report(self, file_path: str) -> str:
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(self.result.model_dump_json(indent=2))
        return file_path


def export_result(result: OptimizationResult, output_dir: str, formats: List[str] = None) -> List[str]:
    """
    Exporta resultado em múltiplos formatos

    Args:
        result: Resultado da otimização
        output_dir: Diretório de saída
        formats: Lista de formatos (txt, csv, json)
    """
    if formats is None:
        formats = ["txt", "csv", "json"]

    Path(output_dir).mkdir(parents=True, exist_ok=True)

    reporter = CutPlanReporter(result)
    stamp = pd.Timestamp.now().strftime("%Y%m%d_%H%M%S")
    base_path = Path(output_dir) / f"relatorio_{stamp}"
    written = []

    if "txt" in formats:
        with open(f"{base_path}.txt", "w", encoding="utf-8") as f:
            f.write(reporter.generate_text_report())
        written.append(f"{base_path}.txt")

    if "csv" in formats:
        written.extend(reporter.generate_csv_report(str(base_path)))

    if "json" in formats:
        written.append(reporter.generate_json_report(f"{base_path}.json"))

    logger.info("Relatórios exportados para %s", output_dir)
    return written


def create_visualization(result: OptimizationResult, output_dir: str, show: bool = False) -> List[str]:
    """Salva o gráfico das barras e o gráfico de resumo"""
    Path(output_dir).mkdir(parents=True, exist_ok=True)

    visualizer = CutPlanVisualizer(result)
    base_path = Path(output_dir) / "visualizacao"
    paths = [f"{base_path}_barras.png", f"{base_path}_resumo.png"]

    visualizer.plot_cuts(paths[0], show=show)
    visualizer.create_summary_chart(paths[1], show=show)

    logger.info("Visualizações salvas em %s", output_dir)
    return paths
