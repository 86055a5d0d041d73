"""
PNG cost trend charts, one per account
"""

import logging

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from ..utils import clean_service_name  # noqa: E402
from .base import BaseRenderer, RenderResult, RendererKind  # noqa: E402

logger = logging.getLogger(__name__)

# Constants
BAR_COLOR = "#1f77b4"
SERVICE_COLOR = "#ff7f0e"
FIGURE_SIZE = (14, 6)
CHART_TOP_SERVICES = 8


def chart_filename(account):
    return f"cost_trend_profile_{account.profile}_account_{account.id_label}.png"


class ChartRenderer(BaseRenderer):
    """Draws each account's cost per period next to its costliest services"""

    kind = RendererKind.CHART

    def render(self, report):
        output_dir = self.config.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        paths = []

        for summary in report.account_summaries:
            account = summary.account
            if not summary.cost_trend:
                logger.warning(
                    "⚠ No cost trend data for %s, skipping chart", account
                )
                continue

            output_file = output_dir / chart_filename(account)
            try:
                self.draw_trend_chart(summary, output_file)
            except Exception as e:
                logger.error("✗ Failed to generate chart for %s: %s", account, e)
                continue
            logger.info("✓ Cost trend chart saved to %s", output_file)
            paths.append(str(output_file))

        return RenderResult(kind=self.kind, paths=tuple(paths))

    def draw_trend_chart(self, summary, output_file):
        fig, (trend_ax, service_ax) = plt.subplots(
            1, 2, figsize=FIGURE_SIZE, gridspec_kw={"width_ratios": [3, 2]}
        )
        try:
            fig.suptitle(
                f"Cost Trend Analysis - {summary.account.profile} "
                f"({summary.account.id_label})",
                fontsize=14,
                fontweight="bold",
            )
            self._draw_trend(trend_ax, summary)
            self._draw_services(service_ax, summary)

            fig.tight_layout()
            fig.savefig(
                output_file,
                dpi=self.config.visualization_dpi,
                facecolor="white",
                edgecolor="none",
            )
        finally:
            plt.close(fig)

    def _draw_trend(self, ax, summary):
        periods = [record.period for record in summary.cost_trend]
        costs = [float(record.total_cost) for record in summary.cost_trend]
        positions = np.arange(len(periods))

        bars = ax.bar(positions, costs, color=BAR_COLOR)
        ax.set_xticks(positions)
        ax.set_xticklabels(periods, rotation=45, ha="right", fontsize=8)
        ax.set_ylabel("Cost (USD)")
        ax.set_ylim(0, max(max(costs, default=0.0), 1.0) * 1.1)
        ax.set_title("Cost per Period")
        ax.grid(True, axis="y", alpha=0.3)

        # Add value labels
        for bar in bars:
            height = bar.get_height()
            ax.text(
                bar.get_x() + bar.get_width() / 2.0,
                height,
                f"${height:,.0f}",
                ha="center",
                va="bottom",
                fontsize=8,
            )

    def _draw_services(self, ax, summary):
        services = summary.service_consumption[:CHART_TOP_SERVICES]
        ax.set_title(f"Top {CHART_TOP_SERVICES} Services")
        if not services:
            ax.text(0.5, 0.5, "No service breakdown", ha="center", va="center")
            ax.axis("off")
            return

        # Costliest at the top
        services = list(reversed(services))
        positions = np.arange(len(services))
        ax.barh(
            positions,
            [float(item.total_cost) for item in services],
            color=SERVICE_COLOR,
        )
        ax.set_yticks(positions)
        ax.set_yticklabels([clean_service_name(item.service) for item in services], fontsize=8)
        ax.set_xlabel("Cost (USD)")
        ax.grid(True, axis="x", alpha=0.3)
