"""
Console tables: unified view, per-account trends and services, global summary
"""

import pandas as pd

from ..utils import format_cost, format_percent
from .base import BaseRenderer, RenderResult, RendererKind

# Constants
IDENTITY_COLUMNS = 3  # Profile, Account ID, Account Name
SERVICE_FIXED_COLUMNS = 3  # Service, Total Cost, Percent of Total


def chunk(items, size):
    """Split items into consecutive pages of at most size elements"""
    size = max(1, size)
    return [items[i : i + size] for i in range(0, len(items), size)]


class TableRenderer(BaseRenderer):
    """Prints the report as paged text tables"""

    kind = RendererKind.TABLE

    def __init__(self, config, stream=None):
        super().__init__(config, stream)
        self.lines = []

    def write(self, text=""):
        self.lines.append(text)
        super().write(text)

    def render(self, report):
        self.lines = []
        if report.account_summaries:
            self.render_unified_view(report)
            for summary in report.account_summaries:
                self.render_account(report, summary)
        else:
            self.write("\n⚠ No cost data retrieved for any account")
        self.render_global_summary(report)

        return RenderResult(kind=self.kind, output="\n".join(self.lines))

    def render_unified_view(self, report):
        view = report.unified_view
        keys = view.period_keys
        page_size = self.config.table_max_columns - IDENTITY_COLUMNS

        for page, page_keys in enumerate(chunk(keys, page_size) or [[]], 1):
            rows = []
            for account in view.accounts:
                row = {
                    "Profile": account.profile,
                    "Account ID": account.id_label,
                    "Account Name": account.display_name,
                }
                for key in page_keys:
                    row[key] = format_cost(view.get(key).cost_for(account))
                rows.append(row)

            total_row = {"Profile": "Total", "Account ID": "", "Account Name": ""}
            for key in page_keys:
                total_row[key] = format_cost(view.get(key).total)
            rows.append(total_row)

            self.print_section_header(
                f"UNIFIED COST VIEW ({report.generated_range}) - Page {page}"
            )
            self.write(pd.DataFrame(rows).to_string(index=False))

    def render_account(self, report, summary):
        account = summary.account
        self.print_section_header(
            f"COST TREND: Profile {account.profile} Account {account.id_label} "
            f"({account.display_name})"
        )

        trend = pd.DataFrame(
            [
                {
                    "Period": record.period,
                    "Total Cost (USD)": format_cost(record.total_cost),
                    "Change (%)": format_percent(record.change_percent),
                }
                for record in summary.cost_trend
            ],
            columns=["Period", "Total Cost (USD)", "Change (%)"],
        )
        self.write(trend.to_string(index=False))
        self.write(
            f"Total Cost ({report.generated_range}): ${summary.total_cost:,.2f}"
        )
        self.write(f"Average Cost per Period: ${summary.average_period_cost:,.2f}")
        if summary.trend_slope is not None:
            self.write(f"Trend: ${summary.trend_slope:+,.2f}/period")

        if not summary.service_consumption:
            self.write("No service breakdown available")
            return

        keys = [record.period for record in summary.cost_trend]
        page_size = self.config.table_max_columns - SERVICE_FIXED_COLUMNS
        for page, page_keys in enumerate(chunk(keys, page_size), 1):
            rows = []
            for item in summary.service_consumption:
                row = {"Service": item.service}
                for key in page_keys:
                    row[key] = format_cost(item.period_costs.get(key, 0))
                row["Total Cost (USD)"] = format_cost(item.total_cost)
                row["Percent of Total (%)"] = format_percent(item.percent_of_total)
                rows.append(row)

            self.write(
                f"\nService Consumption for Profile {account.profile} Account "
                f"{account.id_label} - Page {page}:"
            )
            self.write(pd.DataFrame(rows).to_string(index=False))

    def render_global_summary(self, report):
        summary = report.global_summary
        self.print_section_header("GLOBAL SUMMARY (ALL ACCOUNTS)")
        self.write(f"💰 Total Cost ({report.generated_range}): ${summary.total_cost:,.2f}")
        self.write(
            f"📈 Average Cost per {report.granularity.value} period: "
            f"${summary.average_period_cost:,.2f} ({summary.period_count} periods)"
        )

        if summary.top_services:
            self.write(f"\nTop {self.config.top_services} services by total cost:")
            for i, (service, cost) in enumerate(
                summary.top_services[: self.config.top_services], 1
            ):
                self.write(f"{i:2d}. {service:<45} ${cost:>12,.2f}")

        if summary.accounts_with_errors:
            self.write(
                f"\n✗ {len(summary.accounts_with_errors)} accounts could not be fetched:"
            )
            for account, reason in summary.accounts_with_errors:
                self.write(f"   • {account}: {reason}")
