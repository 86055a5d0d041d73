"""
CSV export of trends, service summaries, the unified view and the global summary
"""

import logging
from pathlib import Path

import pandas as pd

from ..utils import format_cost, format_percent
from .base import BaseRenderer, RenderResult, RendererKind

logger = logging.getLogger(__name__)


def normalize_prefix(prefix):
    """Drop a trailing .csv so the prefix can carry per-file suffixes"""
    prefix = str(prefix)
    return prefix[: -len(".csv")] if prefix.endswith(".csv") else prefix


def trend_filename(prefix, account):
    return f"{prefix}_trend_profile_{account.profile}_account_{account.id_label}.csv"


def service_summary_filename(prefix, account):
    return (
        f"{prefix}_service_summary_profile_{account.profile}"
        f"_account_{account.id_label}.csv"
    )


def global_summary_filename(prefix):
    return f"{prefix}_global_summary.csv"


def unified_view_filename(prefix):
    return f"{prefix}_unified_view.csv"


class CsvRenderer(BaseRenderer):
    """Writes the report as a set of CSV files sharing a prefix"""

    kind = RendererKind.CSV

    def __init__(self, config, prefix, stream=None):
        super().__init__(config, stream)
        self.prefix = normalize_prefix(prefix)

    def render(self, report):
        Path(self.prefix).parent.mkdir(parents=True, exist_ok=True)
        keys = report.unified_view.period_keys
        paths = []

        for summary in report.account_summaries:
            account = summary.account

            trend_path = trend_filename(self.prefix, account)
            trend = pd.DataFrame(
                [
                    {
                        "Period": record.period,
                        "Total Cost (USD)": format_cost(record.total_cost),
                        "Change (%)": (
                            ""
                            if record.change_percent is None
                            else format_percent(record.change_percent)
                        ),
                    }
                    for record in summary.cost_trend
                ],
                columns=["Period", "Total Cost (USD)", "Change (%)"],
            )
            self._save(trend, trend_path, paths)
            logger.info(
                "✓ Exported trend report for %s to %s", account, trend_path
            )

            service_path = service_summary_filename(self.prefix, account)
            columns = ["Service", *keys, "Total Cost (USD)", "Percent of Total (%)"]
            rows = []
            for item in summary.service_consumption:
                row = {"Service": item.service}
                for key in keys:
                    row[key] = format_cost(item.period_costs.get(key, 0))
                row["Total Cost (USD)"] = format_cost(item.total_cost)
                row["Percent of Total (%)"] = format_percent(item.percent_of_total)
                rows.append(row)
            self._save(pd.DataFrame(rows, columns=columns), service_path, paths)
            logger.info(
                "✓ Exported service summary for %s to %s", account, service_path
            )

        global_path = global_summary_filename(self.prefix)
        self._save(self._global_frame(report), global_path, paths)
        logger.info("✓ Exported global summary to %s", global_path)

        unified_path = unified_view_filename(self.prefix)
        self._save(self._unified_frame(report), unified_path, paths)
        logger.info("✓ Exported unified view to %s", unified_path)

        return RenderResult(kind=self.kind, paths=tuple(paths))

    def _save(self, frame, path, paths):
        frame.to_csv(path, index=False)
        paths.append(path)

    def _global_frame(self, report):
        summary = report.global_summary
        rows = [
            ("Start Date", report.generated_range.start.isoformat()),
            ("End Date", report.generated_range.end.isoformat()),
            ("Granularity", report.granularity.value),
            ("Total Cost (USD)", format_cost(summary.total_cost)),
            ("Average Monthly Cost (USD)", format_cost(summary.average_period_cost)),
            ("Periods", str(summary.period_count)),
            ("Accounts Succeeded", str(len(report.successful_accounts))),
            ("Accounts Failed", str(len(summary.accounts_with_errors))),
        ]
        for service, cost in summary.top_services[: self.config.top_services]:
            rows.append((f"Service: {service}", format_cost(cost)))
        for account, reason in summary.accounts_with_errors:
            rows.append((f"Failed: {account}", reason))
        return pd.DataFrame(rows, columns=["Metric", "Value"])

    def _unified_frame(self, report):
        view = report.unified_view
        keys = view.period_keys
        columns = ["Profile", "Account ID", "Account Name", *keys]
        rows = []
        for account in view.accounts:
            row = {
                "Profile": account.profile,
                "Account ID": account.id_label,
                "Account Name": account.display_name,
            }
            for period in view.periods:
                row[period.key] = format_cost(period.cost_for(account))
            rows.append(row)

        if rows:
            total_row = {"Profile": "Total", "Account ID": "", "Account Name": ""}
            for period in view.periods:
                total_row[period.key] = format_cost(period.total)
            rows.append(total_row)
        return pd.DataFrame(rows, columns=columns)
