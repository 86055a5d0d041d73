"""
JSON output with stable top-level keys: accounts, unified_view, global_summary
"""

import json
from decimal import Decimal

from .base import BaseRenderer, RenderResult, RendererKind


def _json_default(value):
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _account_ref(account):
    return {
        "profile": account.profile,
        "account_id": account.account_id,
        "account_name": account.display_name,
    }


def report_to_dict(report):
    """Plain-dict form of a report"""
    summaries = {summary.account: summary for summary in report.account_summaries}

    accounts = []
    for series in report.accounts:
        entry = {**_account_ref(series.account), "status": series.status.value}
        summary = summaries.get(series.account)
        if summary is None:
            entry["error"] = series.reason
        else:
            entry.update(
                {
                    "cost_trend": [
                        {
                            "period": record.period,
                            "total_cost": record.total_cost,
                            "change_percent": record.change_percent,
                        }
                        for record in summary.cost_trend
                    ],
                    "service_consumption": [
                        {
                            "service": item.service,
                            "period_costs": item.period_costs,
                            "total_cost": item.total_cost,
                            "percent_of_total": item.percent_of_total,
                        }
                        for item in summary.service_consumption
                    ],
                    "total_cost": summary.total_cost,
                    "average_monthly_cost": summary.average_period_cost,
                    "trend_slope": summary.trend_slope,
                    "estimated_periods": [
                        period.key(report.granularity)
                        for period in series.periods
                        if period.estimated
                    ],
                }
            )
        accounts.append(entry)

    unified_view = [
        {
            "period": period.key,
            "per_account": [
                {**_account_ref(account), "cost": cost}
                for account, cost in period.per_account.items()
            ],
            "total": period.total,
        }
        for period in report.unified_view.periods
    ]

    summary = report.global_summary
    global_summary = {
        "total_cost": summary.total_cost,
        "average_monthly_cost": summary.average_period_cost,
        "average_period_cost": summary.average_period_cost,
        "period_count": summary.period_count,
        "top_services": [
            {"service": service, "cost": cost} for service, cost in summary.top_services
        ],
        "accounts_with_errors": [
            {**_account_ref(account), "reason": reason}
            for account, reason in summary.accounts_with_errors
        ],
        "start_date": report.generated_range.start.isoformat(),
        "end_date": report.generated_range.end.isoformat(),
        "granularity": report.granularity.value,
    }
    if report.tag_filter is not None:
        global_summary["tag_filter"] = {
            "key": report.tag_filter.key,
            "value": report.tag_filter.value,
        }

    return {
        "accounts": accounts,
        "unified_view": unified_view,
        "global_summary": global_summary,
    }


class JsonRenderer(BaseRenderer):
    """Prints the report as pretty JSON on stdout"""

    kind = RendererKind.JSON

    def render(self, report):
        output = json.dumps(report_to_dict(report), indent=2, default=_json_default)
        self.write(output)
        return RenderResult(kind=self.kind, output=output)
