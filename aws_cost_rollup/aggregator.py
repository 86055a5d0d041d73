"""
Cross-account aggregation: unified period view, global summary and
per-account trend and service breakdowns
"""

import logging
from decimal import Decimal

import numpy as np
from scipy import stats

from .models import (
    ZERO,
    AccountSummary,
    GlobalSummary,
    Granularity,
    ServiceConsumption,
    TrendRecord,
    UnifiedPeriod,
    UnifiedView,
)

logger = logging.getLogger(__name__)

# Constants
PERCENT_PRECISION = Decimal("0.1")
MIN_REGRESSION_DATA_POINTS = 2


def percent_change(previous, current):
    """Period-over-period change in percent, None when undefined"""
    if previous is None or previous == ZERO:
        return None
    return ((current - previous) / previous * 100).quantize(PERCENT_PRECISION)


def _account_totals(series, granularity):
    """Period key -> total for one series"""
    totals = {}
    for period in series.periods:
        key = period.key(granularity)
        totals[key] = totals.get(key, ZERO) + period.total
    return totals


class Aggregator:
    """Merges per-account series into cross-account views

    Nothing here raises on data problems: a run where every account failed
    still yields an empty view and zero totals.
    """

    def __init__(self, config):
        self.config = config

    def aggregate(self, series, granularity=Granularity.MONTHLY):
        """
        Build the unified view and global summary

        Args:
            series: AccountCostSeries for every resolved account
            granularity: Granularity the series were fetched with

        Returns:
            tuple: (UnifiedView, GlobalSummary)
        """
        successful = sorted(
            (s for s in series if s.is_ok), key=lambda s: s.account.sort_key
        )
        failed = sorted(
            (s for s in series if not s.is_ok), key=lambda s: s.account.sort_key
        )

        account_totals = {
            s.account: _account_totals(s, granularity) for s in successful
        }
        keys = sorted({key for totals in account_totals.values() for key in totals})

        periods = []
        for key in keys:
            per_account = {
                account: totals.get(key, ZERO)
                for account, totals in account_totals.items()
            }
            periods.append(
                UnifiedPeriod(
                    key=key,
                    per_account=per_account,
                    total=sum(per_account.values(), ZERO),
                )
            )

        unified_view = UnifiedView(
            accounts=tuple(s.account for s in successful), periods=tuple(periods)
        )

        total_cost = sum((period.total for period in periods), ZERO)
        average = total_cost / len(periods) if periods else ZERO

        summary = GlobalSummary(
            total_cost=total_cost,
            average_period_cost=average,
            period_count=len(periods),
            top_services=tuple(self._top_services(successful)),
            accounts_with_errors=tuple((s.account, s.reason) for s in failed),
        )

        if failed:
            logger.warning(
                "⚠ %d accounts failed and are excluded from totals", len(failed)
            )
        return unified_view, summary

    def _top_services(self, successful):
        """Service totals across all accounts, costliest first, then by name"""
        totals = {}
        for series in successful:
            for period in series.periods:
                for service, cost in period.by_service.items():
                    totals[service] = totals.get(service, ZERO) + cost
        return sorted(totals.items(), key=lambda item: (-item[1], item[0]))

    def summarize_accounts(self, series, unified_view, granularity=Granularity.MONTHLY):
        """
        Derive trend, service consumption and totals for each successful account

        Periods an account has no data for count as zero, so every account is
        measured over the same unified periods.

        Returns:
            list of AccountSummary in input order
        """
        keys = unified_view.period_keys
        summaries = []
        for account_series in series:
            if not account_series.is_ok:
                continue
            account = account_series.account
            costs = unified_view.costs_for(account)

            trend = []
            previous = None
            for key in keys:
                cost = costs.get(key, ZERO)
                trend.append(
                    TrendRecord(
                        period=key,
                        total_cost=cost,
                        change_percent=percent_change(previous, cost),
                    )
                )
                previous = cost

            total_cost = sum(costs.values(), ZERO)
            summaries.append(
                AccountSummary(
                    account=account,
                    cost_trend=tuple(trend),
                    service_consumption=tuple(
                        self._service_consumption(account_series, granularity)
                    ),
                    total_cost=total_cost,
                    average_period_cost=total_cost / len(keys) if keys else ZERO,
                    trend_slope=self._trend_slope([record.total_cost for record in trend]),
                )
            )
        return summaries

    def _service_consumption(self, account_series, granularity):
        by_service = {}
        for period in account_series.periods:
            key = period.key(granularity)
            for service, cost in period.by_service.items():
                period_costs = by_service.setdefault(service, {})
                period_costs[key] = period_costs.get(key, ZERO) + cost

        service_totals = {
            service: sum(period_costs.values(), ZERO)
            for service, period_costs in by_service.items()
        }
        grand_total = sum(service_totals.values(), ZERO)

        consumption = []
        for service, total in service_totals.items():
            if total <= ZERO:
                continue
            if grand_total > ZERO:
                share = (total / grand_total * 100).quantize(PERCENT_PRECISION)
            else:
                share = ZERO
            consumption.append(
                ServiceConsumption(
                    service=service,
                    period_costs=dict(sorted(by_service[service].items())),
                    total_cost=total,
                    percent_of_total=share,
                )
            )
        consumption.sort(key=lambda item: (-item.total_cost, item.service))
        return consumption

    def _trend_slope(self, costs):
        """Least-squares cost change per period"""
        if len(costs) < MIN_REGRESSION_DATA_POINTS:
            return None
        x = np.arange(len(costs))
        y = np.array([float(cost) for cost in costs])
        slope, _intercept, _r_value, _p_value, _std_err = stats.linregress(x, y)
        return float(slope)
