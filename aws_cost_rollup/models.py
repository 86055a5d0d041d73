"""
Data model shared by the resolver, fetcher, aggregator and renderers

Everything here is built once per run and never changed afterwards.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from .errors import InvalidDateRangeError

# Maximum drift allowed between a period total and its service breakdown
COST_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")
UNKNOWN_ACCOUNT_ID = "unknown"


class Granularity(Enum):
    """Time bucket size for cost queries"""

    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"

    @property
    def api_name(self):
        """Name used by the Cost Explorer API"""
        return self.name

    @classmethod
    def parse(cls, value):
        return cls(value.strip().lower())


def period_key(moment, granularity):
    """Truncate a period start to its granularity and render it as an ISO key

    Monthly keys are the first of the month, daily keys the date and hourly
    keys a UTC timestamp on the hour, so keys of one granularity sort
    chronologically as plain strings.
    """
    if granularity is Granularity.HOURLY:
        if not isinstance(moment, datetime):
            moment = datetime(moment.year, moment.month, moment.day)
        return moment.strftime("%Y-%m-%dT%H:00:00Z")

    day = moment.date() if isinstance(moment, datetime) else moment
    if granularity is Granularity.MONTHLY:
        day = date(day.year, day.month, 1)
    return day.isoformat()


@dataclass(frozen=True)
class Account:
    """One billable unit reached through a credential profile"""

    profile: str
    account_id: str | None = None
    name: str | None = None

    @property
    def is_resolved(self):
        return self.account_id is not None

    @property
    def id_label(self):
        return self.account_id or UNKNOWN_ACCOUNT_ID

    @property
    def display_name(self):
        if self.name:
            return self.name
        if self.account_id:
            return f"Account-{self.account_id}"
        return "N/A"

    @property
    def sort_key(self):
        return (self.profile, self.account_id or "")

    def __str__(self):
        return f"{self.profile}/{self.id_label}"


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range for a run"""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidDateRangeError(
                f"Start date {self.start} is after end date {self.end}"
            )

    @property
    def days(self):
        return (self.end - self.start).days

    def __str__(self):
        return f"{self.start} to {self.end}"


@dataclass(frozen=True)
class TagFilter:
    """Cost allocation tag filter; value None matches any value of the key"""

    key: str
    value: str | None = None

    def __str__(self):
        return f"{self.key}={self.value if self.value is not None else '*'}"


@dataclass(frozen=True)
class CostPeriod:
    """Cost of one granularity bucket for one account"""

    period_start: date
    period_end: date
    total: Decimal
    by_service: dict = field(default_factory=dict)
    estimated: bool = False

    def __post_init__(self):
        if self.by_service:
            breakdown = sum(self.by_service.values(), ZERO)
            if abs(self.total - breakdown) >= COST_TOLERANCE:
                raise ValueError(
                    f"Period {self.period_start} total {self.total} does not "
                    f"match its service breakdown {breakdown}"
                )

    def key(self, granularity):
        return period_key(self.period_start, granularity)


class FetchStatus(Enum):
    """Terminal state of a per-account fetch"""

    OK = "ok"
    FAILED = "failed"


@dataclass(frozen=True)
class AccountCostSeries:
    """Chronological cost periods for one account, or the reason it failed"""

    account: Account
    periods: tuple = ()
    status: FetchStatus = FetchStatus.OK
    reason: str | None = None

    @classmethod
    def ok(cls, account, periods):
        return cls(account=account, periods=tuple(periods), status=FetchStatus.OK)

    @classmethod
    def failed(cls, account, reason):
        return cls(account=account, status=FetchStatus.FAILED, reason=reason)

    @property
    def is_ok(self):
        return self.status is FetchStatus.OK


@dataclass(frozen=True)
class UnifiedPeriod:
    """All successful accounts' costs for one period key"""

    key: str
    per_account: dict
    total: Decimal

    def cost_for(self, account):
        return self.per_account.get(account, ZERO)


@dataclass(frozen=True)
class UnifiedView:
    """Successful accounts reconciled onto the union of their period keys"""

    accounts: tuple = ()
    periods: tuple = ()

    @property
    def period_keys(self):
        return [period.key for period in self.periods]

    def get(self, key):
        for period in self.periods:
            if period.key == key:
                return period
        return None

    def costs_for(self, account):
        """Period key -> cost for one account, zero where it had no data"""
        return {period.key: period.cost_for(account) for period in self.periods}

    def __len__(self):
        return len(self.periods)


@dataclass(frozen=True)
class TrendRecord:
    """Account cost for one period and the change from the previous period"""

    period: str
    total_cost: Decimal
    change_percent: Decimal | None = None


@dataclass(frozen=True)
class ServiceConsumption:
    """One service's cost across the run for one account"""

    service: str
    period_costs: dict
    total_cost: Decimal
    percent_of_total: Decimal


@dataclass(frozen=True)
class AccountSummary:
    """Derived per-account figures"""

    account: Account
    cost_trend: tuple
    service_consumption: tuple
    total_cost: Decimal
    average_period_cost: Decimal
    trend_slope: float | None = None


@dataclass(frozen=True)
class GlobalSummary:
    """Totals across every successful account"""

    total_cost: Decimal = ZERO
    average_period_cost: Decimal = ZERO
    period_count: int = 0
    top_services: tuple = ()
    accounts_with_errors: tuple = ()


@dataclass(frozen=True)
class Report:
    """The finished result handed to every renderer"""

    accounts: tuple
    unified_view: UnifiedView
    global_summary: GlobalSummary
    account_summaries: tuple
    generated_range: DateRange
    granularity: Granularity
    tag_filter: TagFilter | None = None

    @property
    def successful_accounts(self):
        return [series for series in self.accounts if series.is_ok]

    @property
    def failed_accounts(self):
        return [series for series in self.accounts if not series.is_ok]
