"""
Cost Explorer fetching and normalization for a single account
"""

import logging
import threading
from datetime import timedelta

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .errors import CostQueryError, HourlyRangeTooLongError
from .models import ZERO, AccountCostSeries, CostPeriod, Granularity, period_key
from .utils import parse_api_timestamp, to_decimal

logger = logging.getLogger(__name__)

# Constants
MAX_HOURLY_RANGE_DAYS = 7
THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "LimitExceededException",
}
TRANSIENT_ERRORS = (ConnectTimeoutError, ReadTimeoutError, EndpointConnectionError)


def classify_error(error):
    """Turn a botocore error into a CostQueryError with a retry verdict"""
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        code = details.get("Code", "Unknown")
        message = details.get("Message", str(error))
        return CostQueryError(f"{code}: {message}", retryable=code in THROTTLING_CODES)
    if isinstance(error, TRANSIENT_ERRORS):
        return CostQueryError(f"{type(error).__name__}: {error}", retryable=True)
    return CostQueryError(f"{type(error).__name__}: {error}")


class CostFetcher:
    """Queries Cost Explorer for one account and normalizes the result"""

    def __init__(self, config, client, sleep=None):
        """
        Args:
            config: Config
            client: AWS client
            sleep: Backoff pause taking seconds; by default the pause waits on
                the fetch's cancellation event so a cancel cuts it short
        """
        self.config = config
        self.client = client
        self.sleep = sleep

    def validate(self, date_range, granularity):
        """
        Check run-wide query parameters before anything is dispatched

        Raises:
            HourlyRangeTooLongError: hourly data requested for more than 7 days
        """
        if granularity is Granularity.HOURLY and date_range.days > MAX_HOURLY_RANGE_DAYS:
            raise HourlyRangeTooLongError(
                f"Hourly granularity is limited to {MAX_HOURLY_RANGE_DAYS} days, "
                f"got {date_range.days} days ({date_range})"
            )
        if granularity is not Granularity.MONTHLY:
            logger.warning(
                "⚠ Cost trend analysis reads best with monthly granularity, using %s",
                granularity.value,
            )

    def build_query(self, account, date_range, granularity, tag_filter=None):
        """Keyword arguments for GetCostAndUsage"""
        # The API end date is exclusive
        api_end = date_range.end + timedelta(days=1)
        if granularity is Granularity.HOURLY:
            time_period = {
                "Start": f"{date_range.start.isoformat()}T00:00:00Z",
                "End": f"{api_end.isoformat()}T00:00:00Z",
            }
        else:
            time_period = {
                "Start": date_range.start.isoformat(),
                "End": api_end.isoformat(),
            }

        query = {
            "TimePeriod": time_period,
            "Granularity": granularity.api_name,
            "Metrics": [self.config.cost_metric],
            "GroupBy": [{"Type": "DIMENSION", "Key": "SERVICE"}],
        }

        expressions = []
        if account.account_id is not None:
            expressions.append(
                {"Dimensions": {"Key": "LINKED_ACCOUNT", "Values": [account.account_id]}}
            )
        if tag_filter is not None:
            if tag_filter.value is not None:
                expressions.append(
                    {
                        "Tags": {
                            "Key": tag_filter.key,
                            "Values": [tag_filter.value],
                            "MatchOptions": ["EQUALS"],
                        }
                    }
                )
            else:
                # Any value: everything not lacking the tag
                expressions.append(
                    {"Not": {"Tags": {"Key": tag_filter.key, "MatchOptions": ["ABSENT"]}}}
                )

        if len(expressions) == 1:
            query["Filter"] = expressions[0]
        elif expressions:
            query["Filter"] = {"And": expressions}
        return query

    def fetch(self, account, date_range, granularity, tag_filter=None, cancelled=None):
        """
        Fetch one account's cost series

        Args:
            account: Account to query
            date_range: DateRange (inclusive)
            granularity: Granularity
            tag_filter: Optional TagFilter
            cancelled: Optional threading.Event; once set no further attempt is made

        Returns:
            AccountCostSeries, failed rather than raising on any API error
        """
        query = self.build_query(account, date_range, granularity, tag_filter)
        try:
            results = self._query_with_retry(account, query, cancelled or threading.Event())
            periods = self.normalize(results, granularity)
        except CostQueryError as e:
            logger.error("✗ Cost query failed for %s: %s", account, e.reason)
            return AccountCostSeries.failed(account, e.reason)

        logger.info("✓ Fetched %d periods for %s", len(periods), account)
        return AccountCostSeries.ok(account, periods)

    def _query_with_retry(self, account, query, cancelled):
        attempts = max(1, self.config.fetch_max_attempts)
        delay = self.config.retry_base_delay
        pause = self.sleep or cancelled.wait
        for attempt in range(1, attempts + 1):
            if cancelled.is_set():
                raise CostQueryError("Cancelled before the cost query completed")
            try:
                return self.client.get_cost_and_usage(account.profile, **query)
            except (ClientError, BotoCoreError) as e:
                error = classify_error(e)
                if not error.retryable:
                    raise error from e
                if attempt == attempts:
                    raise CostQueryError(
                        f"{error.reason} (gave up after {attempts} attempts)"
                    ) from e
                logger.warning(
                    "⚠ %s for %s, retrying in %.1fs (attempt %d/%d)",
                    error.reason,
                    account,
                    delay,
                    attempt,
                    attempts,
                )
                pause(delay)
                delay = min(delay * 2, self.config.retry_max_delay)

    def normalize(self, results, granularity):
        """
        Convert ResultsByTime entries into chronological CostPeriods

        Entries sharing a period start (groups split across pages) are merged.
        Without groups the API total stands alone with an empty breakdown.
        """
        merged = {}
        metric = self.config.cost_metric
        try:
            for result in results:
                time_period = result["TimePeriod"]
                start = parse_api_timestamp(time_period["Start"])
                end = parse_api_timestamp(time_period["End"])
                key = period_key(start, granularity)
                entry = merged.setdefault(
                    key,
                    {
                        "start": start,
                        "end": end,
                        "services": {},
                        "total": None,
                        "estimated": False,
                    },
                )
                entry["estimated"] = entry["estimated"] or bool(result.get("Estimated"))

                for group in result.get("Groups", []):
                    service = ", ".join(group.get("Keys", [])) or "Unknown"
                    amount = to_decimal(
                        group.get("Metrics", {}).get(metric, {}).get("Amount")
                    )
                    services = entry["services"]
                    services[service] = services.get(service, ZERO) + amount

                total = result.get("Total", {}).get(metric)
                if total is not None:
                    entry["total"] = to_decimal(total.get("Amount"))
        except (KeyError, TypeError, ValueError) as e:
            raise CostQueryError(f"Malformed Cost Explorer response: {e}") from e

        periods = []
        for key in sorted(merged):
            entry = merged[key]
            services = entry["services"]
            if services:
                total = sum(services.values(), ZERO)
            else:
                total = entry["total"] if entry["total"] is not None else ZERO
            periods.append(
                CostPeriod(
                    period_start=entry["start"],
                    period_end=entry["end"],
                    total=total,
                    by_service=services,
                    estimated=entry["estimated"],
                )
            )
        return periods
