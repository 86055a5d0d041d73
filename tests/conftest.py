"""
Pytest configuration and shared fixtures for cost rollup tests.

Provides a fake AWS client standing in for boto3, canned Cost Explorer
responses and a configuration without retry delays.
"""

from datetime import date
from decimal import Decimal

import pytest
from botocore.exceptions import ClientError

from aws_cost_rollup.config import Config
from aws_cost_rollup.models import Account, AccountCostSeries, CostPeriod


def client_error(code, message="boom", operation="GetCostAndUsage"):
    """Build a botocore ClientError with the given error code"""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def ce_result(start, end, services=None, total=None, estimated=False, metric="UnblendedCost"):
    """One ResultsByTime entry as returned by Cost Explorer"""
    result = {
        "TimePeriod": {"Start": start, "End": end},
        "Total": {},
        "Groups": [],
        "Estimated": estimated,
    }
    for service, amount in (services or {}).items():
        result["Groups"].append(
            {"Keys": [service], "Metrics": {metric: {"Amount": amount, "Unit": "USD"}}}
        )
    if total is not None:
        result["Total"] = {metric: {"Amount": total, "Unit": "USD"}}
    return result


def monthly_period(year, month, services):
    """CostPeriod for a calendar month with a service breakdown"""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    by_service = {name: Decimal(amount) for name, amount in services.items()}
    return CostPeriod(
        period_start=start,
        period_end=end,
        total=sum(by_service.values(), Decimal("0")),
        by_service=by_service,
    )


class FakeAWSClient:
    """In-memory stand-in for AWSClient

    Args:
        profiles: Locally configured profile names
        identities: profile -> account id; an Exception value is raised instead
        organization: list of member dicts, or an Exception to raise
        costs: profile -> list of responses; each response is a list of
            ResultsByTime entries or an Exception to raise
    """

    def __init__(self, profiles=(), identities=None, organization=None, costs=None):
        self.profiles = list(profiles)
        self.identities = identities or {}
        self.organization = organization
        self.costs = costs or {}
        self.cost_calls = []
        self.identity_calls = []
        self.organization_calls = []

    def available_profiles(self):
        return sorted(self.profiles)

    def get_caller_account_id(self, profile):
        self.identity_calls.append(profile)
        identity = self.identities.get(profile)
        if isinstance(identity, Exception):
            raise identity
        if identity is None:
            raise client_error("InvalidClientTokenId", operation="GetCallerIdentity")
        return identity

    def list_organization_accounts(self, profile):
        self.organization_calls.append(profile)
        if self.organization is None:
            raise client_error("AWSOrganizationsNotInUseException", operation="ListAccounts")
        if isinstance(self.organization, Exception):
            raise self.organization
        return self.organization

    def get_cost_and_usage(self, profile, **params):
        self.cost_calls.append((profile, params))
        responses = self.costs.get(profile, [[]])
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def config(tmp_path):
    """Config with fast retries and output in a temp directory"""
    cfg = Config()
    cfg.aws_profile = None
    cfg.cost_metric = "UnblendedCost"
    cfg.max_workers = 4
    cfg.fetch_timeout = 30
    cfg.fetch_max_attempts = 3
    cfg.retry_base_delay = 0
    cfg.retry_max_delay = 0
    cfg.default_trailing_months = 1
    cfg.output_dir = tmp_path / "charts"
    cfg.visualization_dpi = 50
    cfg.table_max_columns = 10
    cfg.top_services = 10
    cfg.log_level = "INFO"
    return cfg


@pytest.fixture
def account_a():
    return Account(profile="alpha", account_id="111111111111")


@pytest.fixture
def account_b():
    return Account(profile="bravo", account_id="222222222222")


@pytest.fixture
def account_c():
    return Account(profile="charlie", account_id="333333333333")


@pytest.fixture
def quarter_series(account_a, account_b):
    """Two accounts, Jan-Mar 2025; account A has no February data"""
    series_a = AccountCostSeries.ok(
        account_a,
        [
            monthly_period(2025, 1, {"Amazon EC2": "100.00", "Amazon S3": "20.00"}),
            monthly_period(2025, 3, {"Amazon EC2": "120.00", "Amazon S3": "30.00"}),
        ],
    )
    series_b = AccountCostSeries.ok(
        account_b,
        [
            monthly_period(2025, 1, {"Amazon RDS": "50.00"}),
            monthly_period(2025, 2, {"Amazon RDS": "55.00"}),
            monthly_period(2025, 3, {"Amazon RDS": "60.00", "Amazon S3": "5.00"}),
        ],
    )
    return [series_a, series_b]
