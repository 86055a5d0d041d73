"""
Error types for AWS Cost Rollup

Configuration errors are fatal and abort the run before any cost query is
dispatched. Cost query errors are raised inside the fetcher and end up as a
failed series for a single account.
"""


class CostRollupError(Exception):
    """Base exception for the cost rollup"""


class ConfigurationError(CostRollupError):
    """Invalid run configuration, reported to the user before any fetch"""


class InvalidDateRangeError(ConfigurationError):
    """Start date falls after the end date"""


class HourlyRangeTooLongError(ConfigurationError):
    """Hourly granularity requested for a range longer than the API allows"""


class MalformedAccountMapError(ConfigurationError):
    """Profile-account map file can't be read or isn't a flat JSON object"""


class NoProfilesFoundError(ConfigurationError):
    """Nothing to query: no credential profiles and no usable account map"""


class NoAccountsMatchedError(ConfigurationError):
    """Account id filter removed every resolved account"""


class CostQueryError(CostRollupError):
    """A cost query for one account failed

    Args:
        reason: Human readable failure description
        retryable: True for throttling and transport errors
    """

    def __init__(self, reason, retryable=False):
        super().__init__(reason)
        self.reason = reason
        self.retryable = retryable
