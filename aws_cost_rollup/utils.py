"""
Shared utility functions for AWS Cost Rollup
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation


def clean_service_name(service_name, max_length=16):
    """Clean and abbreviate AWS service names for better readability"""
    name = service_name

    # Remove redundant prefixes
    name = name.replace("Amazon ", "").replace("AWS ", "")

    # Common AWS service abbreviations that are still readable
    name = name.replace("Elastic Compute Cloud - Compute", "EC2")
    name = name.replace("EC2 - Other", "EC2 Other")
    name = name.replace("Elastic Compute Cloud", "EC2")
    name = name.replace("Relational Database Service", "RDS")
    name = name.replace("Simple Storage Service", "S3")
    name = name.replace("Elastic Load Balancing", "ELB")
    name = name.replace("Virtual Private Cloud", "VPC")
    name = name.replace("Elastic Container Service", "ECS")
    name = name.replace("Elastic Kubernetes Service", "EKS")
    name = name.replace("Simple Queue Service", "SQS")
    name = name.replace("Simple Notification Service", "SNS")

    # Truncate if still too long, but keep it readable
    if len(name) > max_length:
        name = name[: max_length - 3] + "..."

    return name


def today_utc():
    return datetime.now(tz=timezone.utc).date()


def parse_iso_date(value):
    """Parse a YYYY-MM-DD string into a date"""
    return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc).date()


def parse_api_timestamp(value):
    """Parse a Cost Explorer period boundary

    Daily and monthly results carry plain dates, hourly results carry
    timestamps like 2025-01-01T05:00:00Z.
    """
    if "T" in value:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ").replace(
            tzinfo=timezone.utc
        )
    return parse_iso_date(value)


def shift_months(day, months):
    """First day of the month that is `months` months before `day`'s month"""
    year = day.year
    month = day.month - months
    while month <= 0:
        month += 12
        year -= 1
    return date(year, month, 1)


def trailing_full_months(today, months):
    """Start and end of the last `months` complete calendar months"""
    end_date = date(today.year, today.month, 1) - timedelta(days=1)
    start_date = shift_months(today, months)
    return start_date, end_date


def to_decimal(amount):
    """Convert an API amount string to Decimal, treating junk as zero"""
    if amount is None:
        return Decimal("0")
    try:
        return Decimal(str(amount))
    except InvalidOperation:
        return Decimal("0")


def format_cost(value):
    return f"{value:.2f}"


def format_percent(value):
    return "N/A" if value is None else f"{value:.1f}"
