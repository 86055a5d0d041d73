"""
Command Line Interface for AWS Cost Rollup
"""

import argparse
import logging
import sys
from datetime import timedelta

from .config import RunRequest
from .errors import ConfigurationError
from .main import CostRollup
from .models import DateRange, Granularity, TagFilter
from .utils import parse_iso_date, today_utc, trailing_full_months

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INTERRUPTED = 130

# Ranges longer than this get an advisory warning
LONG_RANGE_DAYS = 180


def split_list(value):
    """Parse a comma separated flag value"""
    return [item.strip() for item in value.split(",") if item.strip()]


def calculate_date_range(args, config, today=None):
    """Calculate start and end dates based on arguments

    Without dates the range covers the trailing full months before today.
    """
    today = today or today_utc()
    default_start, default_end = trailing_full_months(
        today, config.default_trailing_months
    )

    try:
        end_date = parse_iso_date(args.end_date) if args.end_date else default_end
        start_date = parse_iso_date(args.start_date) if args.start_date else None
    except ValueError as e:
        raise ConfigurationError(f"Invalid date, expected YYYY-MM-DD: {e}") from e

    if start_date is None:
        start_date = min(default_start, end_date)

    if start_date < end_date - timedelta(days=LONG_RANGE_DAYS):
        logger.warning(
            "⚠ Start date %s is more than %d days before %s; trend tables will be wide",
            start_date,
            LONG_RANGE_DAYS,
            end_date,
        )

    return DateRange(start=start_date, end=end_date)


def build_tag_filter(args):
    if args.tag_value and not args.tag_key:
        raise ConfigurationError("--tag-value requires --tag-key")
    if not args.tag_key:
        return None
    return TagFilter(key=args.tag_key, value=args.tag_value)


def build_parser():
    parser = argparse.ArgumentParser(
        description=(
            "AWS Cost Rollup - cost trends and service consumption across "
            "multiple AWS accounts and profiles"
        )
    )
    parser.add_argument("--start-date", type=str, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end-date", type=str, help="End date (YYYY-MM-DD), inclusive")
    parser.add_argument(
        "--profiles",
        type=split_list,
        help="Comma-separated AWS profile names (default: all configured profiles)",
    )
    parser.add_argument(
        "--account-id",
        type=split_list,
        dest="account_ids",
        help="Comma-separated account IDs to keep after resolution",
    )
    parser.add_argument(
        "--granularity",
        choices=[granularity.value for granularity in Granularity],
        default=Granularity.MONTHLY.value,
        help="Time bucket size (default: monthly)",
    )
    parser.add_argument("--csv", type=str, metavar="PREFIX", help="Export CSV files")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of tables")
    parser.add_argument(
        "--chart", action="store_true", help="Save a PNG cost trend chart per account"
    )
    parser.add_argument("--tag-key", type=str, help="Cost allocation tag key to filter by")
    parser.add_argument(
        "--tag-value",
        type=str,
        help="Tag value to filter by (default: any value of --tag-key)",
    )
    parser.add_argument(
        "--profile-account-map",
        type=str,
        help='JSON file mapping profiles to account IDs, e.g. {"prod": "123456789012"}',
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def setup_logging(config, verbose=False):
    """Send diagnostics to stderr so stdout carries only report output"""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr, force=True)
    # Keep botocore request chatter out of debug runs
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)


def build_request(args, config):
    return RunRequest(
        date_range=calculate_date_range(args, config),
        granularity=Granularity.parse(args.granularity),
        tag_filter=build_tag_filter(args),
        profiles=args.profiles,
        account_ids=args.account_ids,
        profile_account_map=args.profile_account_map,
        csv_prefix=args.csv,
        json_output=args.json,
        chart=args.chart,
    )


def main(argv=None, rollup=None):
    """Main entry point"""
    args = build_parser().parse_args(argv)

    rollup = rollup or CostRollup()
    setup_logging(rollup.config, args.verbose)
    logger.debug("Configuration: %s", rollup.config.to_dict())

    try:
        request = build_request(args, rollup.config)
        logger.info("🏦 AWS COST ROLLUP: %s (%s)", request.date_range, args.granularity)
        report = rollup.run(request)
        rollup.render(report, request)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("❌ Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED

    failed = len(report.global_summary.accounts_with_errors)
    if failed:
        logger.warning("⚠ Completed with %d failed accounts", failed)
    else:
        logger.info("🎉 Rollup completed successfully!")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
