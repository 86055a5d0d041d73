"""
Configuration management for AWS Cost Rollup
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Configuration settings for AWS Cost Rollup"""

    def __init__(self):
        # AWS Configuration
        self.aws_profile = os.getenv("AWS_PROFILE") or None
        self.aws_region = os.getenv("AWS_REGION", "us-east-1")
        self.cost_metric = os.getenv("COST_METRIC", "UnblendedCost")
        self.connect_timeout = float(os.getenv("AWS_CONNECT_TIMEOUT", "10"))
        self.read_timeout = float(os.getenv("AWS_READ_TIMEOUT", "30"))

        # Fetch Settings
        self.max_workers = int(os.getenv("MAX_WORKERS", "8"))
        self.fetch_timeout = float(os.getenv("FETCH_TIMEOUT", "60"))
        self.fetch_max_attempts = int(os.getenv("FETCH_MAX_ATTEMPTS", "3"))
        self.retry_base_delay = float(os.getenv("RETRY_BASE_DELAY", "1.0"))
        self.retry_max_delay = float(os.getenv("RETRY_MAX_DELAY", "8.0"))

        # Date Range Defaults
        self.default_trailing_months = int(os.getenv("DEFAULT_TRAILING_MONTHS", "1"))

        # Output Settings
        self.output_dir = Path(os.getenv("OUTPUT_DIR", "."))
        self.visualization_dpi = int(os.getenv("VISUALIZATION_DPI", "100"))
        self.table_max_columns = int(os.getenv("TABLE_MAX_COLUMNS", "10"))
        self.top_services = int(os.getenv("TOP_SERVICES", "10"))

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def to_dict(self):
        """Convert configuration to dictionary"""
        return {
            "aws_profile": self.aws_profile,
            "aws_region": self.aws_region,
            "cost_metric": self.cost_metric,
            "max_workers": self.max_workers,
            "fetch_timeout": self.fetch_timeout,
            "fetch_max_attempts": self.fetch_max_attempts,
            "retry_base_delay": self.retry_base_delay,
            "retry_max_delay": self.retry_max_delay,
            "default_trailing_months": self.default_trailing_months,
            "output_dir": str(self.output_dir),
            "visualization_dpi": self.visualization_dpi,
        }


@dataclass
class RunRequest:
    """Parameters of one run, as given on the command line"""

    date_range: object
    granularity: object
    tag_filter: object = None
    profiles: list | None = None
    account_ids: list | None = None
    profile_account_map: str | None = None
    csv_prefix: str | None = None
    json_output: bool = False
    chart: bool = False
