"""
AWS Cost Rollup

Multi-account AWS cost reporting that provides:
- Account discovery from profile maps, AWS Organizations or caller identity
- Concurrent Cost Explorer queries per account
- A unified cross-account cost view per period
- Per-account cost trends and service consumption
- Table, CSV, JSON and PNG chart output
"""

from .config import Config, RunRequest
from .main import CostRollup

__version__ = "1.0.0"
__all__ = ["Config", "CostRollup", "RunRequest"]
