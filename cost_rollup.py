#!/usr/bin/env python3
"""
AWS Cost Rollup
Fetches cost data for every configured AWS account and reports trends,
service consumption and a unified cross-account view

USAGE EXAMPLES:
  ./cost_rollup.py                                     # Last full month, all profiles
  ./cost_rollup.py --start-date 2025-01-01 --end-date 2025-03-31
  ./cost_rollup.py --profiles prod,dev --csv reports/costs
  ./cost_rollup.py --profile-account-map accounts.json --json
  ./cost_rollup.py --granularity daily --tag-key team --chart
"""

import sys

from aws_cost_rollup.cli import main

if __name__ == "__main__":
    sys.exit(main())
