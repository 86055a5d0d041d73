"""
Main orchestrator for AWS Cost Rollup
"""

import logging

from .aggregator import Aggregator
from .aws_client import AWSClient
from .config import Config
from .dispatcher import FetchDispatcher
from .fetcher import CostFetcher
from .renderers import RendererKind, create_renderers
from .report import build_report
from .resolver import AccountResolver

logger = logging.getLogger(__name__)


class CostRollup:
    """Runs the resolve, fetch, aggregate and render pipeline"""

    def __init__(self, config=None, client=None):
        """
        Initialize the pipeline

        Args:
            config: Config, or None to read settings from the environment
            client: AWS client, or None for a boto3-backed AWSClient
        """
        self.config = config or Config()
        self.client = client or AWSClient(self.config)

        # Initialize components
        self.resolver = AccountResolver(self.config, self.client)
        self.fetcher = CostFetcher(self.config, self.client)
        self.dispatcher = FetchDispatcher(self.config, self.fetcher)
        self.aggregator = Aggregator(self.config)

    def run(self, request):
        """
        Produce a report for one run

        Configuration errors are raised before any cost query goes out.
        Per-account failures are carried inside the report.

        Args:
            request: RunRequest

        Returns:
            Report
        """
        self.fetcher.validate(request.date_range, request.granularity)

        accounts = self.resolver.resolve(
            profiles=request.profiles,
            mapping_path=request.profile_account_map,
            account_ids=request.account_ids,
        )
        logger.info(
            "Fetching %s costs for %d accounts (%s)",
            request.granularity.value,
            len(accounts),
            request.date_range,
        )

        series = self.dispatcher.fetch_all(
            accounts, request.date_range, request.granularity, request.tag_filter
        )

        unified_view, global_summary = self.aggregator.aggregate(
            series, request.granularity
        )
        account_summaries = self.aggregator.summarize_accounts(
            series, unified_view, request.granularity
        )

        return build_report(
            accounts=series,
            unified_view=unified_view,
            global_summary=global_summary,
            account_summaries=account_summaries,
            date_range=request.date_range,
            granularity=request.granularity,
            tag_filter=request.tag_filter,
        )

    def renderer_kinds(self, request):
        """Output kinds selected by a request; JSON replaces the table"""
        kinds = [RendererKind.JSON if request.json_output else RendererKind.TABLE]
        if request.csv_prefix:
            kinds.append(RendererKind.CSV)
        if request.chart:
            kinds.append(RendererKind.CHART)
        return kinds

    def render(self, report, request):
        """Run every selected renderer over the finished report"""
        renderers = create_renderers(
            self.renderer_kinds(request), self.config, csv_prefix=request.csv_prefix
        )
        return [renderer.render(report) for renderer in renderers]
