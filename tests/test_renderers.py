"""
Tests for table, CSV, JSON and chart output.
"""

import io
import json
from datetime import date

import pandas as pd
import pytest

from aws_cost_rollup.aggregator import Aggregator
from aws_cost_rollup.models import (
    Account,
    AccountCostSeries,
    DateRange,
    Granularity,
    TagFilter,
)
from aws_cost_rollup.renderers import (
    ChartRenderer,
    CsvRenderer,
    JsonRenderer,
    RendererKind,
    TableRenderer,
    create_renderers,
)
from aws_cost_rollup.renderers.chart import chart_filename
from aws_cost_rollup.renderers.csv_export import (
    normalize_prefix,
    service_summary_filename,
    trend_filename,
)
from aws_cost_rollup.renderers.table import chunk
from aws_cost_rollup.report import build_report

from .conftest import monthly_period

QUARTER = DateRange(start=date(2025, 1, 1), end=date(2025, 3, 31))


def make_report(config, series, tag_filter=None):
    aggregator = Aggregator(config)
    view, summary = aggregator.aggregate(series)
    summaries = aggregator.summarize_accounts(series, view)
    return build_report(
        series, view, summary, summaries, QUARTER, Granularity.MONTHLY, tag_filter
    )


@pytest.fixture
def report(config, quarter_series, account_c):
    series = [*quarter_series, AccountCostSeries.failed(account_c, "AccessDeniedException: no")]
    return make_report(config, series, TagFilter(key="team"))


class TestTableRenderer:
    def test_sections(self, config, report):
        stream = io.StringIO()

        result = TableRenderer(config, stream=stream).render(report)

        output = stream.getvalue()
        assert result.kind is RendererKind.TABLE
        assert "UNIFIED COST VIEW (2025-01-01 to 2025-03-31) - Page 1" in output
        assert "COST TREND: Profile alpha Account 111111111111" in output
        assert "GLOBAL SUMMARY (ALL ACCOUNTS)" in output
        assert "Total Cost (2025-01-01 to 2025-03-31): $440.00" in output
        assert "N/A" in output

    def test_failures_listed(self, config, report):
        output = TableRenderer(config, stream=io.StringIO()).render(report).output

        assert "✗ 1 accounts could not be fetched:" in output
        assert "charlie/333333333333: AccessDeniedException: no" in output

    def test_wide_views_are_paged(self, config, report):
        config.table_max_columns = 4

        output = TableRenderer(config, stream=io.StringIO()).render(report).output

        assert "UNIFIED COST VIEW (2025-01-01 to 2025-03-31) - Page 3" in output

    def test_no_data(self, config, account_a):
        report = make_report(config, [AccountCostSeries.failed(account_a, "boom")])

        output = TableRenderer(config, stream=io.StringIO()).render(report).output

        assert "⚠ No cost data retrieved for any account" in output
        assert "$0.00" in output


def test_chunk():
    assert chunk([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunk([], 3) == []
    assert chunk([1, 2], 0) == [[1], [2]]


class TestCsvRenderer:
    def test_prefix_drops_csv_suffix(self):
        assert normalize_prefix("costs.csv") == "costs"
        assert normalize_prefix("out/costs") == "out/costs"

    def test_filenames(self, account_a):
        assert (
            trend_filename("costs", account_a)
            == "costs_trend_profile_alpha_account_111111111111.csv"
        )
        assert (
            service_summary_filename("costs", Account(profile="dev"))
            == "costs_service_summary_profile_dev_account_unknown.csv"
        )

    def test_writes_all_files(self, config, report, tmp_path):
        prefix = tmp_path / "costs.csv"

        result = CsvRenderer(config, str(prefix)).render(report)

        names = sorted(path.rsplit("/", 1)[-1] for path in result.paths)
        assert names == [
            "costs_global_summary.csv",
            "costs_service_summary_profile_alpha_account_111111111111.csv",
            "costs_service_summary_profile_bravo_account_222222222222.csv",
            "costs_trend_profile_alpha_account_111111111111.csv",
            "costs_trend_profile_bravo_account_222222222222.csv",
            "costs_unified_view.csv",
        ]

    def test_trend_file_contents(self, config, report, tmp_path):
        CsvRenderer(config, str(tmp_path / "costs")).render(report)

        trend = pd.read_csv(
            tmp_path / "costs_trend_profile_alpha_account_111111111111.csv", dtype=str
        )
        assert list(trend.columns) == ["Period", "Total Cost (USD)", "Change (%)"]
        assert list(trend["Total Cost (USD)"]) == ["120.00", "0.00", "150.00"]
        assert trend["Change (%)"].isna().tolist() == [True, False, True]

    def test_global_summary_contents(self, config, report, tmp_path):
        CsvRenderer(config, str(tmp_path / "costs")).render(report)

        summary = pd.read_csv(tmp_path / "costs_global_summary.csv", dtype=str)
        values = dict(zip(summary["Metric"], summary["Value"]))
        assert values["Total Cost (USD)"] == "440.00"
        assert values["Accounts Failed"] == "1"
        assert values["Failed: charlie/333333333333"] == "AccessDeniedException: no"

    def test_unified_view_has_total_row(self, config, report, tmp_path):
        CsvRenderer(config, str(tmp_path / "costs")).render(report)

        unified = pd.read_csv(tmp_path / "costs_unified_view.csv", dtype=str)
        assert list(unified["Profile"]) == ["alpha", "bravo", "Total"]
        assert list(unified["2025-02-01"]) == ["0.00", "55.00", "55.00"]


class TestJsonRenderer:
    def test_top_level_keys(self, config, report):
        stream = io.StringIO()

        JsonRenderer(config, stream=stream).render(report)

        data = json.loads(stream.getvalue())
        assert list(data) == ["accounts", "unified_view", "global_summary"]

    def test_account_entries(self, config, report):
        data = json.loads(JsonRenderer(config, stream=io.StringIO()).render(report).output)

        statuses = {entry["profile"]: entry["status"] for entry in data["accounts"]}
        assert statuses == {"alpha": "ok", "bravo": "ok", "charlie": "failed"}
        failed = data["accounts"][2]
        assert failed["error"] == "AccessDeniedException: no"
        assert "cost_trend" not in failed

    def test_global_summary(self, config, report):
        data = json.loads(JsonRenderer(config, stream=io.StringIO()).render(report).output)

        summary = data["global_summary"]
        assert summary["total_cost"] == pytest.approx(440.0)
        assert summary["period_count"] == 3
        assert summary["start_date"] == "2025-01-01"
        assert summary["tag_filter"] == {"key": "team", "value": None}
        assert summary["accounts_with_errors"][0]["profile"] == "charlie"


class TestChartRenderer:
    def test_writes_png_per_account(self, config, report):
        result = ChartRenderer(config).render(report)

        assert len(result.paths) == 2
        for summary in report.account_summaries:
            path = config.output_dir / chart_filename(summary.account)
            assert path.exists()
            assert path.read_bytes().startswith(b"\x89PNG")

    def test_chart_filename(self):
        account = Account(profile="dev")

        assert chart_filename(account) == "cost_trend_profile_dev_account_unknown.png"


def test_create_renderers_requires_csv_prefix(config):
    with pytest.raises(ValueError):
        create_renderers([RendererKind.CSV], config)


def test_create_renderers_order(config):
    renderers = create_renderers(
        [RendererKind.JSON, RendererKind.CSV, RendererKind.CHART], config, csv_prefix="x"
    )

    assert [renderer.kind for renderer in renderers] == [
        RendererKind.JSON,
        RendererKind.CSV,
        RendererKind.CHART,
    ]


def test_single_period_report_renders(config, account_a):
    report = make_report(
        config, [AccountCostSeries.ok(account_a, [monthly_period(2025, 1, {"EC2": "1"})])]
    )

    output = TableRenderer(config, stream=io.StringIO()).render(report).output

    assert "Trend:" not in output
    assert "EC2" in output
