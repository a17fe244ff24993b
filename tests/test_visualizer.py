"""Tests for visualizer module."""

import os
import sys
from unittest.mock import Mock, patch

import pytest
from pyecharts.charts import Pie
from pyecharts.globals import ThemeType

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from cost_processor import aggregate_costs, build_chart_buckets
from errors import RenderError
from models import ChartBucket, Report
from report_formatter import format_report
from visualizer import CostVisualizer, _safe_round

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _png_size(data: bytes):
    # IHDR chunk: width and height are the first two 4-byte fields
    return int.from_bytes(data[16:20], "big"), int.from_bytes(data[20:24], "big")


@pytest.fixture
def sample_buckets(sample_entries):
    return build_chart_buckets(aggregate_costs(sample_entries))


@pytest.fixture
def sample_report(sample_entries, sample_period):
    records = aggregate_costs(sample_entries)
    return Report(
        account="123456789012",
        period=sample_period,
        content=format_report(
            "123456789012", sample_period.start, sample_period.end, records.total, records
        ),
        buckets=tuple(build_chart_buckets(records)),
        records=records,
    )


class TestCostVisualizer:
    """Test cases for CostVisualizer class."""

    def test_initialization(self):
        visualizer = CostVisualizer()

        assert visualizer.theme == ThemeType.MACARONS
        assert visualizer.charts == []
        assert (visualizer.width, visualizer.height) == (512, 512)

    def test_initialization_custom_theme(self):
        visualizer = CostVisualizer(theme="shine")

        assert visualizer.theme == ThemeType.SHINE

    def test_render_pie_png(self, sample_buckets):
        png = CostVisualizer().render_pie_png(sample_buckets)

        assert png.startswith(PNG_SIGNATURE)
        assert _png_size(png) == (512, 512)

    def test_render_pie_png_custom_size(self, sample_buckets):
        png = CostVisualizer(width=300, height=200).render_pie_png(sample_buckets)

        assert _png_size(png) == (300, 200)

    def test_render_pie_png_zero_others(self):
        buckets = [ChartBucket("EC2", 120.0), ChartBucket("S3", 80.0), ChartBucket("Others", 0.0)]

        png = CostVisualizer().render_pie_png(buckets)

        assert png.startswith(PNG_SIGNATURE)

    def test_render_pie_png_no_data(self):
        png = CostVisualizer().render_pie_png([ChartBucket("Others", 0.0)])

        assert png.startswith(PNG_SIGNATURE)

    def test_render_pie_png_failure(self, sample_buckets):
        with patch("visualizer.plt") as mock_plt:
            fig = Mock()
            fig.savefig.side_effect = RuntimeError("backend failure")
            mock_plt.subplots.return_value = (fig, Mock())

            with pytest.raises(RenderError):
                CostVisualizer().render_pie_png(sample_buckets)

            mock_plt.close.assert_called_once_with(fig)

    def test_create_cost_pie_chart(self, sample_buckets):
        visualizer = CostVisualizer()
        chart = visualizer.create_cost_pie_chart(sample_buckets)

        assert isinstance(chart, Pie)
        assert visualizer.charts == [("cost_pie", chart)]

    def test_generate_html_report(self, sample_report, temp_output_dir):
        visualizer = CostVisualizer()
        output_path = str(temp_output_dir / "report.html")

        result = visualizer.generate_html_report(output_path, sample_report)

        assert result == output_path
        with open(output_path, encoding="utf-8") as f:
            content = f.read()
        assert "123456789012" in content
        assert "2024-05-01 - 2024-05-15" in content
        assert "Amazon Relational Database Service" in content
        assert "$1,000.00" in content

    def test_generate_html_report_escapes_names(self, sample_period, temp_output_dir):
        records = aggregate_costs([])
        report = Report(
            account="<script>alert(1)</script>",
            period=sample_period,
            content="",
            buckets=(ChartBucket("Others", 0.0),),
            records=records,
        )
        output_path = str(temp_output_dir / "nested" / "report.html")

        CostVisualizer().generate_html_report(output_path, report)

        with open(output_path, encoding="utf-8") as f:
            content = f.read()
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in content

    def test_create_cost_pie_chart_no_data(self):
        visualizer = CostVisualizer()

        chart = visualizer.create_cost_pie_chart(build_chart_buckets(aggregate_costs([])))

        assert isinstance(chart, Pie)
        assert visualizer.charts == [("cost_pie", chart)]

    def test_create_cost_pie_chart_failure(self, sample_buckets):
        with patch("visualizer.Pie") as mock_pie:
            mock_pie.return_value.add.side_effect = IndexError("list index out of range")

            with pytest.raises(RenderError):
                CostVisualizer().create_cost_pie_chart(sample_buckets)

    def test_generate_html_report_zero_total(self, sample_period, temp_output_dir):
        records = aggregate_costs([])
        report = Report(
            account="123456789012",
            period=sample_period,
            content=format_report("123456789012", sample_period.start, sample_period.end, 0.0, records),
            buckets=tuple(build_chart_buckets(records)),
            records=records,
        )
        output_path = str(temp_output_dir / "empty.html")

        CostVisualizer().generate_html_report(output_path, report)

        with open(output_path, encoding="utf-8") as f:
            content = f.read()
        assert "No cost data" in content
        assert "Total: $0.00" in content

    def test_generate_html_report_reused_visualizer(self, sample_report, temp_output_dir):
        visualizer = CostVisualizer()
        first = str(temp_output_dir / "first.html")
        second = str(temp_output_dir / "second.html")

        visualizer.generate_html_report(first, sample_report)
        assert visualizer.charts == []
        visualizer.generate_html_report(second, sample_report)

        with open(second, encoding="utf-8") as f:
            content = f.read()
        assert content.count("echarts.init(") == 1


class TestSafeRound:
    def test_values(self):
        assert _safe_round(1.234) == 1.23
        assert _safe_round(None) == 0.0
        assert _safe_round(float("nan")) == 0.0
        assert _safe_round("abc") == 0.0
