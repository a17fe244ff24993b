"""Visualizer - Renders cost breakdown charts (PNG via matplotlib, HTML via Apache ECharts)."""

import html
import io
import logging
import math
import os
import re
from datetime import datetime
from typing import Any, List, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from pyecharts import options as opts  # noqa: E402
from pyecharts.charts import Page, Pie  # noqa: E402
from pyecharts.commons.utils import JsCode  # noqa: E402
from pyecharts.globals import ThemeType  # noqa: E402

from errors import RenderError  # noqa: E402
from models import ChartBucket, Report  # noqa: E402

logger = logging.getLogger(__name__)


def _safe_round(value: Any, decimals: int = 2) -> float:
    """Safely round a value, handling NaN/None/Inf."""
    if value is None:
        return 0.0
    try:
        float_val = float(value)
        if math.isnan(float_val) or math.isinf(float_val):
            return 0.0
        return round(float_val, decimals)
    except (TypeError, ValueError):
        return 0.0


def _drawable_buckets(buckets: Sequence[ChartBucket]) -> List[ChartBucket]:
    """Buckets that can be drawn as pie slices (positive values only)."""
    return [b for b in buckets if _safe_round(b.value) > 0]


class CostVisualizer:
    """Generate cost breakdown charts for delivery and HTML reports."""

    def __init__(
        self, theme: str = "macarons", width: int = 512, height: int = 512, dpi: int = 100
    ) -> None:
        """
        Initialize the visualizer.

        Args:
            theme: pyecharts theme for HTML charts (macarons, shine, roma, vintage, etc.)
            width: PNG width in pixels
            height: PNG height in pixels
            dpi: PNG resolution
        """
        theme_map = {
            "macarons": ThemeType.MACARONS,
            "shine": ThemeType.SHINE,
            "roma": ThemeType.ROMA,
            "vintage": ThemeType.VINTAGE,
            "dark": ThemeType.DARK,
            "light": ThemeType.LIGHT,
        }
        self.theme = theme_map.get(theme.lower(), ThemeType.MACARONS)
        self.width = width
        self.height = height
        self.dpi = dpi
        self.charts = []

    def render_pie_png(self, buckets: Sequence[ChartBucket]) -> bytes:
        """
        Render the cost breakdown as a PNG pie chart.

        Args:
            buckets: Chart buckets ("Others" last)

        Returns:
            PNG image bytes

        Raises:
            RenderError: If matplotlib fails to draw or encode the image
        """
        logger.info("Rendering cost pie chart...")
        drawable = _drawable_buckets(buckets)

        fig, ax = plt.subplots(figsize=(self.width / self.dpi, self.height / self.dpi), dpi=self.dpi)
        try:
            if drawable:
                ax.pie(
                    [b.value for b in drawable],
                    labels=[b.label for b in drawable],
                    autopct="%1.1f%%",
                    startangle=90,
                    counterclock=False,
                    textprops={"fontsize": 7},
                )
                ax.axis("equal")
            else:
                ax.text(0.5, 0.5, "No cost data", ha="center", va="center", fontsize=14)
                ax.axis("off")

            buffer = io.BytesIO()
            fig.savefig(buffer, format="png", dpi=self.dpi)
            return buffer.getvalue()
        except (ValueError, TypeError, RuntimeError, OSError) as e:
            logger.error(f"Error rendering pie chart: {e}")
            raise RenderError(f"Could not render pie chart: {e}") from e
        finally:
            plt.close(fig)

    def create_cost_pie_chart(
        self, buckets: Sequence[ChartBucket], title: str = "Cost Breakdown by Service"
    ) -> Pie:
        """
        Create an interactive pie chart of the cost breakdown.

        Args:
            buckets: Chart buckets ("Others" last)
            title: Chart title

        Returns:
            pyecharts Pie chart
        """
        logger.info("Creating cost pie chart...")

        data_pair = [(b.label, _safe_round(b.value)) for b in _drawable_buckets(buckets)]
        if not data_pair:
            logger.warning("No positive costs to chart; creating an empty pie")

        pie = Pie(init_opts=opts.InitOpts(theme=self.theme, height="600px", width="100%"))
        try:
            if data_pair:
                pie.add(
                    series_name="Cost",
                    data_pair=data_pair,
                    radius=["35%", "65%"],
                    center=["55%", "55%"],
                    label_opts=opts.LabelOpts(formatter="{b}: {d}%"),
                )
            pie.set_global_opts(
                title_opts=opts.TitleOpts(
                    title=title,
                    subtitle=None if data_pair else "No cost data",
                    title_textstyle_opts=opts.TextStyleOpts(font_size=18, font_weight="bold"),
                ),
                legend_opts=opts.LegendOpts(orient="vertical", pos_left="1%", pos_top="10%"),
                tooltip_opts=opts.TooltipOpts(
                    trigger="item",
                    formatter=JsCode(
                        """function(params) {
                            return params.name + ': $' + params.value.toLocaleString(undefined,
                                {minimumFractionDigits: 2, maximumFractionDigits: 2})
                                + ' (' + params.percent + '%)';
                        }"""
                    ),
                ),
            )
        except (IndexError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error creating pie chart: {e}")
            raise RenderError(f"Could not create pie chart: {e}") from e

        self.charts.append(("cost_pie", pie))
        return pie

    def generate_html_report(
        self, output_path: str, report: Report, title: str = "AWS Cost Report"
    ) -> str:
        """
        Generate an HTML report with the summary and the charts created since
        the last report. The chart list is emptied so the visualizer can be
        reused for the next report.

        Args:
            output_path: Path to save the HTML report
            report: Report whose summary is shown in the header
            title: Report title

        Returns:
            Path to the generated HTML file
        """
        logger.info(f"Generating HTML report: {output_path}")

        if not self.charts:
            self.create_cost_pie_chart(report.buckets)

        os.makedirs(
            os.path.dirname(output_path) if os.path.dirname(output_path) else ".", exist_ok=True
        )

        charts, self.charts = self.charts, []
        page = Page(layout=Page.SimplePageLayout)
        for _name, chart in charts:
            page.add(chart)

        try:
            page.render(output_path)
            with open(output_path, "r", encoding="utf-8") as f:
                chart_html = f.read()
        except (OSError, IndexError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error writing HTML report: {e}")
            raise RenderError(f"Could not write HTML report {output_path}: {e}") from e

        # ECharts scripts live in <head>, the chart containers in <body>
        scripts = []
        head_match = re.search(r"<head>(.*?)</head>", chart_html, re.DOTALL)
        if head_match:
            scripts = re.findall(r"<script[^>]*>.*?</script>", head_match.group(1), re.DOTALL)
        script_block = "\n".join(scripts)

        body_match = re.search(r"<body[^>]*>", chart_html)
        chart_content = chart_html[body_match.end() :] if body_match else chart_html
        chart_content = chart_content.replace("</body>", "").replace("</html>", "")
        chart_content = chart_content.replace("locale: 'ZH'", "locale: 'EN'")
        chart_content = chart_content.replace('locale: "ZH"', 'locale: "EN"')

        safe_title = html.escape(str(title))
        safe_account = html.escape(str(report.account))
        safe_period = html.escape(str(report.period))
        safe_total_cost = _safe_round(report.total, 2)

        rows = "\n".join(
            f"<tr><td>{html.escape(r.name)}</td>"
            f"<td class=\"num\">${r.cost:,.2f}</td>"
            f"<td class=\"num\">{r.ratio:.1f}%</td></tr>"
            for r in report.records
        )

        final_html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{safe_title}</title>
    {script_block}
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            padding: 40px 20px;
            margin: 0;
        }}
        .main-container {{
            max-width: 1200px;
            margin: 0 auto;
            background: #ffffff;
            border-radius: 20px;
            overflow: hidden;
        }}
        .header {{
            background: linear-gradient(135deg, #5470c6 0%, #91cc75 100%);
            color: white;
            padding: 40px;
            text-align: center;
        }}
        .content {{ padding: 40px; }}
        table {{ border-collapse: collapse; width: 100%; margin-bottom: 40px; }}
        th, td {{ padding: 8px 12px; border-bottom: 1px solid #e8e8e8; text-align: left; }}
        td.num {{ text-align: right; font-variant-numeric: tabular-nums; }}
        .footer {{
            text-align: center;
            padding: 20px;
            background: #f8f9fa;
            color: #6c757d;
            font-size: 14px;
        }}
    </style>
</head>
<body>
    <div class="main-container">
        <div class="header">
            <h1>{safe_title}</h1>
            <p>AWS Account: {safe_account} | {safe_period} | Total: ${safe_total_cost:,.2f}</p>
        </div>
        <div class="content">
            <table>
                <thead><tr><th>Service</th><th>Cost</th><th>Share</th></tr></thead>
                <tbody>
{rows}
                </tbody>
            </table>
            {chart_content}
        </div>
        <div class="footer">
            <strong>Report generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</strong><br>
            Powered by Apache ECharts | AWS Cost Report Generator
        </div>
    </div>
</body>
</html>
"""

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(final_html)

        logger.info(f"HTML report generated successfully: {output_path}")
        return output_path
