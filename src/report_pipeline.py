"""Report Pipeline - Fetches, aggregates, renders and delivers the cost report."""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional

from config import REPORT_TIMEZONE, ReportConfig
from cost_processor import OTHERS_THRESHOLD, aggregate_costs, build_chart_buckets
from models import DateRange, Report
from report_formatter import DEFAULT_TITLE, format_message, format_report

logger = logging.getLogger(__name__)


def get_time_period(now: Optional[datetime] = None, tz: tzinfo = REPORT_TIMEZONE) -> DateRange:
    """
    Derive the reporting period: first day of the current month through today.

    Both dates are taken in ``tz``, not the host's local time zone.

    Args:
        now: Reference instant (naive values are treated as UTC). Default: current time
        tz: Time zone defining "today"

    Returns:
        Inclusive DateRange
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    today = now.astimezone(tz).date()
    return DateRange(start=today.replace(day=1), end=today)


class ReportPipeline:
    """
    Run one cost report end to end.

    Collaborators are duck-typed:

    - ``fetcher.fetch_costs(period)`` returns a list of CostEntry
    - ``renderer.render_pie_png(buckets)`` returns PNG bytes
    - ``notifier.send(content, attachment)`` delivers the message

    Any collaborator error propagates unchanged; nothing is delivered for a
    run that failed part way.
    """

    def __init__(
        self,
        config: ReportConfig,
        fetcher,
        renderer=None,
        notifier=None,
        threshold: float = OTHERS_THRESHOLD,
        include_empty_others: bool = True,
        title: str = DEFAULT_TITLE,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.renderer = renderer
        self.notifier = notifier
        self.threshold = threshold
        self.include_empty_others = include_empty_others
        self.title = title

    def build_report(self, period: DateRange) -> Report:
        """Fetch costs for ``period`` and build the report text and chart data."""
        entries = self.fetcher.fetch_costs(period)
        records = aggregate_costs(entries)

        buckets = build_chart_buckets(
            records, threshold=self.threshold, include_empty_others=self.include_empty_others
        )
        content = format_report(
            self.config.account_id, period.start, period.end, records.total, records
        )

        report = Report(
            account=self.config.account_id,
            period=period,
            content=content,
            buckets=tuple(buckets),
            records=records,
        )
        if report.is_empty:
            logger.warning(f"No spend recorded for {period}; report is all zero")
        return report

    def render_chart(self, report: Report) -> bytes:
        if self.renderer is None:
            raise ValueError("No chart renderer configured")
        return self.renderer.render_pie_png(report.buckets)

    def deliver(self, report: Report, chart: Optional[bytes]) -> Optional[str]:
        if self.notifier is None:
            raise ValueError("No notifier configured")
        return self.notifier.send(format_message(report.content, self.title), chart)

    def run(
        self, period: Optional[DateRange] = None, deliver: bool = True, skip_empty: bool = False
    ) -> Report:
        """
        Build, render and deliver the report.

        Args:
            period: Reporting period. Default: derived with get_time_period()
            deliver: Send the report (False builds and renders only)
            skip_empty: Do not deliver a report with zero total spend

        Returns:
            The built Report
        """
        period = period or get_time_period()
        logger.info(f"Running cost report for account {self.config.account_id}, {period}")

        report = self.build_report(period)
        chart = self.render_chart(report)

        if not deliver:
            logger.info("Delivery disabled; report not sent")
        elif skip_empty and report.is_empty:
            logger.info("Report has no spend; delivery skipped")
        else:
            self.deliver(report, chart)

        return report
