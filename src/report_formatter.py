"""Report Formatter - Renders ranked costs as message text."""

from datetime import date
from typing import Iterable

from models import Record

DEFAULT_TITLE = "Daily Report"


def format_report(
    account: str, start: date, end: date, total: float, records: Iterable[Record]
) -> str:
    """
    Render the report body.

    Layout::

        AWS Account: <account>
        TimePeriod: <start> - <end>
        Total: $<total>

        - <service>: $<cost> (<ratio>%)

    Costs use two decimals and ratios one decimal, independent of locale.
    """
    lines = [
        f"AWS Account: {account}",
        f"TimePeriod: {start.isoformat()} - {end.isoformat()}",
        f"Total: ${total:.2f}",
        "",
    ]
    for record in records:
        lines.append(f"- {record.name}: ${record.cost:.2f} ({record.ratio:.1f}%)")

    return "\n".join(lines) + "\n"


def format_message(content: str, title: str = DEFAULT_TITLE) -> str:
    """Prefix the report body with an underlined title (Discord markdown)."""
    return f"__{title}__\n\n{content}"
