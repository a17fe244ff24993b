"""Tests for report formatter module."""

import os
import sys
from datetime import date

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import Record
from report_formatter import format_message, format_report


class TestFormatReport:
    """Test cases for format_report."""

    def test_two_services(self):
        records = [Record("EC2", 120.00, 60.0), Record("S3", 80.00, 40.0)]

        content = format_report("1234", date(2024, 5, 1), date(2024, 5, 15), 200.00, records)
        lines = content.splitlines()

        assert "1234" in lines[0]
        assert "2024-05-01 - 2024-05-15" in lines[1]
        assert "Total: $200.00" in lines
        assert lines.index("- EC2: $120.00 (60.0%)") < lines.index("- S3: $80.00 (40.0%)")

    def test_exact_layout(self):
        records = [Record("EC2", 120.0, 60.0), Record("S3", 80.0, 40.0)]

        content = format_report("1234", date(2024, 5, 1), date(2024, 5, 15), 200.0, records)

        assert content == (
            "AWS Account: 1234\n"
            "TimePeriod: 2024-05-01 - 2024-05-15\n"
            "Total: $200.00\n"
            "\n"
            "- EC2: $120.00 (60.0%)\n"
            "- S3: $80.00 (40.0%)\n"
        )

    def test_empty_records(self):
        content = format_report("1234", date(2024, 5, 1), date(2024, 5, 15), 0.0, [])

        assert "Total: $0.00" in content
        assert not [line for line in content.splitlines() if line.startswith("- ")]
        assert content.splitlines()[0] == "AWS Account: 1234"

    def test_rounding(self):
        records = [Record("AWS Lambda", 0.004, 0.04999), Record("EC2", 1234.567, 99.96)]

        content = format_report("1", date(2024, 5, 1), date(2024, 5, 2), 1234.571, records)

        assert "- AWS Lambda: $0.00 (0.0%)" in content
        assert "- EC2: $1234.57 (100.0%)" in content
        assert "Total: $1234.57" in content

    def test_no_thousands_separator(self):
        records = [Record("EC2", 12345.6, 100.0)]

        content = format_report("1", date(2024, 5, 1), date(2024, 5, 2), 12345.6, records)

        assert "Total: $12345.60" in content


class TestFormatMessage:
    """Test cases for format_message."""

    def test_default_title(self):
        assert format_message("body") == "__Daily Report__\n\nbody"

    def test_custom_title(self):
        assert format_message("body", title="Weekly Report").startswith("__Weekly Report__")
