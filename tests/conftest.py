"""Pytest fixtures and configuration for test suite."""

import os
import sys
from datetime import date

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import CostEntry, DateRange


@pytest.fixture
def sample_entries():
    """Month-to-date costs for a small account, in Cost Explorer (unsorted) order."""
    return [
        CostEntry(service="AWS Lambda", amount=4.20),
        CostEntry(service="Amazon Elastic Compute Cloud - Compute", amount=612.35),
        CostEntry(service="Amazon Simple Storage Service", amount=88.10),
        CostEntry(service="AWS Key Management Service", amount=1.00),
        CostEntry(service="Amazon Relational Database Service", amount=254.75),
        CostEntry(service="Amazon Route 53", amount=3.50),
        CostEntry(service="AmazonCloudWatch", amount=36.10),
        CostEntry(service="Tax", amount=0.0),
    ]


@pytest.fixture
def sample_period():
    return DateRange(start=date(2024, 5, 1), end=date(2024, 5, 15))


@pytest.fixture
def ce_response():
    """A single-page Cost Explorer get_cost_and_usage response grouped by service."""
    return {
        "GroupDefinitions": [{"Type": "DIMENSION", "Key": "SERVICE"}],
        "ResultsByTime": [
            {
                "TimePeriod": {"Start": "2024-05-01", "End": "2024-05-16"},
                "Total": {},
                "Groups": [
                    {
                        "Keys": ["Amazon Elastic Compute Cloud - Compute"],
                        "Metrics": {"BlendedCost": {"Amount": "120.0000000001", "Unit": "USD"}},
                    },
                    {
                        "Keys": ["Amazon Simple Storage Service"],
                        "Metrics": {"BlendedCost": {"Amount": "80", "Unit": "USD"}},
                    },
                ],
                "Estimated": True,
            }
        ],
        "DimensionValueAttributes": [],
    }


@pytest.fixture
def temp_output_dir(tmp_path):
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "test_reports"
    output_dir.mkdir()
    return output_dir


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set mock environment variables for testing."""
    monkeypatch.setenv("AWS_ACCOUNT", "123456789012")
    monkeypatch.setenv("BOT_TOKEN", "test-bot-token")
    monkeypatch.setenv("CHANNEL_ID", "987654321")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AWS_PROFILE", "test-profile")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all configuration variables from the environment."""
    for var in ["AWS_ACCOUNT", "BOT_TOKEN", "CHANNEL_ID", "AWS_REGION", "AWS_PROFILE"]:
        monkeypatch.delenv(var, raising=False)
