"""Exceptions raised by the cost report pipeline."""

from typing import Optional


class CostReportError(Exception):
    """Base class for all report generation failures."""


class ConfigError(CostReportError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, missing: Optional[list] = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class DataFetchError(CostReportError):
    """The billing source could not be queried or returned malformed data."""


class RenderError(CostReportError):
    """The chart image could not be rendered."""


class DeliveryError(CostReportError):
    """
    The report could not be delivered.

    Args:
        message: Error description
        step: Delivery step that failed (create, execute or delete)
        status_code: HTTP status code, when the failure was an HTTP response
    """

    def __init__(self, message: str, step: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.step = step
        self.status_code = status_code
