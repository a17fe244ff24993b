"""Data models shared by the cost report pipeline."""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, List, Sequence, Tuple

import pandas as pd
import polars as pl

OTHERS_LABEL = "Others"


@dataclass(frozen=True)
class CostEntry:
    """One raw (service, amount) pair as returned by the billing source."""

    service: str
    amount: float


@dataclass(frozen=True)
class Record:
    """A ranked service cost with its percentage share of the period total."""

    name: str
    cost: float
    ratio: float


@dataclass(frozen=True)
class ChartBucket:
    """A (label, value) pair used as chart input."""

    label: str
    value: float

    @property
    def is_others(self) -> bool:
        return self.label == OTHERS_LABEL


@dataclass(frozen=True)
class DateRange:
    """Inclusive reporting period."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Start date ({self.start}) cannot be after end date ({self.end})")

    def __str__(self) -> str:
        return f"{self.start.isoformat()} - {self.end.isoformat()}"


@dataclass(frozen=True)
class CostRecordSet:
    """
    Records ordered by descending cost for one reporting period.

    Args:
        records: Ranked records
        total: Sum of all record costs
    """

    records: Tuple[Record, ...] = ()
    total: float = 0.0

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __getitem__(self, index: int) -> Record:
        return self.records[index]

    def is_empty(self) -> bool:
        return not self.records

    @property
    def names(self) -> List[str]:
        return [r.name for r in self.records]

    def to_polars(self) -> pl.DataFrame:
        return pl.DataFrame(
            {
                "name": [r.name for r in self.records],
                "cost": [r.cost for r in self.records],
                "ratio": [r.ratio for r in self.records],
            },
            schema={"name": pl.String, "cost": pl.Float64, "ratio": pl.Float64},
        )

    def to_pandas(self) -> pd.DataFrame:
        """Ranked records as a pandas DataFrame (service, cost, ratio columns)."""
        return pd.DataFrame(
            {
                "service": [r.name for r in self.records],
                "cost": [r.cost for r in self.records],
                "ratio": [r.ratio for r in self.records],
            },
            columns=["service", "cost", "ratio"],
        )


@dataclass(frozen=True)
class Report:
    """
    Text content and chart data produced by one pipeline run.

    The report is scoped to one (account, period) pair and is consumed
    immediately by the delivery step.
    """

    account: str
    period: DateRange
    content: str
    buckets: Tuple[ChartBucket, ...]
    records: CostRecordSet = field(default_factory=CostRecordSet)

    @property
    def total(self) -> float:
        return self.records.total

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to report (no line items, or every cost is zero)."""
        return all(r.cost == 0 for r in self.records)

    def bucket_pairs(self) -> Sequence[Tuple[str, float]]:
        return [(b.label, b.value) for b in self.buckets]
