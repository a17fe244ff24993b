"""Cost Processor - Ranks per-service costs and prepares chart data using Polars."""

import logging
from typing import Iterable, List

import polars as pl

from models import OTHERS_LABEL, ChartBucket, CostEntry, CostRecordSet, Record

logger = logging.getLogger(__name__)

# Services below this share of the total (in percent) are grouped into "Others"
OTHERS_THRESHOLD = 1.0


def aggregate_costs(entries: Iterable[CostEntry]) -> CostRecordSet:
    """
    Rank cost entries by spend and annotate each with its share of the total.

    Entries are not merged: each input entry becomes its own record, since the
    billing source already groups costs by service.

    Args:
        entries: Raw per-service cost entries

    Returns:
        CostRecordSet ordered by descending cost (ties keep input order)
    """
    entries = list(entries)
    df = pl.DataFrame(
        {
            "name": [e.service for e in entries],
            "cost": [float(e.amount) for e in entries],
        },
        schema={"name": pl.String, "cost": pl.Float64},
    )

    total = float(df["cost"].sum()) if not df.is_empty() else 0.0

    if total > 0:
        ratio_expr = pl.col("cost") / total * 100
    else:
        # Nothing to divide by: every share is reported as 0%
        logger.warning(f"Total cost is {total:.2f}; reporting all ratios as 0%")
        ratio_expr = pl.lit(0.0, dtype=pl.Float64)

    result = df.with_columns(ratio_expr.alias("ratio")).sort(
        "cost", descending=True, maintain_order=True
    )

    records = tuple(
        Record(name=row["name"], cost=row["cost"], ratio=row["ratio"])
        for row in result.iter_rows(named=True)
    )
    logger.info(f"Aggregated {len(records)} services, total cost ${total:,.2f}")
    return CostRecordSet(records=records, total=total)


def build_chart_buckets(
    records: CostRecordSet,
    threshold: float = OTHERS_THRESHOLD,
    include_empty_others: bool = True,
) -> List[ChartBucket]:
    """
    Convert ranked records into chart buckets.

    Records whose ratio is at least ``threshold`` percent get their own bucket,
    in ranked order. The rest are summed into a trailing "Others" bucket.

    Args:
        records: Ranked record set
        threshold: Minimum ratio (percent) for a record to get its own bucket
        include_empty_others: Keep the "Others" bucket even when its value is zero

    Returns:
        List of ChartBucket, "Others" last
    """
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")

    df = records.to_polars()
    named = df.filter(pl.col("ratio") >= threshold)
    small = df.filter(pl.col("ratio") < threshold)

    buckets = [
        ChartBucket(label=row["name"], value=row["cost"]) for row in named.iter_rows(named=True)
    ]

    others_value = float(small["cost"].sum()) if not small.is_empty() else 0.0
    if small.height:
        logger.debug(f"Grouping {small.height} services (${others_value:,.2f}) into '{OTHERS_LABEL}'")

    if others_value != 0.0 or include_empty_others:
        buckets.append(ChartBucket(label=OTHERS_LABEL, value=others_value))

    return buckets
