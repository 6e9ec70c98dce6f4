"""
Location Summary - Transform Layer

Per-location totals over a sync result, for the dashboard header row and the
CLI summary table.
"""

import logging
from typing import List

import polars as pl

from .schemas import SyncResult

logger = logging.getLogger(__name__)

CARD_SCHEMA = pl.Schema(
    [
        ("location", pl.String()),
        ("instance_id", pl.String()),
        ("training_category", pl.String()),
        ("start_date", pl.String()),
        ("end_date", pl.String()),
        ("numbers", pl.Int64()),
        ("capacity", pl.Int64()),
        ("revenue", pl.Float64()),
    ]
)

SUMMARY_SCHEMA = pl.Schema(
    [
        ("location", pl.String()),
        ("courses", pl.UInt32()),
        ("enrolled", pl.Int64()),
        ("capacity", pl.Int64()),
        ("fill_rate", pl.Float64()),
        ("revenue", pl.Float64()),
    ]
)


def cards_to_frame(result: SyncResult) -> pl.DataFrame:
    """Flatten all cards of a result into one row per card"""
    rows: List[dict] = [
        {"location": location, **card.model_dump()}
        for location, cards in result.data.items()
        for card in cards
    ]
    return pl.DataFrame(rows, schema=CARD_SCHEMA)


def summarise_locations(result: SyncResult) -> pl.DataFrame:
    """
    Totals per location: courses, enrolled, capacity, fill rate and revenue

    Locations with no cards still get a row of zeros. Row order follows the
    result's location order.
    """
    cards_df = cards_to_frame(result)
    locations_df = pl.DataFrame(
        {"location": list(result.data.keys())}, schema={"location": pl.String()}
    ).with_row_index("order")

    totals_df = cards_df.group_by("location").agg(
        [
            pl.len().alias("courses"),
            pl.col("numbers").sum().alias("enrolled"),
            pl.col("capacity").fill_null(0).sum().alias("capacity"),
            pl.col("revenue").sum().alias("revenue"),
        ]
    )

    summary_df = (
        locations_df.join(totals_df, on="location", how="left")
        .sort("order")
        .with_columns(
            [
                pl.col("courses").fill_null(0).cast(pl.UInt32),
                pl.col("enrolled").fill_null(0).cast(pl.Int64),
                pl.col("capacity").fill_null(0).cast(pl.Int64),
                pl.col("revenue").fill_null(0.0).cast(pl.Float64),
            ]
        )
        .with_columns(
            pl.when(pl.col("capacity") > 0)
            .then(pl.col("enrolled") / pl.col("capacity"))
            .otherwise(None)
            .cast(pl.Float64)
            .alias("fill_rate")
        )
        .select(list(SUMMARY_SCHEMA.names()))
    )

    logger.info(f"Summarised {cards_df.height} cards across {summary_df.height} locations")
    return summary_df
