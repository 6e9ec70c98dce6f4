"""
Local Storage - Load Layer

Snapshot files of sync results, for the scheduler and the CLI --output flag.
"""

import json
import logging
import os

from ..transformation.schemas import SyncResult
from ..transformation.summary import cards_to_frame

logger = logging.getLogger(__name__)


def _ensure_parent(filepath: str) -> None:
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)


def save_json(result: SyncResult, filepath: str) -> str:
    """
    Save a sync result as the dashboard JSON payload

    Args:
        result: Sync result to save
        filepath: Path to save file

    Returns:
        str: Path to saved file
    """
    logger.info(f"Saving sync result to JSON: {filepath}")
    _ensure_parent(filepath)

    with open(filepath, "w") as f:
        json.dump(result.to_payload(), f, indent=2, default=str)

    card_count = sum(len(cards) for cards in result.data.values())
    logger.info(f"Saved {card_count} cards to {filepath}")
    return filepath


def save_cards_parquet(result: SyncResult, filepath: str) -> str:
    """Save all cards of a sync result as one Parquet table"""
    logger.info(f"Saving cards to Parquet: {filepath}")
    _ensure_parent(filepath)

    df = cards_to_frame(result)
    df.write_parquet(filepath)

    logger.info(f"Saved {df.height} records to {filepath}")
    return filepath
