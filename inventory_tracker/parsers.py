import logging
from pathlib import Path

import pandas as pd

from . import settings
from .utils import load_csv

logger = logging.getLogger(__name__)


def _normalize_sheet(
    df: pd.DataFrame, required: list[str], sheet_name: str
) -> pd.DataFrame | None:
    """
    Renames known header variants to the internal names and checks the
    required columns are there. Ids are trimmed; blank-id rows are dropped.
    """
    df = df.rename(columns=lambda c: settings.SHEET_COLUMN_ALIASES.get(str(c).strip(), c))

    missing = [col for col in required if col not in df.columns]
    if missing:
        logger.error(f"❌ {sheet_name} is missing column(s): {', '.join(missing)}")
        return None

    clashing = sorted({col for col in df.columns[df.columns.duplicated()] if col in required})
    if clashing:
        logger.error(
            f"❌ {sheet_name} has more than one header for column(s): {', '.join(clashing)}"
        )
        return None

    df = df[required].copy()
    df["product_id"] = df["product_id"].str.strip()
    return df[df["product_id"] != ""].copy()


def parse_count_sheet(file_path: Path) -> dict[str, str] | None:
    """
    Loads a physical count sheet into {product id: entered count}.
    The counts stay as text: a blank cell means the product was not counted.
    """
    df = load_csv(file_path)
    if df is None:
        return None

    df = _normalize_sheet(df, ["product_id", "actual"], file_path.name)
    if df is None:
        return None

    duplicated = df["product_id"][df["product_id"].duplicated()].unique()
    if len(duplicated):
        logger.warning(
            f"⚠️ Product(s) counted more than once, keeping the last row: {', '.join(duplicated)}"
        )

    counts = dict(zip(df["product_id"], df["actual"].str.strip()))
    logger.info(f"✅ Parsed {file_path.name}: {len(counts)} product rows.")
    return counts


def parse_delivery_sheet(file_path: Path) -> list[dict[str, str]] | None:
    """Loads a delivery sheet into raw {product_id, quantity} rows, in file order."""
    df = load_csv(file_path)
    if df is None:
        return None

    df = _normalize_sheet(df, ["product_id", "quantity"], file_path.name)
    if df is None:
        return None

    df["quantity"] = df["quantity"].str.strip()
    rows = df.to_dict("records")
    logger.info(f"✅ Parsed {file_path.name}: {len(rows)} delivery rows.")
    return rows
