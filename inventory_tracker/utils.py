import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Random unique identifier for a new record."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_date_suffix_for_filename(moment: datetime | None = None) -> str:
    """Returns the date as a YYYY-MM-DD string for filenames (today by default)."""
    return (moment or datetime.now()).strftime("%Y-%m-%d")


def format_money(value: float) -> str:
    """Two-decimal rendering used by every export and listing."""
    return f"{value:.2f}"


def load_csv(file_path: Path) -> pd.DataFrame | None:
    """
    A CSV loader with a multi-stage encoding fallback. Every cell is read as text
    and blank cells stay as empty strings, so callers decide how to parse them.
    It will attempt to read a file in the following order:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1, which can decode any byte.
    """
    read_options = dict(dtype=str, keep_default_na=False)
    try:
        return pd.read_csv(file_path, encoding="utf-8-sig", **read_options)

    except UnicodeDecodeError:
        logger.info(
            f"UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'."
        )
        try:
            return pd.read_csv(file_path, encoding="latin-1", **read_options)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e_latin1:
            logger.error(
                f"Could not read {file_path.name} even with latin-1. Reason: {e_latin1}"
            )
            return None

    except FileNotFoundError:
        logger.warning(f"Sheet not found at {file_path}, skipping.")
        return None

    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e_general:
        logger.error(f"Could not parse {file_path.name}. Reason: {e_general}")
        return None
