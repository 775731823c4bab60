import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

import pandas as pd
import requests

from . import settings
from . import utils
from .errors import NoDataToExport
from .schemas import MonthEndReport, Product, ReplenishmentEvent, SaleItem

logger = logging.getLogger(__name__)

# (header, accessor) pairs: one output column each.
Column = tuple[str, Callable[[Any], Any]]

# The csv writer quotes a CR or LF only if it appears in the line terminator.
LINE_TERMINATOR = "\r\n"

INVENTORY_COLUMNS: list[Column] = [
    ("Product Name", lambda p: p.name),
    ("Company", lambda p: p.company),
    ("Wholesale Price", lambda p: utils.format_money(p.wholesale_price)),
    ("Retail Price", lambda p: utils.format_money(p.retail_price)),
    ("Current Stock", lambda p: p.current_stock),
    ("Stock Value (Retail)", lambda p: utils.format_money(p.stock_value)),
]

PURCHASE_COLUMNS: list[Column] = [
    ("Date", lambda e: e.timestamp.strftime("%Y-%m-%d %H:%M:%S")),
    ("Product ID", lambda e: e.product_id),
    ("Product Name", lambda e: e.product_name),
    ("Quantity Added", lambda e: e.quantity),
]

REPORT_COLUMNS: list[Column] = [
    ("Product Name", lambda i: i.product_name),
    ("System Stock", lambda i: i.system_stock),
    ("Actual Stock", lambda i: i.actual_stock),
    ("Sold Quantity", lambda i: i.sold_quantity),
    ("Revenue", lambda i: utils.format_money(i.revenue)),
    ("Profit", lambda i: utils.format_money(i.profit)),
]


def _stringify(value: Any) -> str:
    return "" if value is None else str(value)


def _to_frame(records: Sequence[Any], columns: Sequence[Column]) -> pd.DataFrame:
    headers = [header for header, _ in columns]
    rows = [[_stringify(accessor(record)) for _, accessor in columns] for record in records]
    return pd.DataFrame(rows, columns=headers, dtype=str)


def to_csv_text(records: Sequence[Any], columns: Sequence[Column]) -> str:
    """
    Header row plus one row per record. Fields holding a comma, a quote or a
    line break (CR or LF) are quoted, with inner quotes doubled. Rows end in CRLF.
    """
    return _to_frame(records, columns).to_csv(index=False, lineterminator=LINE_TERMINATOR)


def export_csv(
    records: Sequence[Any],
    columns: Sequence[Column],
    filename: str,
    output_dir: Optional[Path] = None,
) -> Path:
    """Writes the records as CSV under the output directory and returns the path."""
    if not records:
        raise NoDataToExport(f"No data to export for {filename}")

    output_dir = output_dir or settings.OUTPUT_DIR
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_path = output_dir / filename

    _to_frame(records, columns).to_csv(
        csv_path, index=False, lineterminator=LINE_TERMINATOR, encoding="utf-8"
    )
    logger.info(f"✅ Exported {len(records)} rows to: {csv_path}")
    return csv_path


def export_inventory(
    products: Sequence[Product], output_dir: Optional[Path] = None
) -> Path:
    filename = f"inventory_{utils.get_date_suffix_for_filename()}.csv"
    return export_csv(products, INVENTORY_COLUMNS, filename, output_dir)


def export_purchases(
    purchases: Sequence[ReplenishmentEvent], output_dir: Optional[Path] = None
) -> Path:
    filename = f"purchases_{utils.get_date_suffix_for_filename()}.csv"
    return export_csv(purchases, PURCHASE_COLUMNS, filename, output_dir)


def export_report(
    report: Union[MonthEndReport, Sequence[SaleItem]],
    suffix: Optional[str] = None,
    output_dir: Optional[Path] = None,
) -> Path:
    """
    Exports the lines of a finalized report (suffix defaults to its date) or of
    an unsaved projection (suffix defaults to "draft"). A finalized report is
    also saved as JSON when SAVE_JSON_OUTPUT is on.
    """
    if isinstance(report, MonthEndReport):
        suffix = suffix or utils.get_date_suffix_for_filename(report.timestamp)
        items = list(report.details)
    else:
        suffix = suffix or "draft"
        items = list(report)

    csv_path = export_csv(items, REPORT_COLUMNS, f"report_{suffix}.csv", output_dir)

    if isinstance(report, MonthEndReport):
        if settings.SAVE_JSON_OUTPUT:
            json_path = csv_path.with_suffix(".json")
            with open(json_path, "w", encoding="utf-8") as f:
                json.dump(report.model_dump(mode="json", by_alias=True), f, indent=2)
            logger.info(f"✅ JSON output saved to: {json_path}")
        else:
            logger.debug("Skipping JSON file save as per configuration.")

    return csv_path


def post_report_to_webhook(report: MonthEndReport) -> bool:
    """
    Posts a finalized report to the configured webhook. Failures are logged and
    reported through the return value; the report is already saved either way.
    """
    if not settings.WEBHOOK_URL:
        logger.info("WEBHOOK_URL not set. Skipping webhook post.")
        return False

    logger.info(f"🚀 Posting report {report.id} to webhook: {settings.WEBHOOK_URL}")
    payload = {"report": report.model_dump(mode="json", by_alias=True)}

    try:
        response = requests.post(settings.WEBHOOK_URL, json=payload, timeout=15)
        response.raise_for_status()
        logger.info("✅ Report successfully posted to webhook.")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
        return False
