import logging
from pathlib import Path

from pydantic import ValidationError

from inventory_tracker import parsers
from inventory_tracker.manager import InventoryManager
from inventory_tracker.pipeline import DataPipeline
from inventory_tracker.schemas import DeliveryLine, ReplenishmentEvent

logger = logging.getLogger(__name__)


class DeliveryPipeline(DataPipeline):
    """Books every line of a delivery sheet as a replenishment."""

    def __init__(self, manager: InventoryManager, delivery_sheet: Path):
        super().__init__("deliveries", manager)
        self.delivery_sheet = Path(delivery_sheet)

    def extract(self) -> list[dict[str, str]] | None:
        logger.info(f"--- Reading delivery sheet {self.delivery_sheet.name} ---")
        return parsers.parse_delivery_sheet(self.delivery_sheet)

    def transform(self, rows: list[dict[str, str]]) -> list[DeliveryLine]:
        logger.info("Validating delivery lines...")
        lines = []
        for row_number, row in enumerate(rows, start=2):  # row 1 is the header
            try:
                lines.append(DeliveryLine(**row))
            except ValidationError as e:
                logger.error(f"❌ Row {row_number} skipped ({row}): {e.errors()[0]['msg']}")
        logger.info(f"✅ {len(lines)} of {len(rows)} lines valid.")
        return lines

    def load(self, lines: list[DeliveryLine]) -> list[ReplenishmentEvent]:
        events = []
        for line in lines:
            event = self.manager.add_stock(line.product_id, line.quantity)
            if event is not None:
                events.append(event)

        skipped = len(lines) - len(events)
        if skipped:
            logger.warning(f"⚠️ {skipped} line(s) referenced unknown products and were skipped.")
        return events
