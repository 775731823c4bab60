import logging
from pathlib import Path
from typing import Optional, Union

from inventory_tracker import data_handler, parsers
from inventory_tracker.errors import NoDataToExport
from inventory_tracker.manager import InventoryManager
from inventory_tracker.pipeline import DataPipeline
from inventory_tracker.schemas import MonthEndReport, ReconciliationResult

logger = logging.getLogger(__name__)


class StocktakePipeline(DataPipeline):
    """
    Month-end stocktake from a count sheet. By default only a draft report is
    exported; with `finalize=True` the month is closed: the report is archived,
    stock levels are overwritten with the counts, and the report is exported and
    posted to the webhook.
    """

    def __init__(
        self,
        manager: InventoryManager,
        count_sheet: Path,
        finalize: bool = False,
        test_mode: bool = False,
        policy: Optional[str] = None,
        output_dir: Optional[Path] = None,
    ):
        super().__init__("stocktake", manager, test_mode=test_mode)
        self.count_sheet = Path(count_sheet)
        self.finalize = finalize
        self.policy = policy
        self.output_dir = output_dir

    def extract(self) -> dict[str, str] | None:
        logger.info(f"--- Reading count sheet {self.count_sheet.name} ---")
        return parsers.parse_count_sheet(self.count_sheet)

    def transform(self, counts: dict[str, str]) -> ReconciliationResult:
        logger.info("--- Reconciling counts against system stock ---")
        result = self.manager.reconcile(counts, policy=self.policy)

        for item in result.items:
            if item.sold_quantity != 0:
                logger.info(
                    f"  > {item.product_name}: system {item.system_stock}, "
                    f"counted {item.actual_stock}, sold {item.sold_quantity}"
                )
        uncounted = sum(1 for p in self.manager.products if not counts.get(p.id, "").strip())
        if uncounted:
            logger.info(f"  > {uncounted} product(s) not counted; assumed unchanged.")

        logger.info(
            f"📊 Revenue: {result.total_revenue:.2f} | Profit: {result.total_profit:.2f}"
        )
        return result

    def load(
        self, result: ReconciliationResult
    ) -> Union[ReconciliationResult, MonthEndReport]:
        if not self.finalize:
            self._export(result.items)
            logger.info("Draft only. Run with finalize to close the month.")
            return result

        report = self.manager.finalize_month(result.items)
        self._export(report)

        if not self.test_mode:
            data_handler.post_report_to_webhook(report)
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")
        return report

    def _export(self, report) -> None:
        try:
            data_handler.export_report(report, output_dir=self.output_dir)
        except NoDataToExport as e:
            logger.warning(f"⚠️ {e}")
