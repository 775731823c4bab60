import logging
from abc import ABC, abstractmethod
from typing import Any

from .manager import InventoryManager

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for sheet-driven batch jobs (stocktake, deliveries).
    Follows an Extract -> Transform -> Load pattern against an InventoryManager.
    """

    def __init__(self, report_type: str, manager: InventoryManager, test_mode: bool = False):
        self.report_type = report_type
        self.manager = manager
        self.test_mode = test_mode

    def run(self) -> Any:
        """
        Orchestrates the pipeline execution and returns whatever `load` produced,
        or None when there was nothing to work with.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()}")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        raw_data = self.extract()
        if raw_data is None:
            logger.warning(f"⚠️ No data extracted for {self.report_type}. Nothing to do.")
            return None

        # --- 2. TRANSFORM ---
        transformed = self.transform(raw_data)

        # --- 3. LOAD ---
        result = self.load(transformed)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.")
        logger.info("=" * 60)
        return result

    @abstractmethod
    def extract(self) -> Any:
        """Reads the input sheet. Returns None when it is missing or unreadable."""

    @abstractmethod
    def transform(self, raw_data: Any) -> Any:
        """Validates and computes, without changing any stored state."""

    @abstractmethod
    def load(self, transformed: Any) -> Any:
        """Applies the result through the manager and writes any outputs."""
