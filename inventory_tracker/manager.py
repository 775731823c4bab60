import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import pydantic

from . import reconciliation, settings
from .errors import PersistenceError, ValidationError
from .reconciliation import EnteredCount
from .schemas import (
    MonthEndReport,
    Product,
    ReconciliationResult,
    ReplenishmentEvent,
    SaleItem,
)
from .storage import JsonStore
from .utils import new_id, utc_now

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """
    In-memory copy of the three collections. The replenishment log and the
    report archive are kept newest-first.
    """

    products: list[Product] = field(default_factory=list)
    purchases: list[ReplenishmentEvent] = field(default_factory=list)
    reports: list[MonthEndReport] = field(default_factory=list)


MODELS = {
    "products": Product,
    "purchases": ReplenishmentEvent,
    "reports": MonthEndReport,
}


def collection_key(attr: str) -> str:
    """Store key for an AppState attribute."""
    return {
        "products": settings.PRODUCTS_KEY,
        "purchases": settings.PURCHASES_KEY,
        "reports": settings.REPORTS_KEY,
    }[attr]


def _load_collection(store: JsonStore, attr: str) -> list[Any]:
    key, model = collection_key(attr), MODELS[attr]
    records = store.read(key)
    try:
        return [model.model_validate(record) for record in records]
    except pydantic.ValidationError as e:
        raise PersistenceError(f"Collection '{key}' holds invalid records: {e}") from e


class InventoryManager:
    """
    Owns the application state and mediates every change to it.

    Each operation builds the new collections, writes them to the store, and
    only then swaps them into memory. If the write fails, PersistenceError
    propagates and the in-memory state is left as it was.
    """

    def __init__(
        self,
        store: JsonStore,
        state: Optional[AppState] = None,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.state = state if state is not None else AppState()
        self.id_factory = id_factory
        self.clock = clock

    @classmethod
    def load(cls, store: JsonStore, **kwargs) -> "InventoryManager":
        """Initializes the state from persistence. Missing collections start empty."""
        state = AppState(
            products=_load_collection(store, "products"),
            purchases=_load_collection(store, "purchases"),
            reports=_load_collection(store, "reports"),
        )
        logger.info(
            f"Loaded {len(state.products)} products, {len(state.purchases)} purchases, "
            f"{len(state.reports)} reports."
        )
        return cls(store, state=state, **kwargs)

    # --- Persistence ---

    def _commit(self, **collections: list[Any]) -> None:
        batches = {
            collection_key(attr): [
                item.model_dump(mode="json", by_alias=True) for item in items
            ]
            for attr, items in collections.items()
        }
        self.store.write_many(batches)
        for attr, items in collections.items():
            setattr(self.state, attr, items)

    # --- Read-side views ---

    @property
    def products(self) -> tuple[Product, ...]:
        return tuple(self.state.products)

    @property
    def purchases(self) -> tuple[ReplenishmentEvent, ...]:
        return tuple(self.state.purchases)

    @property
    def reports(self) -> tuple[MonthEndReport, ...]:
        return tuple(self.state.reports)

    def get_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.state.products if p.id == product_id), None)

    def get_report(self, report_id: str) -> Optional[MonthEndReport]:
        return next((r for r in self.state.reports if r.id == report_id), None)

    def search_products(self, term: str) -> list[Product]:
        """Case-insensitive match on product name or company."""
        term = term.lower()
        return [
            p
            for p in self.state.products
            if term in p.name.lower() or term in p.company.lower()
        ]

    def low_stock_products(self, threshold: Optional[int] = None) -> list[Product]:
        threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
        return [p for p in self.state.products if p.current_stock < threshold]

    def inventory_value(self) -> float:
        return sum(p.stock_value for p in self.state.products)

    # --- Catalog ---

    @staticmethod
    def _as_product(product: Union[Product, Mapping[str, Any]]) -> Product:
        if isinstance(product, Product):
            return product
        try:
            return Product.model_validate(product)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid product: {e}") from e

    def add_product(self, product: Union[Product, Mapping[str, Any]]) -> Product:
        product = self._as_product(product)
        if self.get_product(product.id) is not None:
            raise ValidationError(f"Product id '{product.id}' already exists")

        self._commit(products=[*self.state.products, product])
        logger.info(f"✅ Added product '{product.name}' ({product.id}).")
        return product

    def update_product(
        self, product: Union[Product, Mapping[str, Any]]
    ) -> Optional[Product]:
        product = self._as_product(product)
        if self.get_product(product.id) is None:
            logger.warning(f"⚠️ No product with id '{product.id}'; nothing updated.")
            return None

        self._commit(
            products=[product if p.id == product.id else p for p in self.state.products]
        )
        logger.info(f"✅ Updated product '{product.name}' ({product.id}).")
        return product

    def delete_product(self, product_id: str) -> bool:
        remaining = [p for p in self.state.products if p.id != product_id]
        if len(remaining) == len(self.state.products):
            logger.warning(f"⚠️ No product with id '{product_id}'; nothing deleted.")
            return False

        self._commit(products=remaining)
        logger.info(f"🗑️ Deleted product {product_id}.")
        return True

    # --- Replenishment ---

    def add_stock(self, product_id: str, quantity: int) -> Optional[ReplenishmentEvent]:
        """
        Records a delivery: bumps the product's stock by `quantity` and puts a new
        event at the front of the replenishment log. Both are written together.
        Returns None (and changes nothing) when the product does not exist.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                f"Replenishment quantity must be a positive integer, got {quantity!r}"
            )

        product = self.get_product(product_id)
        if product is None:
            logger.warning(f"⚠️ Cannot add stock: no product with id '{product_id}'.")
            return None

        event = ReplenishmentEvent(
            id=self.id_factory(),
            timestamp=self.clock(),
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
        )
        restocked = product.model_copy(
            update={"current_stock": product.current_stock + quantity}
        )
        self._commit(
            products=[restocked if p.id == product_id else p for p in self.state.products],
            purchases=[event, *self.state.purchases],
        )
        logger.info(
            f"📦 +{quantity} {product.name}: stock {product.current_stock} -> {restocked.current_stock}."
        )
        return event

    # --- Month end ---

    def reconcile(
        self,
        counts: Optional[Mapping[str, EnteredCount]] = None,
        policy: Optional[str] = None,
    ) -> ReconciliationResult:
        """Prices a stocktake against the current catalog without changing anything."""
        return reconciliation.reconcile(self.state.products, counts, policy=policy)

    def finalize_month(self, sale_items: Iterable[SaleItem]) -> MonthEndReport:
        """
        Archives the sale items as a new report and makes every counted level the
        new system stock. Products missing from the items are left alone, and
        items for products no longer in the catalog only appear in the report.
        """
        report = reconciliation.build_report(
            sale_items, report_id=self.id_factory(), timestamp=self.clock()
        )
        counted = {item.product_id: item.actual_stock for item in report.details}
        products = [
            p.model_copy(update={"current_stock": counted[p.id]}) if p.id in counted else p
            for p in self.state.products
        ]

        self._commit(products=products, reports=[report, *self.state.reports])
        logger.info(
            f"✅ Month finalized ({len(report.details)} products). "
            f"Sales: {report.total_sales:.2f}, Profit: {report.total_profit:.2f}"
        )
        return report

    def close_month(
        self,
        counts: Optional[Mapping[str, EnteredCount]] = None,
        policy: Optional[str] = None,
    ) -> MonthEndReport:
        return self.finalize_month(self.reconcile(counts, policy=policy).items)
