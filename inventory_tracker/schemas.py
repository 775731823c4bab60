from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Product(BaseModel):
    """
    A single catalog entry. The catalog only holds the current state of a product;
    the replenishment log and report archive keep the history.

    Persisted with the camelCase aliases (e.g. "currentStock"), used in Python by
    field name (e.g. `current_stock`).
    """

    model_config = ConfigDict(
        populate_by_name=True, frozen=True, str_strip_whitespace=True
    )

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    wholesale_price: float = Field(
        ..., ge=0, allow_inf_nan=False, alias="wholesalePrice"
    )
    retail_price: float = Field(..., ge=0, allow_inf_nan=False, alias="retailPrice")
    current_stock: int = Field(default=0, ge=0, alias="currentStock")

    @property
    def stock_value(self) -> float:
        """Value of the stock on hand at retail price."""
        return self.current_stock * self.retail_price


class ReplenishmentEvent(BaseModel):
    """One stock addition. The product name is a snapshot so the entry stays
    readable after the product is deleted."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    timestamp: datetime = Field(..., alias="date")
    product_id: str = Field(..., alias="productId")
    product_name: str = Field(..., alias="productName")
    quantity: int = Field(..., gt=0)


class SaleItem(BaseModel):
    """A line of a reconciliation: what the system expected vs. what was counted."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_id: str = Field(..., alias="productId")
    product_name: str = Field(..., alias="productName")
    system_stock: int = Field(..., ge=0, alias="systemStock")
    actual_stock: int = Field(..., ge=0, alias="actualStock")
    # Negative when the count found more than the system had (a correction).
    sold_quantity: int = Field(..., alias="soldQuantity")
    revenue: float
    profit: float

    @model_validator(mode="after")
    def check_sold_quantity(self):
        if self.sold_quantity != self.system_stock - self.actual_stock:
            raise ValueError(
                f"soldQuantity ({self.sold_quantity}) must equal systemStock - actualStock "
                f"({self.system_stock} - {self.actual_stock})"
            )
        return self


class MonthEndReport(BaseModel):
    """
    A finalized reconciliation. Immutable once created.

    The totals are always the exact sums of the detail lines, summed in detail
    order; a report that breaks this cannot be constructed (or loaded).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    timestamp: datetime = Field(..., alias="date")
    total_sales: float = Field(..., alias="totalSales")
    total_profit: float = Field(..., alias="totalProfit")
    details: tuple[SaleItem, ...] = ()

    @model_validator(mode="after")
    def check_totals(self):
        expected_sales = sum(item.revenue for item in self.details)
        expected_profit = sum(item.profit for item in self.details)
        if self.total_sales != expected_sales:
            raise ValueError(
                f"totalSales ({self.total_sales}) must equal the sum of detail revenue ({expected_sales})"
            )
        if self.total_profit != expected_profit:
            raise ValueError(
                f"totalProfit ({self.total_profit}) must equal the sum of detail profit ({expected_profit})"
            )
        return self


class ReconciliationResult(BaseModel):
    """The unsaved projection of a stocktake, one item per catalog product."""

    model_config = ConfigDict(frozen=True)

    total_revenue: float
    total_profit: float
    items: tuple[SaleItem, ...] = ()


class DeliveryLine(BaseModel):
    """A row of an uploaded delivery sheet."""

    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
