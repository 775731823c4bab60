"""Data model constraints."""

import pydantic
import pytest

from inventory_tracker.schemas import DeliveryLine, MonthEndReport, Product, SaleItem


def _product(**overrides):
    fields = dict(
        id="P1", name="Seeds", company="Acme", wholesalePrice=1, retailPrice=2, currentStock=3
    )
    fields.update(overrides)
    return Product.model_validate(fields)


class TestProduct:
    def test_accepts_persisted_aliases(self):
        product = _product()
        assert product.wholesale_price == 1
        assert product.current_stock == 3

    def test_dumps_with_aliases(self):
        dumped = _product().model_dump(by_alias=True)
        assert set(dumped) == {
            "id", "name", "company", "wholesalePrice", "retailPrice", "currentStock"
        }

    @pytest.mark.parametrize(
        "overrides",
        [
            {"retailPrice": -1},
            {"wholesalePrice": -0.01},
            {"currentStock": -1},
            {"currentStock": 2.5},
            {"name": "   "},
            {"company": ""},
            {"id": ""},
            {"retailPrice": float("nan")},
        ],
    )
    def test_rejects_invalid_fields(self, overrides):
        with pytest.raises(pydantic.ValidationError):
            _product(**overrides)

    def test_is_immutable(self):
        product = _product()
        with pytest.raises(pydantic.ValidationError):
            product.current_stock = 10

    def test_stock_value(self):
        assert _product(currentStock=4, retailPrice=2.5).stock_value == 10


class TestSaleItem:
    def test_sold_quantity_must_match_counts(self):
        with pytest.raises(pydantic.ValidationError, match="soldQuantity"):
            SaleItem(
                product_id="P1",
                product_name="Seeds",
                system_stock=10,
                actual_stock=4,
                sold_quantity=5,
                revenue=0,
                profit=0,
            )

    def test_negative_sold_quantity_allowed(self):
        item = SaleItem(
            product_id="P1",
            product_name="Seeds",
            system_stock=4,
            actual_stock=10,
            sold_quantity=-6,
            revenue=-12,
            profit=-6,
        )
        assert item.sold_quantity == -6


class TestMonthEndReport:
    def _details(self):
        return [
            {
                "productId": "P1",
                "productName": "Seeds",
                "systemStock": 10,
                "actualStock": 4,
                "soldQuantity": 6,
                "revenue": 12.0,
                "profit": 6.0,
            }
        ]

    def test_loads_consistent_report(self):
        report = MonthEndReport.model_validate(
            {
                "id": "r1",
                "date": "2026-01-31T18:00:00Z",
                "totalSales": 12.0,
                "totalProfit": 6.0,
                "details": self._details(),
            }
        )
        assert report.details[0].product_name == "Seeds"

    @pytest.mark.parametrize("totals", [(13.0, 6.0), (12.0, 5.0)])
    def test_rejects_totals_that_do_not_match_details(self, totals):
        with pytest.raises(pydantic.ValidationError):
            MonthEndReport.model_validate(
                {
                    "id": "r1",
                    "date": "2026-01-31T18:00:00Z",
                    "totalSales": totals[0],
                    "totalProfit": totals[1],
                    "details": self._details(),
                }
            )


class TestDeliveryLine:
    def test_quantity_text_is_parsed(self):
        assert DeliveryLine(product_id=" A ", quantity="4").quantity == 4

    @pytest.mark.parametrize("quantity", ["0", "-2", "1.5", ""])
    def test_rejects_non_positive_or_fractional(self, quantity):
        with pytest.raises(pydantic.ValidationError):
            DeliveryLine(product_id="A", quantity=quantity)
