"""CSV export and webhook tests."""

import csv
import io
import json
from types import SimpleNamespace

import pytest
import requests

from inventory_tracker import data_handler, settings
from inventory_tracker.errors import NoDataToExport

COLUMNS = [("Name", lambda r: r.name), ("Note", lambda r: r.note)]


def _parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestToCsvText:
    def test_header_then_one_row_per_record(self):
        records = [SimpleNamespace(name="Seeds", note=3), SimpleNamespace(name="Soil", note=None)]
        text = data_handler.to_csv_text(records, COLUMNS)

        assert text.splitlines()[0] == "Name,Note"
        assert _parse(text) == [["Name", "Note"], ["Seeds", "3"], ["Soil", ""]]

    def test_special_characters_round_trip(self):
        tricky = 'Hello, "World"\nsecond line'
        text = data_handler.to_csv_text([SimpleNamespace(name=tricky, note="plain")], COLUMNS)

        assert _parse(text)[1] == [tricky, "plain"]
        assert '"Hello, ""World""' in text

    @pytest.mark.parametrize("value", ["line1\rline2", "a\rb", "ends with\r\n", "\r\n"])
    def test_carriage_returns_round_trip(self, value):
        text = data_handler.to_csv_text([SimpleNamespace(name=value, note="plain")], COLUMNS)

        assert _parse(text) == [["Name", "Note"], [value, "plain"]]

    def test_carriage_return_survives_file_export(self, tmp_path):
        records = [SimpleNamespace(name="a\rb", note="x")]
        path = data_handler.export_csv(records, COLUMNS, "cr.csv", output_dir=tmp_path)

        with open(path, encoding="utf-8", newline="") as f:
            assert list(csv.reader(f)) == [["Name", "Note"], ["a\rb", "x"]]

    def test_plain_values_are_not_quoted(self):
        text = data_handler.to_csv_text([SimpleNamespace(name="Seeds", note="x")], COLUMNS)
        assert text == "Name,Note\r\nSeeds,x\r\n"


class TestExports:
    def test_empty_records_raise_notice(self, tmp_path):
        with pytest.raises(NoDataToExport):
            data_handler.export_csv([], COLUMNS, "empty.csv", output_dir=tmp_path)
        assert not (tmp_path / "empty.csv").exists()

    def test_inventory_export(self, manager, tmp_path):
        path = data_handler.export_inventory(manager.products, output_dir=tmp_path)

        assert path.name.startswith("inventory_")
        rows = _parse(path.read_text(encoding="utf-8"))
        assert rows[0] == [
            "Product Name",
            "Company",
            "Wholesale Price",
            "Retail Price",
            "Current Stock",
            "Stock Value (Retail)",
        ]
        assert rows[1] == ["Product A", "Acme Farms", "6.00", "10.00", "50", "500.00"]

    def test_purchases_export(self, manager, tmp_path):
        manager.add_stock("B", 20)
        path = data_handler.export_purchases(manager.purchases, output_dir=tmp_path)

        rows = _parse(path.read_text(encoding="utf-8"))
        assert rows[1] == ["2026-01-31 18:00:00", "B", "Product B", "20"]

    def test_purchases_export_with_no_history(self, manager, tmp_path):
        with pytest.raises(NoDataToExport):
            data_handler.export_purchases(manager.purchases, output_dir=tmp_path)

    def test_finalized_report_export(self, manager, tmp_path):
        report = manager.close_month({"A": "35"})
        path = data_handler.export_report(report, output_dir=tmp_path)

        assert path.name == "report_2026-01-31.csv"
        rows = _parse(path.read_text(encoding="utf-8"))
        assert rows[1] == ["Product A", "50", "35", "15", "150.00", "60.00"]
        assert rows[2] == ["Product B", "5", "5", "0", "0.00", "0.00"]

    def test_draft_export(self, manager, tmp_path):
        path = data_handler.export_report(
            manager.reconcile({"A": "35"}).items, output_dir=tmp_path
        )
        assert path.name == "report_draft.csv"
        assert manager.reports == ()

    def test_json_copy_when_enabled(self, manager, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "SAVE_JSON_OUTPUT", True)
        report = manager.close_month({"A": "35"})

        path = data_handler.export_report(report, output_dir=tmp_path)

        saved = json.loads(path.with_suffix(".json").read_text(encoding="utf-8"))
        assert saved["totalSales"] == 150
        assert saved["details"][0]["soldQuantity"] == 15

    def test_no_json_copy_by_default(self, manager, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "SAVE_JSON_OUTPUT", False)
        path = data_handler.export_report(manager.close_month({}), output_dir=tmp_path)
        assert not path.with_suffix(".json").exists()


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")


class TestWebhook:
    def test_skipped_without_url(self, manager, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_URL", None)
        monkeypatch.setattr(
            data_handler.requests, "post", lambda *a, **k: pytest.fail("should not post")
        )
        assert data_handler.post_report_to_webhook(manager.close_month({})) is False

    def test_posts_report_payload(self, manager, monkeypatch):
        sent = {}

        def fake_post(url, json=None, timeout=None):
            sent.update(url=url, json=json)
            return FakeResponse()

        monkeypatch.setattr(settings, "WEBHOOK_URL", "https://hooks.example.com/reports")
        monkeypatch.setattr(data_handler.requests, "post", fake_post)

        report = manager.close_month({"A": "35"})
        assert data_handler.post_report_to_webhook(report) is True
        assert sent["url"] == "https://hooks.example.com/reports"
        assert sent["json"]["report"]["id"] == report.id
        assert sent["json"]["report"]["totalProfit"] == 60

    def test_errors_are_reported_not_raised(self, manager, monkeypatch):
        monkeypatch.setattr(settings, "WEBHOOK_URL", "https://hooks.example.com/reports")
        monkeypatch.setattr(data_handler.requests, "post", lambda *a, **k: FakeResponse(500))

        assert data_handler.post_report_to_webhook(manager.close_month({})) is False
        assert len(manager.reports) == 1
