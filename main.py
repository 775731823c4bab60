import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from inventory_tracker import data_handler, settings, utils
from inventory_tracker.errors import InventoryError, NoDataToExport
from inventory_tracker.logger import setup_logger
from inventory_tracker.manager import InventoryManager
from inventory_tracker.pipelines.deliveries import DeliveryPipeline
from inventory_tracker.pipelines.stocktake import StocktakePipeline
from inventory_tracker.storage import JsonStore

logger = logging.getLogger(__name__)


def _print_table(records, columns) -> None:
    if not records:
        print("(none)")
        return
    frame = pd.DataFrame(
        [[accessor(r) for _, accessor in columns] for r in records],
        columns=[header for header, _ in columns],
    )
    print(frame.to_string(index=False))


def _product_fields(args) -> dict:
    return {
        "name": args.name,
        "company": args.company,
        "wholesalePrice": args.wholesale,
        "retailPrice": args.retail,
    }


def _edited_product(manager: InventoryManager, args) -> dict | None:
    """The stored product with only the fields given on the command line replaced."""
    product = manager.get_product(args.id)
    if product is None:
        return None
    edits = _product_fields(args)
    return {
        **product.model_dump(by_alias=True),
        **{field: value for field, value in edits.items() if value is not None},
    }


# --- Commands ---


def cmd_products(manager: InventoryManager, args) -> None:
    columns = [("ID", lambda p: p.id), *data_handler.INVENTORY_COLUMNS]

    if args.action == "list":
        _print_table(manager.products, columns)
        print(f"\nTotal stock value (retail): {utils.format_money(manager.inventory_value())}")
    elif args.action == "search":
        _print_table(manager.search_products(args.term), columns)
    elif args.action == "low-stock":
        _print_table(manager.low_stock_products(args.threshold), columns)
    elif args.action == "add":
        manager.add_product(
            {"id": manager.id_factory(), **_product_fields(args), "currentStock": args.stock}
        )
    elif args.action == "update":
        edited = _edited_product(manager, args)
        if edited is None:
            logger.error(f"❌ No product with id '{args.id}'.")
            return
        manager.update_product(edited)
    elif args.action == "delete":
        manager.delete_product(args.id)


def cmd_stock(manager: InventoryManager, args) -> None:
    manager.add_stock(args.product_id, args.quantity)


def cmd_history(manager: InventoryManager, args) -> None:
    if args.action == "purchases":
        _print_table(manager.purchases, data_handler.PURCHASE_COLUMNS)
    elif args.action == "reports":
        _print_table(
            manager.reports,
            [
                ("ID", lambda r: r.id),
                ("Date", lambda r: r.timestamp.strftime("%Y-%m-%d")),
                ("Total Sales", lambda r: utils.format_money(r.total_sales)),
                ("Total Profit", lambda r: utils.format_money(r.total_profit)),
            ],
        )
    elif args.action == "show":
        report = manager.get_report(args.report_id)
        if report is None:
            logger.error(f"❌ No report with id '{args.report_id}'.")
            return
        _print_table(report.details, data_handler.REPORT_COLUMNS)
        print(
            f"\nTotal Sales: {utils.format_money(report.total_sales)} | "
            f"Total Profit: {utils.format_money(report.total_profit)}"
        )


def cmd_stocktake(manager: InventoryManager, args) -> None:
    finalize = args.finalize
    if finalize and not args.yes:
        answer = input(
            "Are you sure you want to finalize the month? This will save the report "
            "to history and reset the stock. [y/N] "
        )
        finalize = answer.strip().lower() in ("y", "yes")
        if not finalize:
            logger.info("Finalization cancelled; exporting a draft instead.")

    StocktakePipeline(
        manager,
        args.sheet,
        finalize=finalize,
        test_mode=args.test,
        policy=args.policy,
    ).run()


def cmd_deliveries(manager: InventoryManager, args) -> None:
    DeliveryPipeline(manager, args.sheet).run()


def cmd_export(manager: InventoryManager, args) -> None:
    if args.what == "inventory":
        data_handler.export_inventory(manager.products)
    elif args.what == "purchases":
        data_handler.export_purchases(manager.purchases)
    elif args.what == "report":
        report = manager.get_report(args.report_id)
        if report is None:
            logger.error(f"❌ No report with id '{args.report_id}'.")
            return
        data_handler.export_report(report)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Small-business inventory tracker")
    parser.add_argument(
        "--data-dir", type=Path, default=settings.DATA_DIR, help="Where collections are stored"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    products = sub.add_parser("products", help="Manage the product catalog")
    p_sub = products.add_subparsers(dest="action", required=True)
    p_sub.add_parser("list")
    p_search = p_sub.add_parser("search")
    p_search.add_argument("term")
    p_low = p_sub.add_parser("low-stock")
    p_low.add_argument("--threshold", type=int, default=None)
    p_add = p_sub.add_parser("add")
    p_add.add_argument("--name", required=True)
    p_add.add_argument("--company", required=True)
    p_add.add_argument("--wholesale", type=float, required=True)
    p_add.add_argument("--retail", type=float, required=True)
    p_add.add_argument("--stock", type=int, default=0)
    # Fields left out keep their current value. Stock is not editable here.
    p_update = p_sub.add_parser("update")
    p_update.add_argument("id")
    p_update.add_argument("--name")
    p_update.add_argument("--company")
    p_update.add_argument("--wholesale", type=float)
    p_update.add_argument("--retail", type=float)
    p_delete = p_sub.add_parser("delete")
    p_delete.add_argument("id")
    products.set_defaults(func=cmd_products)

    stock = sub.add_parser("stock", help="Record a stock replenishment")
    s_sub = stock.add_subparsers(dest="action", required=True)
    s_add = s_sub.add_parser("add")
    s_add.add_argument("product_id")
    s_add.add_argument("quantity", type=int)
    stock.set_defaults(func=cmd_stock)

    history = sub.add_parser("history", help="Purchase log and past reports")
    h_sub = history.add_subparsers(dest="action", required=True)
    h_sub.add_parser("purchases")
    h_sub.add_parser("reports")
    h_show = h_sub.add_parser("show")
    h_show.add_argument("report_id")
    history.set_defaults(func=cmd_history)

    stocktake = sub.add_parser("stocktake", help="Reconcile a physical count sheet")
    stocktake.add_argument("sheet", type=Path)
    stocktake.add_argument("--finalize", action="store_true")
    stocktake.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    stocktake.add_argument("--policy", choices=settings.COUNT_POLICIES, default=None)
    stocktake.add_argument("--test", action="store_true", help="Do not post to the webhook")
    stocktake.set_defaults(func=cmd_stocktake)

    deliveries = sub.add_parser("deliveries", help="Book a delivery sheet")
    deliveries.add_argument("sheet", type=Path)
    deliveries.set_defaults(func=cmd_deliveries)

    export = sub.add_parser("export", help="Export data to CSV")
    e_sub = export.add_subparsers(dest="what", required=True)
    e_sub.add_parser("inventory")
    e_sub.add_parser("purchases")
    e_report = e_sub.add_parser("report")
    e_report.add_argument("report_id")
    export.set_defaults(func=cmd_export)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger()
    try:
        manager = InventoryManager.load(JsonStore(args.data_dir))
        args.func(manager, args)
    except NoDataToExport as e:
        logger.warning(f"⚠️ {e}")
    except InventoryError as e:
        logger.error(f"❌ {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
