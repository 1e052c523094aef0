# main.py
import os
import sys
import copy
import json
import logging
import argparse
from pathlib import Path

from cashier import CashierSystem
from catalog import ProductCatalog
from checkout import SaleCommitter
from database import Database
from errors import ProductNotFound
from logger import configure_logger
from models import PERCENTAGE, FIXED
from pricing import format_currency
import utils

logger = logging.getLogger("shop_pos.main")

# Default configuration
DEFAULT_CONFIG = {
    "database": {"name": "pos.db"},
    "shop": {"user_id": "default", "tax_rate": 0, "currency": "₹"},
    "export": {"default_dir": "exports"},
    "reports": {"expiry_window_days": 30},
    "logging": {"level": "INFO", "file": "logs/shop_pos.log",
                "max_size": 1048576, "backup_count": 3}
}


def merge_config(defaults, overrides):
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path="config.json"):
    """Load configuration from JSON file or create default if not exists"""
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = merge_config(DEFAULT_CONFIG, json.load(f))
                logger.info(f"Configuration loaded from {config_path}")
                return config
        except (OSError, ValueError) as e:
            logger.error(f"Error loading config: {e}")
            return merge_config(DEFAULT_CONFIG, {})

    # Create default config if not exists
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4, ensure_ascii=False)
        logger.info(f"Created default configuration at {config_path}")

    return merge_config(DEFAULT_CONFIG, {})


def setup_directories(config):
    """Create required directories if they don't exist."""
    dir_mappings = {
        'export_dir': config.get('export', {}).get('default_dir', 'exports'),
        'log_dir': os.path.dirname(config.get('logging', {}).get('file') or ''),
    }

    for dir_key, dir_path in dir_mappings.items():
        if not dir_path:
            continue
        path = Path(dir_path)
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created directory: {path}")
        else:
            logger.debug(f"Directory already exists: {path}")


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="Shop inventory and point of sale")
    parser.add_argument("--config", help="Path to configuration file", default="config.json")
    parser.add_argument("--debug", help="Enable debug mode", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    products = commands.add_parser("products", help="Manage the product catalog")
    product_cmds = products.add_subparsers(dest="action", required=True)
    listing = product_cmds.add_parser("list")
    listing.add_argument("--search", help="Filter by name or barcode")
    listing.add_argument("--low-stock", action="store_true")
    for name in ("add", "update"):
        p = product_cmds.add_parser(name)
        if name == "update":
            p.add_argument("id")
        required = name == "add"
        p.add_argument("--name", required=required)
        p.add_argument("--price", type=float, required=required)
        p.add_argument("--stock", type=int, required=required)
        p.add_argument("--barcode")
        p.add_argument("--category")
        p.add_argument("--threshold", type=int, dest="low_stock_threshold")
        p.add_argument("--expiry", dest="expiry_date", help="YYYY-MM-DD")
    delete = product_cmds.add_parser("delete")
    delete.add_argument("id")
    adjust = product_cmds.add_parser("adjust")
    adjust.add_argument("id")
    adjust.add_argument("delta", type=int)
    for name in ("import", "export"):
        p = product_cmds.add_parser(name)
        p.add_argument("path", help="CSV or .xlsx file")

    sell = commands.add_parser("sell", help="Ring up a sale")
    sell.add_argument("items", nargs="+", metavar="BARCODE[:QTY]")
    sell.add_argument("--discount", default="")
    sell.add_argument("--percent", action="store_true", help="Discount is a percentage")

    sales = commands.add_parser("sales", help="Sales history")
    sale_cmds = sales.add_subparsers(dest="action", required=True)
    listing = sale_cmds.add_parser("list")
    listing.add_argument("--from", dest="date_from")
    listing.add_argument("--to", dest="date_to")
    clear = sale_cmds.add_parser("clear")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    sale_cmds.add_parser("reset-revenue")

    report = commands.add_parser("report", help="Dashboard and sales reports")
    report_cmds = report.add_subparsers(dest="action", required=True)
    report_cmds.add_parser("dashboard")
    sales_report = report_cmds.add_parser("sales")
    sales_report.add_argument("--from", dest="date_from")
    sales_report.add_argument("--to", dest="date_to")
    sales_report.add_argument("--output", help="Write the report to this file")
    sales_report.add_argument("--excel", action="store_true")

    return parser.parse_args(argv)


def _fail(error):
    print(f"Error: {error.message}", file=sys.stderr)
    return 1


def _print_product(p, currency):
    flag = " (low stock)" if p.is_low_stock else ""
    print(f"{p.id}  {p.barcode or '-':13}  {p.name[:30]:30}  "
          f"{format_currency(p.price, currency):>10}  stock {p.stock}{flag}")


def run_products(args, catalog, config):
    currency = config["shop"]["currency"]
    if args.action == "list":
        products = catalog.search(args.search) if args.search else catalog.products()
        if args.low_stock:
            products = utils.low_stock_products(products)
        for p in products:
            _print_product(p, currency)
        return 0

    if args.action in ("add", "update"):
        fields = ("name", "price", "stock", "barcode", "category",
                  "low_stock_threshold", "expiry_date")
        given = {k: getattr(args, k) for k in fields if getattr(args, k) is not None}
        if args.action == "add":
            result = catalog.add_product(given)
        else:
            current = catalog.get(args.id)
            if current is None:
                return _fail(ProductNotFound(product_id=args.id))
            result = catalog.update_product({**current.to_dict(), **given})
        if not result:
            return _fail(result.error)
        _print_product(result.value, currency)
        return 0

    if args.action == "delete":
        if not catalog.delete_product(args.id):
            print(f"No product with id {args.id}", file=sys.stderr)
            return 1
        return 0

    if args.action == "adjust":
        result = catalog.adjust_stock(args.id, args.delta)
        if not result:
            return _fail(result.error)
        _print_product(result.value, currency)
        return 0

    excel = args.path.lower().endswith(('.xlsx', '.xls'))
    if args.action == "import":
        if excel:
            counts = utils.import_inventory_excel(catalog, args.path)
        else:
            counts = utils.import_inventory_csv(catalog, args.path)
        print(f"Added {counts['added']}, updated {counts['updated']}, "
              f"rejected {len(counts['rejected'])}")
        for row, message in counts['rejected']:
            print(f"  row {row}: {message}")
        return 0

    if excel:
        utils.export_inventory_excel(catalog, args.path)
    else:
        utils.export_inventory_csv(catalog, args.path)
    print(f"Inventory exported to {args.path}")
    return 0


def parse_item(item):
    """'8901234567890:3' -> ('8901234567890', 3)"""
    barcode, _, qty = item.partition(':')
    qty = int(qty) if qty else 1
    if qty < 1:
        raise ValueError(item)
    return barcode.strip(), qty


def run_sell(args, catalog, store, config):
    shop = config["shop"]
    currency = shop["currency"]
    pos = CashierSystem(catalog, store, tax_rate=shop["tax_rate"], user_id=shop["user_id"])

    for item in args.items:
        try:
            barcode, qty = parse_item(item)
        except ValueError:
            print(f"Error: bad quantity in {item!r}", file=sys.stderr)
            return 1
        result = pos.scan(barcode)
        if result and qty != 1:
            result = pos.update_quantity(result.value.product_id,
                                         result.value.quantity - 1 + qty)
        if not result:
            return _fail(result.error)

    result = pos.set_discount(args.discount, PERCENTAGE if args.percent else FIXED)
    if not result:
        return _fail(result.error)

    result = pos.checkout()
    if not result:
        return _fail(result.error)

    sale = result.value
    for line in sale.items:
        print(f"{line.name[:30]:30} {line.quantity:3} x {format_currency(line.price, currency)}")
    print(f"Subtotal: {format_currency(sale.subtotal, currency)}")
    if sale.discount_amount:
        print(f"Discount: -{format_currency(sale.discount_amount, currency)}")
    print(f"Tax ({shop['tax_rate']}%): {format_currency(sale.tax_amount, currency)}")
    print(f"Total: {format_currency(sale.total, currency)}")
    print(f"Sale {sale.id}")
    return 0


def run_sales(args, committer, config):
    currency = config["shop"]["currency"]
    if args.action == "list":
        for sale in committer.sales(args.date_from, args.date_to):
            print(f"{sale.date}  {sale.id}  {sale.item_count:4} items  "
                  f"{format_currency(sale.total, currency):>12}")
        return 0

    if args.action == "clear":
        if not args.yes:
            answer = input("Delete ALL sales data? This cannot be undone [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                print("Cancelled")
                return 1
        committer.clear_sales_data()
        print("Sales data cleared")
        return 0

    print(f"Dashboard revenue counts from {committer.reset_dashboard_revenue()}")
    return 0


def run_report(args, catalog, committer, config):
    currency = config["shop"]["currency"]
    if args.action == "dashboard":
        summary = utils.dashboard_summary(
            catalog.products(), committer.sales(),
            revenue_since=committer.revenue_reset_timestamp(),
            expiry_window_days=config["reports"]["expiry_window_days"])
        print(f"Products: {summary['total_products']}")
        print(f"Revenue: {format_currency(summary['total_revenue'], currency)}")
        print(f"Low stock: {', '.join(p.name for p in summary['low_stock']) or 'none'}")
        print(f"Expiring soon: {', '.join(p.name for p in summary['expiring_soon']) or 'none'}")
        for alert in summary['velocity_alerts']:
            print(f"Sales of {alert['name']} fell from {alert['previous']} "
                  f"to {alert['current']} units")
        return 0

    df, summary = utils.generate_sales_report(
        committer.sales(), args.date_from, args.date_to,
        file_path=args.output, format='excel' if args.excel else 'csv')
    if df is None:
        print(summary)
        return 0
    print(f"Transactions: {summary['num_transactions']}")
    print(f"Total sales: {format_currency(summary['total_sales'], currency)}")
    print(f"Average sale: {format_currency(summary['average_sale'], currency)}")
    print(summary['daily'].to_string(index=False))
    if args.output:
        print(f"Report written to {args.output}")
    return 0


def main(argv=None):
    try:
        # Parse command line arguments
        args = parse_arguments(argv)

        # Load configuration
        config = load_config(args.config)
        if args.debug:
            config["logging"]["level"] = "DEBUG"
        configure_logger(config)
        logger.debug("Debug mode enabled")

        # Setup required directories
        setup_directories(config)

        # Initialize database
        db_path = config["database"].get("name", "pos.db")
        db = Database(db_path, shop_id=config["shop"]["user_id"])
        logger.info(f"Database initialized: {db_path}")

        try:
            catalog = ProductCatalog(db)
            committer = SaleCommitter(catalog, db, config["shop"]["user_id"])
            if args.command == "products":
                return run_products(args, catalog, config)
            if args.command == "sell":
                return run_sell(args, catalog, db, config)
            if args.command == "sales":
                return run_sales(args, committer, config)
            return run_report(args, catalog, committer, config)
        finally:
            db.close()

    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
