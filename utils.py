# utils.py
import datetime

import pandas as pd

from catalog import ProductCatalog
from models import Product, DEFAULT_LOW_STOCK_THRESHOLD

INVENTORY_COLUMNS = list(Product.FIELDS)
SALE_COLUMNS = ['id', 'date', 'user_id', 'subtotal', 'discount_amount',
                'discount_type', 'discount_value', 'tax_amount', 'total', 'items_count']
ITEM_COLUMNS = ['sale_id', 'date', 'product_id', 'name', 'quantity', 'price', 'line_total']
TEXT_COLUMNS = {'barcode': str, 'category': str, 'expiry_date': str, 'name': str}


def inventory_dataframe(catalog: ProductCatalog):
    return pd.DataFrame([p.to_dict() for p in catalog.products()], columns=INVENTORY_COLUMNS)


def export_inventory_csv(catalog: ProductCatalog, file_path: str):
    """Dump inventory to CSV."""
    inventory_dataframe(catalog).to_csv(file_path, index=False)
    return file_path


def export_inventory_excel(catalog: ProductCatalog, file_path: str):
    """Export inventory to Excel format."""
    inventory_dataframe(catalog).to_excel(file_path, index=False, sheet_name='Inventory')
    return file_path


def _import_rows(catalog: ProductCatalog, df):
    """
    Upsert rows by barcode through the catalog, so every row gets the
    same validation as a product entered by hand.
    """
    df = df.fillna({'barcode': '', 'category': '', 'expiry_date': ''})
    # blank or non-numeric cells become NaN and are rejected by the catalog
    for column in ('price', 'stock', 'low_stock_threshold'):
        if column in df.columns:
            df[column] = pd.to_numeric(df[column], errors='coerce')
    counts = {'added': 0, 'updated': 0, 'rejected': []}
    for index, row in df.iterrows():
        threshold = row.get('low_stock_threshold', DEFAULT_LOW_STOCK_THRESHOLD)
        data = {
            'name': row['name'] if isinstance(row['name'], str) else '',
            'price': row['price'],
            'stock': row['stock'],
            'barcode': str(row.get('barcode', '')).strip(),
            'category': row.get('category', ''),
            'expiry_date': row.get('expiry_date', ''),
            'low_stock_threshold': DEFAULT_LOW_STOCK_THRESHOLD if pd.isna(threshold) else int(threshold),
        }
        existing = catalog.get_by_barcode(data['barcode']) if data['barcode'] else None
        if existing:
            result = catalog.update_product({**data, 'id': existing.id})
        else:
            result = catalog.add_product(data)
        if result.ok:
            counts['updated' if existing else 'added'] += 1
        else:
            counts['rejected'].append((index, result.error.message))
    return counts


def import_inventory_csv(catalog: ProductCatalog, file_path: str):
    """
    Read CSV with columns barcode,name,price,stock (and optionally
    category,low_stock_threshold,expiry_date) and upsert into the catalog.
    """
    df = pd.read_csv(file_path, dtype=TEXT_COLUMNS)
    return _import_rows(catalog, df)


def import_inventory_excel(catalog: ProductCatalog, file_path: str):
    """Same as import_inventory_csv for an Excel workbook."""
    df = pd.read_excel(file_path, dtype=TEXT_COLUMNS)
    return _import_rows(catalog, df)


def sales_dataframe(sales):
    """One row per sale, dates parsed as UTC."""
    rows = []
    for sale in sales:
        data = sale.to_dict()
        data['items_count'] = sale.item_count
        del data['items']
        rows.append(data)
    df = pd.DataFrame(rows, columns=SALE_COLUMNS)
    df['date'] = pd.to_datetime(df['date'], utc=True, format='ISO8601')
    return df


def sale_items_dataframe(sales):
    """One row per sold line."""
    rows = [{
        'sale_id': sale.id,
        'date': sale.date,
        'product_id': item.product_id,
        'name': item.name,
        'quantity': item.quantity,
        'price': item.price,
        'line_total': item.line_total
    } for sale in sales for item in sale.items]
    df = pd.DataFrame(rows, columns=ITEM_COLUMNS)
    df['date'] = pd.to_datetime(df['date'], utc=True, format='ISO8601')
    return df


def generate_sales_report(sales, start_date=None, end_date=None, file_path=None, format='csv'):
    """Generate a sales report for a given date range (inclusive, YYYY-MM-DD)."""
    df = sales_dataframe(sales)
    df['day'] = df['date'].dt.date
    if start_date:
        df = df[df['day'] >= datetime.date.fromisoformat(start_date)]
    if end_date:
        df = df[df['day'] <= datetime.date.fromisoformat(end_date)]

    if df.empty:
        return None, "No sales data found for the specified period."

    daily = df.groupby('day').agg(
        num_transactions=('id', 'count'),
        items_sold=('items_count', 'sum'),
        discounts=('discount_amount', 'sum'),
        tax=('tax_amount', 'sum'),
        total_sales=('total', 'sum'),
    ).reset_index()

    summary = {
        'total_sales': float(df['total'].sum()),
        'average_sale': float(df['total'].mean()),
        'num_transactions': len(df),
        'total_tax': float(df['tax_amount'].sum()),
        'total_discounts': float(df['discount_amount'].sum()),
        'start_date': start_date or df['day'].min().isoformat(),
        'end_date': end_date or df['day'].max().isoformat(),
        'daily': daily
    }

    # Export to file if path provided
    if file_path:
        if format.lower() == 'excel':
            df.drop(columns=['day']).assign(date=df['date'].dt.tz_localize(None)) \
                .to_excel(file_path, index=False, sheet_name='Sales')
        else:  # Default to CSV
            df.drop(columns=['day']).to_csv(file_path, index=False)

    return df, summary


def low_stock_products(products):
    """Products at or below their own low stock threshold, lowest stock first."""
    return sorted((p for p in products if p.is_low_stock), key=lambda p: p.stock)


def days_until_expiry(expiry_date, today=None):
    """Whole days left before expiry_date (0 on the day itself), None if unknown."""
    if not expiry_date:
        return None
    try:
        expiry = datetime.date.fromisoformat(expiry_date[:10])
    except ValueError:
        return None
    today = today or datetime.date.today()
    return (expiry - today).days


def expiring_soon_products(products, days=30, today=None):
    """Products expiring within the next `days` days, soonest first."""
    soon = []
    for p in products:
        left = days_until_expiry(p.expiry_date, today)
        if left is not None and 0 <= left <= days:
            soon.append((left, p))
    return [p for _, p in sorted(soon, key=lambda pair: pair[0])]


def total_revenue(sales, since=None):
    """Sum of sale totals, counting only sales after `since` when given."""
    return float(sum(s.total for s in sales if since is None or s.date > since))


def sales_velocity_alerts(products, sales, now=None):
    """
    Products whose units sold in the last 30 days fell below half of the
    30 days before that, when that earlier period sold more than 5 units.
    """
    now = pd.Timestamp(now or datetime.datetime.now(datetime.timezone.utc))
    if now.tzinfo is None:
        now = now.tz_localize('UTC')
    items = sale_items_dataframe(sales)
    last_start = now - pd.Timedelta(days=30)
    previous_start = now - pd.Timedelta(days=60)

    current = items[items['date'] >= last_start].groupby('product_id')['quantity'].sum()
    previous = items[(items['date'] >= previous_start) & (items['date'] < last_start)] \
        .groupby('product_id')['quantity'].sum()

    by_id = {p.id: p for p in products}
    alerts = []
    for product_id, previous_qty in previous.items():
        current_qty = int(current.get(product_id, 0))
        if previous_qty > 5 and current_qty < previous_qty * 0.5 and product_id in by_id:
            alerts.append({
                'product_id': product_id,
                'name': by_id[product_id].name,
                'previous': int(previous_qty),
                'current': current_qty
            })
    return alerts


def top_products(sales, limit=10):
    """Best sellers by units sold."""
    items = sale_items_dataframe(sales)
    if items.empty:
        return []
    grouped = items.groupby('product_id').agg(
        name=('name', 'last'),
        qty=('quantity', 'sum'),
        revenue=('line_total', 'sum'),
    ).reset_index().sort_values(['qty', 'revenue'], ascending=False)
    return grouped.head(limit).to_dict('records')


def dashboard_summary(products, sales, revenue_since=None, expiry_window_days=30, today=None):
    """Figures shown on the dashboard cards."""
    return {
        'total_products': len(products),
        'total_revenue': total_revenue(sales, revenue_since),
        'low_stock': low_stock_products(products),
        'expiring_soon': expiring_soon_products(products, expiry_window_days, today),
        'velocity_alerts': sales_velocity_alerts(products, sales),
    }
