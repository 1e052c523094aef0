# database.py
import sqlite3
import logging

from models import Product, CartLineItem, Sale
from stores import ProductStore, SaleStore

logger = logging.getLogger("shop_pos.database")


class Database(ProductStore, SaleStore):
    """
    Manages the SQLite connection and stores products, sales and
    settings for one shop. Several shops can share a file; every row
    carries the shop_id it belongs to.
    """
    def __init__(self, db_name: str = "pos.db", shop_id: str = "default"):
        self.db_name = db_name
        self.shop_id = shop_id
        self.conn = sqlite3.connect(db_name)
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self):
        cur = self.conn.cursor()
        # Products table
        cur.execute("""
        CREATE TABLE IF NOT EXISTS products (
            shop_id TEXT NOT NULL,
            id TEXT NOT NULL,
            name TEXT NOT NULL,
            category TEXT,
            price REAL NOT NULL,
            stock INTEGER NOT NULL,
            low_stock_threshold INTEGER,
            expiry_date TEXT,
            barcode TEXT,
            PRIMARY KEY (shop_id, id)
        )
        """)
        cur.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS products_barcode
        ON products (shop_id, barcode) WHERE barcode != ''
        """)
        # Sales master table
        cur.execute("""
        CREATE TABLE IF NOT EXISTS sales (
            shop_id TEXT NOT NULL,
            id TEXT NOT NULL,
            date TEXT NOT NULL,
            user_id TEXT,
            subtotal REAL,
            discount_amount REAL,
            discount_type TEXT,
            discount_value REAL,
            tax_amount REAL,
            total REAL,
            PRIMARY KEY (shop_id, id)
        )
        """)
        # Sale items hold a copy of name and price, not a product reference
        cur.execute("""
        CREATE TABLE IF NOT EXISTS sale_items (
            shop_id TEXT NOT NULL,
            sale_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            product_id TEXT,
            name TEXT,
            quantity INTEGER,
            price REAL,
            PRIMARY KEY (shop_id, sale_id, position)
        )
        """)
        cur.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            shop_id TEXT NOT NULL,
            key TEXT NOT NULL,
            value TEXT,
            PRIMARY KEY (shop_id, key)
        )
        """)
        self.conn.commit()

    def close(self):
        self.conn.close()

    # Product operations
    def load_products(self):
        """Return all products of this shop."""
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM products WHERE shop_id = ? ORDER BY rowid",
                    (self.shop_id,))
        return [Product.from_row(row) for row in cur.fetchall()]

    def get_product(self, product_id):
        """Fetch a product by ID."""
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM products WHERE shop_id = ? AND id = ?",
                    (self.shop_id, product_id))
        row = cur.fetchone()
        return Product.from_row(row) if row else None

    def insert_product(self, product: Product):
        cur = self.conn.cursor()
        cur.execute("""
        INSERT INTO products (shop_id, id, name, category, price, stock,
                              low_stock_threshold, expiry_date, barcode)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (self.shop_id, product.id, product.name, product.category,
              product.price, product.stock, product.low_stock_threshold,
              product.expiry_date, product.barcode))
        self.conn.commit()

    def update_product(self, product: Product):
        cur = self.conn.cursor()
        cur.execute("""
        UPDATE products
        SET name = ?, category = ?, price = ?, stock = ?,
            low_stock_threshold = ?, expiry_date = ?, barcode = ?
        WHERE shop_id = ? AND id = ?
        """, (product.name, product.category, product.price, product.stock,
              product.low_stock_threshold, product.expiry_date, product.barcode,
              self.shop_id, product.id))
        self.conn.commit()

    def delete_product(self, product_id) -> bool:
        cur = self.conn.cursor()
        cur.execute("DELETE FROM products WHERE shop_id = ? AND id = ?",
                    (self.shop_id, product_id))
        self.conn.commit()
        return cur.rowcount > 0  # True if a row was deleted

    def adjust_stock(self, product_id, delta: int) -> bool:
        """
        Change stock by delta (negative to reduce).
        Prevents negative stock.
        """
        cur = self.conn.cursor()
        cur.execute("""
        UPDATE products
        SET stock = stock + ?
        WHERE shop_id = ? AND id = ? AND stock + ? >= 0
        """, (delta, self.shop_id, product_id, delta))
        self.conn.commit()
        return cur.rowcount > 0

    # Sales operations
    def commit_sale(self, sale: Sale, deductions: dict):
        """
        Record a sale with its line items and reduce inventory in one
        transaction. Each decrement only applies while stock >= quantity;
        if any product falls short the whole transaction is rolled back
        and the short product ids are returned.
        """
        cur = self.conn.cursor()
        short = []
        try:
            for product_id, qty in deductions.items():
                cur.execute("""
                UPDATE products
                SET stock = stock - ?
                WHERE shop_id = ? AND id = ? AND stock >= ?
                """, (qty, self.shop_id, product_id, qty))
                if cur.rowcount == 0:
                    short.append(product_id)
            if short:
                self.conn.rollback()
                logger.warning(f"Sale {sale.id} rolled back, short stock for {short}")
                return short

            cur.execute("""
            INSERT INTO sales (shop_id, id, date, user_id, subtotal, discount_amount,
                               discount_type, discount_value, tax_amount, total)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (self.shop_id, sale.id, sale.date, sale.user_id, sale.subtotal,
                  sale.discount_amount, sale.discount_type, sale.discount_value,
                  sale.tax_amount, sale.total))
            for position, item in enumerate(sale.items):
                cur.execute("""
                INSERT INTO sale_items (shop_id, sale_id, position, product_id,
                                        name, quantity, price)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (self.shop_id, sale.id, position, item.product_id,
                      item.name, item.quantity, item.price))
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            raise
        return []

    def list_sales(self, date_from: str = None, date_to: str = None):
        """List sales within optional date range, oldest first."""
        cur = self.conn.cursor()
        q = "SELECT * FROM sales WHERE shop_id = ?"
        params = [self.shop_id]
        if date_from:
            q += " AND date >= ?"
            params.append(date_from)
        if date_to:
            # a bare date includes the whole day
            q += " AND substr(date, 1, length(?)) <= ?"
            params.extend([date_to, date_to])

        q += " ORDER BY date ASC"
        cur.execute(q, params)
        sales = [dict(r) for r in cur.fetchall()]
        if not sales:
            return []

        cur.execute("""
        SELECT * FROM sale_items WHERE shop_id = ? ORDER BY sale_id, position
        """, (self.shop_id,))
        items = {}
        for row in cur.fetchall():
            items.setdefault(row['sale_id'], []).append(
                CartLineItem(row['product_id'], row['name'], row['quantity'], row['price']))

        return [Sale(items=items.get(s['id'], []),
                     subtotal=s['subtotal'],
                     tax_amount=s['tax_amount'],
                     total=s['total'],
                     user_id=s['user_id'],
                     discount_amount=s['discount_amount'],
                     discount_type=s['discount_type'],
                     discount_value=s['discount_value'],
                     id=s['id'],
                     date=s['date'])
                for s in sales]

    def clear_sales(self):
        """Delete every sale of this shop in one transaction."""
        try:
            self.conn.execute("DELETE FROM sale_items WHERE shop_id = ?", (self.shop_id,))
            self.conn.execute("DELETE FROM sales WHERE shop_id = ?", (self.shop_id,))
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            raise

    # Settings
    def get_setting(self, key, default=None):
        cur = self.conn.cursor()
        cur.execute("SELECT value FROM settings WHERE shop_id = ? AND key = ?",
                    (self.shop_id, key))
        row = cur.fetchone()
        return row['value'] if row else default

    def set_setting(self, key, value):
        self.conn.execute("""
        INSERT OR REPLACE INTO settings (shop_id, key, value) VALUES (?, ?, ?)
        """, (self.shop_id, key, value))
        self.conn.commit()

    def delete_setting(self, key):
        self.conn.execute("DELETE FROM settings WHERE shop_id = ? AND key = ?",
                          (self.shop_id, key))
        self.conn.commit()
