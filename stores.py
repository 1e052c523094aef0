# stores.py
"""
Storage contracts used by the catalog and the sale committer.

A backend implements both ProductStore and SaleStore so that a sale and
its stock deductions can be written in one transaction.
"""
from abc import ABC, abstractmethod

from models import Product, Sale


class ProductStore(ABC):

    @abstractmethod
    def load_products(self):
        """Return every stored product as a list of Product."""

    @abstractmethod
    def get_product(self, product_id):
        """Return a fresh Product for product_id, or None."""

    @abstractmethod
    def insert_product(self, product: Product):
        pass

    @abstractmethod
    def update_product(self, product: Product):
        pass

    @abstractmethod
    def delete_product(self, product_id) -> bool:
        pass

    @abstractmethod
    def adjust_stock(self, product_id, delta: int) -> bool:
        """
        Change stock by delta (negative to reduce).
        Returns False and changes nothing if stock would go negative.
        """


class SaleStore(ABC):

    @abstractmethod
    def list_sales(self, date_from=None, date_to=None):
        """Sales ordered oldest first, optionally limited to an ISO date range."""

    @abstractmethod
    def commit_sale(self, sale: Sale, deductions: dict):
        """
        Append sale and subtract deductions {product_id: quantity} from stock
        as a single unit. Returns the ids whose stock was insufficient, in
        which case nothing was written.
        """

    @abstractmethod
    def clear_sales(self):
        pass

    @abstractmethod
    def get_setting(self, key, default=None):
        pass

    @abstractmethod
    def set_setting(self, key, value):
        pass

    @abstractmethod
    def delete_setting(self, key):
        pass


class InMemoryStore(ProductStore, SaleStore):
    """Keeps everything in process memory. Nothing survives a restart."""

    def __init__(self, products=None, sales=None):
        self._products = {}
        self._sales = []
        self._settings = {}
        for p in products or []:
            self._products[p.id] = p.copy()
        self._sales.extend(sales or [])

    # Products
    def load_products(self):
        return [p.copy() for p in self._products.values()]

    def get_product(self, product_id):
        p = self._products.get(product_id)
        return p.copy() if p else None

    def insert_product(self, product: Product):
        self._products[product.id] = product.copy()

    def update_product(self, product: Product):
        self._products[product.id] = product.copy()

    def delete_product(self, product_id) -> bool:
        return self._products.pop(product_id, None) is not None

    def adjust_stock(self, product_id, delta: int) -> bool:
        p = self._products.get(product_id)
        if p is None or p.stock + delta < 0:
            return False
        p.stock += delta
        return True

    # Sales
    def list_sales(self, date_from=None, date_to=None):
        sales = self._sales
        if date_from:
            sales = [s for s in sales if s.date >= date_from]
        if date_to:
            # a bare date includes the whole day
            sales = [s for s in sales if s.date[:len(date_to)] <= date_to]
        return list(sales)

    def commit_sale(self, sale: Sale, deductions: dict):
        short = [pid for pid, qty in deductions.items()
                 if pid not in self._products or self._products[pid].stock < qty]
        if short:
            return short
        for pid, qty in deductions.items():
            self._products[pid].stock -= qty
        self._sales.append(sale)
        return []

    def clear_sales(self):
        self._sales = []

    def get_setting(self, key, default=None):
        return self._settings.get(key, default)

    def set_setting(self, key, value):
        self._settings[key] = value

    def delete_setting(self, key):
        self._settings.pop(key, None)
