# catalog.py
import logging
import math
import re

from errors import (Result, DuplicateName, DuplicateBarcode, InvalidBarcode,
                    InvalidProduct, ProductNotFound)
from models import Product, new_id
from stores import ProductStore

logger = logging.getLogger("shop_pos.catalog")

BARCODE_PATTERN = re.compile(r'^[0-9]{8,13}$')


def validate_barcode(barcode):
    """Empty is allowed; anything else must be 8 to 13 digits."""
    return not barcode or bool(BARCODE_PATTERN.match(barcode))


class ProductCatalog:
    """
    Products of one shop, indexed by id, barcode and lower-cased name.

    Writes go to the store first and the indexes are updated after, so a
    storage error leaves the catalog as it was.
    """
    def __init__(self, store: ProductStore):
        self.store = store
        self._by_id = {}
        self._by_barcode = {}
        self._by_name = {}
        self.reload()

    def reload(self):
        self._by_id.clear()
        self._by_barcode.clear()
        self._by_name.clear()
        for product in self.store.load_products():
            self._index(product)
        logger.debug(f"Loaded {len(self._by_id)} products")

    def _index(self, product: Product):
        self._by_id[product.id] = product
        self._by_name[product.name.lower()] = product.id
        if product.barcode:
            self._by_barcode[product.barcode] = product.id

    def _unindex(self, product: Product):
        self._by_id.pop(product.id, None)
        if self._by_name.get(product.name.lower()) == product.id:
            del self._by_name[product.name.lower()]
        if product.barcode and self._by_barcode.get(product.barcode) == product.id:
            del self._by_barcode[product.barcode]

    def _check(self, product: Product, own_id=None):
        """Return the first validation error for product, or None."""
        if not product.name:
            return InvalidProduct("Product name is required.")
        try:
            if not math.isfinite(product.price) or product.price < 0:
                return InvalidProduct("Price must be a number and not negative.")
            if int(product.stock) != product.stock or product.stock < 0:
                return InvalidProduct("Stock must be a whole number and not negative.")
            if not math.isfinite(product.low_stock_threshold) or product.low_stock_threshold < 0:
                return InvalidProduct("Low stock threshold must be a number and not negative.")
        except (TypeError, ValueError, OverflowError):
            return InvalidProduct("Price, stock and threshold must be numbers.")
        if not validate_barcode(product.barcode):
            return InvalidBarcode(barcode=product.barcode)

        name_owner = self._by_name.get(product.name.lower())
        if name_owner is not None and name_owner != own_id:
            return DuplicateName(name=product.name)
        if product.barcode:
            barcode_owner = self._by_barcode.get(product.barcode)
            if barcode_owner is not None and barcode_owner != own_id:
                return DuplicateBarcode(barcode=product.barcode)
        return None

    @staticmethod
    def _normalized(data):
        product = data.copy() if isinstance(data, Product) else Product.from_dict(data)
        product.name = (product.name or '').strip()
        product.barcode = (product.barcode or '').strip()
        return product

    def add_product(self, data) -> Result:
        """Insert a new product from a dict or Product; any given id is replaced."""
        product = self._normalized(data)
        error = self._check(product)
        if error:
            logger.debug(f"Rejected new product {product.name!r}: {error.code}")
            return Result.failure(error)

        product.id = new_id()
        product.stock = int(product.stock)
        self.store.insert_product(product)
        self._index(product)
        logger.info(f"Added product {product.name} ({product.id})")
        return Result.success(product.copy())

    def update_product(self, data) -> Result:
        product = self._normalized(data)
        current = self._by_id.get(product.id)
        if current is None:
            return Result.failure(ProductNotFound(product_id=product.id))
        error = self._check(product, own_id=product.id)
        if error:
            logger.debug(f"Rejected update of {product.id}: {error.code}")
            return Result.failure(error)

        product.stock = int(product.stock)
        self.store.update_product(product)
        self._unindex(current)
        self._index(product)
        logger.info(f"Updated product {product.name} ({product.id})")
        return Result.success(product.copy())

    def delete_product(self, product_id) -> bool:
        product = self._by_id.get(product_id)
        self.store.delete_product(product_id)
        if product is None:
            return False
        self._unindex(product)
        logger.info(f"Deleted product {product.name} ({product_id})")
        return True

    def adjust_stock(self, product_id, delta: int) -> Result:
        """Manual stock correction; refuses to take stock below zero."""
        product = self._by_id.get(product_id)
        if product is None:
            return Result.failure(ProductNotFound(product_id=product_id))
        if not self.store.adjust_stock(product_id, delta):
            return Result.failure(InvalidProduct(
                "Stock cannot be negative.", product_id=product_id, delta=delta))
        product.stock += delta
        logger.info(f"Stock of {product.name} adjusted by {delta} to {product.stock}")
        return Result.success(product.copy())

    # Lookups hand out the live record; callers must not mutate it
    def get(self, product_id):
        return self._by_id.get(product_id)

    def get_by_barcode(self, barcode):
        product_id = self._by_barcode.get((barcode or '').strip())
        return self._by_id.get(product_id) if product_id else None

    def products(self):
        """Copies of every product, in insertion order."""
        return [p.copy() for p in self._by_id.values()]

    def search(self, term):
        term = (term or '').strip().lower()
        return [p.copy() for p in self._by_id.values()
                if term in p.name.lower() or term in p.barcode]

    def __len__(self):
        return len(self._by_id)

    def __contains__(self, product_id):
        return product_id in self._by_id

    # Used by the sale committer
    def apply_deductions(self, deductions: dict):
        """Mirror stock already subtracted in the store."""
        for product_id, qty in deductions.items():
            product = self._by_id.get(product_id)
            if product is not None:
                product.stock -= qty

    def refresh(self, product_ids):
        """Re-read the given products from the store."""
        for product_id in product_ids:
            current = self._by_id.get(product_id)
            fresh = self.store.get_product(product_id)
            if current is not None:
                self._unindex(current)
            if fresh is not None:
                self._index(fresh)
