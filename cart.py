# cart.py
import logging
import math

from catalog import ProductCatalog
from errors import (Result, OutOfStock, StockLimitReached, MaxStockInCartReached,
                    ExceedsStock, ProductNotFound, LineItemNotFound, InvalidDiscount,
                    CartClosed, ValidationError)
from models import CartLineItem, DiscountSpec, DISCOUNT_TYPES, FIXED, PERCENTAGE
from pricing import calculate_totals

logger = logging.getLogger("shop_pos.cart")

EMPTY = 'empty'
POPULATED = 'populated'
COMMITTED = 'committed'


def _rejected(error):
    logger.debug(f"Cart change rejected: {error.code} {error.details}")
    return Result.failure(error)


class Cart:
    """
    Sale being built at the till.

    Holds at most one line per product. Every change is checked against
    the catalog's current stock and is either applied exactly as asked or
    rejected leaving the cart untouched; quantities are never clamped.
    """
    def __init__(self, catalog: ProductCatalog):
        self.catalog = catalog
        self._lines = {}
        self.discount = DiscountSpec()
        self.committed = False

    @property
    def state(self):
        if self.committed:
            return COMMITTED
        return POPULATED if self._lines else EMPTY

    @property
    def lines(self):
        """Copies of the cart lines in the order they were added."""
        return [line.copy() for line in self._lines.values()]

    def quantity_of(self, product_id):
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def __len__(self):
        return len(self._lines)

    def __iter__(self):
        return iter(self.lines)

    # Mutations
    def add_to_cart(self, product_id) -> Result:
        """Add one unit of a product."""
        if self.committed:
            return _rejected(CartClosed())
        product = self.catalog.get(product_id)
        if product is None:
            return _rejected(ProductNotFound(product_id=product_id))

        line = self._lines.get(product_id)
        if line is None:
            if product.stock <= 0:
                return _rejected(OutOfStock(product_id=product_id, name=product.name))
            line = CartLineItem.for_product(product)
            self._lines[product_id] = line
        else:
            if line.quantity + 1 > product.stock:
                return _rejected(StockLimitReached(
                    product_id=product_id, name=product.name, stock=product.stock))
            line.quantity += 1
        logger.debug(f"Cart: {line.name} x{line.quantity}")
        return Result.success(line.copy())

    def find_and_add_by_barcode(self, barcode) -> Result:
        """Resolve a scanned or typed barcode and add one unit."""
        if self.committed:
            return _rejected(CartClosed())
        barcode = (barcode or '').strip()
        product = self.catalog.get_by_barcode(barcode) if barcode else None
        if product is None:
            return _rejected(ProductNotFound(barcode=barcode))
        if product.stock <= 0:
            return _rejected(OutOfStock(product_id=product.id, name=product.name))
        if self.quantity_of(product.id) >= product.stock:
            return _rejected(MaxStockInCartReached(
                product_id=product.id, name=product.name, stock=product.stock))
        return self.add_to_cart(product.id)

    def update_quantity(self, product_id, new_quantity) -> Result:
        """
        Set a line's quantity. Zero or less removes the line, more than the
        stock on hand is rejected and the line keeps its old quantity.
        Returns the updated line, or None when the line was removed.
        """
        if self.committed:
            return _rejected(CartClosed())
        line = self._lines.get(product_id)
        if line is None:
            return _rejected(LineItemNotFound(product_id=product_id))

        if new_quantity <= 0:
            del self._lines[product_id]
            logger.debug(f"Cart: removed {line.name}")
            return Result.success(None)

        product = self.catalog.get(product_id)
        if product is None:
            return _rejected(ProductNotFound(product_id=product_id))
        if not math.isfinite(new_quantity) or int(new_quantity) != new_quantity:
            return _rejected(ValidationError(
                "Quantity must be a whole number.", product_id=product_id))
        if new_quantity > product.stock:
            return _rejected(ExceedsStock(
                product_id=product_id, name=product.name,
                requested=new_quantity, stock=product.stock))

        line.quantity = int(new_quantity)
        logger.debug(f"Cart: {line.name} x{line.quantity}")
        return Result.success(line.copy())

    def remove_line(self, product_id) -> Result:
        return self.update_quantity(product_id, 0)

    def set_discount(self, value, discount_type=None) -> Result:
        """
        Store the discount as entered. Blank input means no discount; text
        that is not a number is rejected.
        """
        if self.committed:
            return _rejected(CartClosed())
        discount_type = discount_type or self.discount.type
        if discount_type not in DISCOUNT_TYPES:
            return _rejected(InvalidDiscount(
                f"Unknown discount type {discount_type!r}.", type=discount_type))
        if value not in (None, ''):
            try:
                float(value)
            except (TypeError, ValueError):
                return _rejected(InvalidDiscount(
                    "Discount must be a number.", value=value))
        self.discount = DiscountSpec(value, discount_type)
        return Result.success(self.discount)

    def toggle_discount_type(self) -> Result:
        if self.committed:
            return _rejected(CartClosed())
        new_type = PERCENTAGE if self.discount.type == FIXED else FIXED
        self.discount = DiscountSpec(self.discount.value, new_type)
        return Result.success(self.discount)

    def clear_discount(self):
        self.discount = DiscountSpec()

    def clear(self):
        """Empty the cart and forget the discount."""
        if self.committed:
            return _rejected(CartClosed())
        self._lines.clear()
        self.clear_discount()
        return Result.success(None)

    def mark_committed(self):
        self.committed = True

    def totals(self, tax_rate=0):
        return calculate_totals(self._lines.values(), self.discount, tax_rate)
