# cashier.py
import logging

from cart import Cart
from catalog import ProductCatalog
from checkout import SaleCommitter
from models import AppliedDiscount, DiscountSpec
from pricing import discount_value

logger = logging.getLogger("shop_pos.cashier")


class CashierSystem:
    """
    Coordinates scanning, cart management and checkout for one till.
    Tax rate and user id are passed in; nothing is read from globals.
    """
    def __init__(self, catalog: ProductCatalog, store, tax_rate=0, user_id="default"):
        self.catalog = catalog
        self.tax_rate = tax_rate
        self.committer = SaleCommitter(catalog, store, user_id)
        self.cart = Cart(catalog)

    def scan(self, barcode):
        return self.cart.find_and_add_by_barcode(barcode)

    def add(self, product_id):
        return self.cart.add_to_cart(product_id)

    def update_quantity(self, product_id, quantity):
        return self.cart.update_quantity(product_id, quantity)

    def set_discount(self, value, discount_type=None):
        return self.cart.set_discount(value, discount_type)

    def toggle_discount_type(self):
        return self.cart.toggle_discount_type()

    def totals(self):
        return self.cart.totals(self.tax_rate)

    def reset_cart(self):
        self.cart = Cart(self.catalog)

    def checkout(self):
        """
        Finalize the sale from the current cart. On success a fresh cart
        is started; on failure the cart is left as it was so the operator
        can fix it and try again.
        """
        totals = self.totals()
        discount = None
        if totals.discount_amount > 0:
            current: DiscountSpec = self.cart.discount
            discount = AppliedDiscount(value=discount_value(current.value),
                                       type=current.type,
                                       amount=totals.discount_amount)
        result = self.committer.complete_sale(
            self.cart, totals.subtotal, totals.tax_amount, totals.total, discount)
        if result.ok:
            self.reset_cart()
        else:
            logger.info(f"Checkout failed: {result.error.message}")
        return result
