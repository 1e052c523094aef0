# checkout.py
import logging
from datetime import datetime, timezone

from cart import Cart
from catalog import ProductCatalog
from errors import Result, EmptyCart, InsufficientStock, CartClosed
from models import Sale, AppliedDiscount
from stores import SaleStore

logger = logging.getLogger("shop_pos.checkout")

REVENUE_RESET_KEY = 'revenue_reset_timestamp'


class SaleCommitter:
    """
    Turns a cart into a Sale and takes the sold quantities out of stock.

    Stock is checked again here against the catalog, not taken from the
    cart's earlier checks, and the store writes the sale and the stock
    decrements together. A rejected sale writes nothing and is not retried.
    """
    def __init__(self, catalog: ProductCatalog, store: SaleStore, user_id=None):
        self.catalog = catalog
        self.store = store
        self.user_id = user_id

    def complete_sale(self, cart, subtotal, tax_amount, total,
                      discount: AppliedDiscount = None) -> Result:
        """
        cart is a Cart or an iterable of CartLineItem. Totals are recorded
        as given by the caller. Returns a Result holding the new Sale.
        """
        if isinstance(cart, Cart):
            if cart.committed:
                return Result.failure(CartClosed())
            lines = cart.lines
        else:
            lines = [line.copy() for line in cart]
        if not lines:
            return Result.failure(EmptyCart())

        deductions = {}
        for line in lines:
            deductions[line.product_id] = deductions.get(line.product_id, 0) + line.quantity

        short = self._short_names(lines, deductions)
        if short:
            logger.warning(f"Sale rejected, insufficient stock for: {', '.join(short)}")
            return Result.failure(InsufficientStock(short))

        sale = Sale(
            items=lines,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=total,
            user_id=self.user_id,
            discount_amount=discount.amount if discount else 0.0,
            discount_type=discount.type if discount else None,
            discount_value=discount.value if discount else None,
        )

        conflicts = self.store.commit_sale(sale, deductions)
        if conflicts:
            # stock changed in the store behind the catalog's back
            self.catalog.refresh(conflicts)
            names = [line.name for line in lines if line.product_id in conflicts]
            logger.warning(f"Sale {sale.id} conflicted on stock for: {', '.join(names)}")
            return Result.failure(InsufficientStock(names))

        self.catalog.apply_deductions(deductions)
        if isinstance(cart, Cart):
            cart.mark_committed()
        logger.info(f"Sale {sale.id} completed: {len(sale.items)} lines, total {sale.total:.2f}")
        return Result.success(sale)

    def _short_names(self, lines, deductions):
        names = []
        seen = set()
        for line in lines:
            if line.product_id in seen:
                continue
            seen.add(line.product_id)
            product = self.catalog.get(line.product_id)
            if product is None or product.stock < deductions[line.product_id]:
                names.append(product.name if product else line.name)
        return names

    # Read side and bulk administration
    def sales(self, date_from=None, date_to=None):
        return self.store.list_sales(date_from, date_to)

    def clear_sales_data(self):
        """Delete every sale and the revenue reset mark."""
        self.store.clear_sales()
        self.store.delete_setting(REVENUE_RESET_KEY)
        logger.info("All sales data cleared")

    def reset_dashboard_revenue(self):
        """Start counting dashboard revenue from now; sales are kept."""
        now = datetime.now(timezone.utc).isoformat()
        self.store.set_setting(REVENUE_RESET_KEY, now)
        logger.info(f"Dashboard revenue reset at {now}")
        return now

    def revenue_reset_timestamp(self):
        return self.store.get_setting(REVENUE_RESET_KEY)
