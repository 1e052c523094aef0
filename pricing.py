# pricing.py
"""
Cart totals. Everything here is a pure function of its arguments, so it
is safe to recompute after every cart change.

Amounts are plain floats and are never rounded between steps; round only
for display with Totals.rounded() or format_currency().
"""
from models import DiscountSpec, PERCENTAGE


class Totals:
    """Result of calculate_totals."""
    FIELDS = ('subtotal', 'discount_amount', 'subtotal_after_discount',
              'tax_amount', 'total')

    def __init__(self, subtotal, discount_amount, subtotal_after_discount,
                 tax_amount, total):
        self.subtotal = subtotal
        self.discount_amount = discount_amount
        self.subtotal_after_discount = subtotal_after_discount
        self.tax_amount = tax_amount
        self.total = total

    def rounded(self, places=2):
        return Totals(*(round(getattr(self, k), places) for k in self.FIELDS))

    def to_dict(self):
        return {k: getattr(self, k) for k in self.FIELDS}

    def __eq__(self, other):
        return isinstance(other, Totals) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return "Totals(" + ", ".join(f"{k}={getattr(self, k)!r}" for k in self.FIELDS) + ")"


def discount_value(raw):
    """
    Parse the discount box the way the till reads it: blank, missing or
    non-numeric input counts as 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return value


def calculate_discount(subtotal, discount: DiscountSpec = None):
    """Discount granted on subtotal, always within [0, subtotal]."""
    if discount is None:
        return 0.0
    value = discount_value(discount.value)
    if value <= 0:
        return 0.0
    if discount.type == PERCENTAGE:
        raw = subtotal * (value / 100)
    else:
        raw = value
    return max(0.0, min(subtotal, raw))


def calculate_totals(lines, discount: DiscountSpec = None, tax_rate=0) -> Totals:
    """
    subtotal        = sum(price * quantity)
    discount_amount = percentage or fixed discount clamped to [0, subtotal]
    tax_amount      = (subtotal - discount_amount) * tax_rate / 100
    total           = subtotal - discount_amount + tax_amount
    """
    subtotal = sum((line.price * line.quantity for line in lines), 0.0)
    discount_amount = calculate_discount(subtotal, discount)
    after_discount = subtotal - discount_amount
    tax_amount = after_discount * ((tax_rate or 0) / 100)
    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        subtotal_after_discount=after_discount,
        tax_amount=tax_amount,
        total=after_discount + tax_amount
    )


def format_currency(amount, currency="₹"):
    return f"{currency}{amount:.2f}"
