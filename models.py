# models.py
import uuid
from datetime import datetime, timezone

PERCENTAGE = 'percentage'
FIXED = 'fixed'
DISCOUNT_TYPES = (PERCENTAGE, FIXED)

DEFAULT_LOW_STOCK_THRESHOLD = 10


def new_id():
    return str(uuid.uuid4())


def utc_now():
    return datetime.now(timezone.utc).isoformat()


class Product:
    """A catalog entry. Stock is the only field touched by a sale."""
    FIELDS = ('id', 'name', 'category', 'price', 'stock',
              'low_stock_threshold', 'expiry_date', 'barcode')

    def __init__(self, name, price, stock=0, barcode='', category='',
                 low_stock_threshold=DEFAULT_LOW_STOCK_THRESHOLD,
                 expiry_date='', id=None):
        self.id = id
        self.name = name
        self.category = category or ''
        self.price = price
        self.stock = stock
        self.low_stock_threshold = low_stock_threshold
        self.expiry_date = expiry_date or ''
        self.barcode = barcode or ''

    @classmethod
    def from_dict(cls, data):
        return cls(**{k: data[k] for k in cls.FIELDS if k in data})

    @classmethod
    def from_row(cls, row):
        return cls.from_dict(dict(row))

    def to_dict(self):
        return {k: getattr(self, k) for k in self.FIELDS}

    def copy(self):
        return Product.from_dict(self.to_dict())

    @property
    def is_low_stock(self):
        return self.stock <= self.low_stock_threshold

    def __eq__(self, other):
        return isinstance(other, Product) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Product(id={self.id!r}, name={self.name!r}, stock={self.stock})"


class CartLineItem:
    """One line in the current cart; name and price are captured when added."""
    def __init__(self, product_id, name, quantity, price):
        self.product_id = product_id
        self.name = name
        self.quantity = quantity
        self.price = price

    @classmethod
    def for_product(cls, product: Product, quantity=1):
        return cls(product.id, product.name, quantity, product.price)

    @classmethod
    def from_dict(cls, data):
        return cls(data['product_id'], data['name'], data['quantity'], data['price'])

    @property
    def line_total(self):
        return self.price * self.quantity

    def copy(self):
        return CartLineItem(self.product_id, self.name, self.quantity, self.price)

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'name': self.name,
            'quantity': self.quantity,
            'price': self.price
        }

    def __eq__(self, other):
        return isinstance(other, CartLineItem) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"CartLineItem({self.name!r} x{self.quantity} @ {self.price})"


class DiscountSpec:
    """Discount as entered by the operator."""
    def __init__(self, value=0, type=FIXED):
        self.value = value
        self.type = type

    def __eq__(self, other):
        return (isinstance(other, DiscountSpec)
                and (self.value, self.type) == (other.value, other.type))

    def __repr__(self):
        return f"DiscountSpec(value={self.value!r}, type={self.type!r})"


class AppliedDiscount:
    """Discount actually granted on a sale, as handed to the committer."""
    def __init__(self, value, type, amount):
        self.value = value
        self.type = type
        self.amount = amount


class Sale:
    """
    Completed sale. Immutable once built: items are copies of the cart
    lines and every attribute is read-only.
    """
    FIELDS = ('id', 'date', 'items', 'subtotal', 'discount_amount',
              'discount_type', 'discount_value', 'tax_amount', 'total', 'user_id')

    def __init__(self, items, subtotal, tax_amount, total, user_id,
                 discount_amount=0.0, discount_type=None, discount_value=None,
                 id=None, date=None):
        values = {
            'id': id or new_id(),
            'date': date or utc_now(),
            'items': tuple(item.copy() for item in items),
            'subtotal': subtotal,
            'discount_amount': discount_amount or 0.0,
            'discount_type': discount_type,
            'discount_value': discount_value,
            'tax_amount': tax_amount,
            'total': total,
            'user_id': user_id,
        }
        for key, value in values.items():
            object.__setattr__(self, key, value)

    def __setattr__(self, key, value):
        raise AttributeError(f"Sale is immutable; cannot set {key!r}")

    def __delattr__(self, key):
        raise AttributeError(f"Sale is immutable; cannot delete {key!r}")

    @classmethod
    def from_dict(cls, data):
        items = [CartLineItem.from_dict(i) for i in data.get('items', [])]
        return cls(items=items,
                   subtotal=data['subtotal'],
                   tax_amount=data['tax_amount'],
                   total=data['total'],
                   user_id=data.get('user_id'),
                   discount_amount=data.get('discount_amount') or 0.0,
                   discount_type=data.get('discount_type'),
                   discount_value=data.get('discount_value'),
                   id=data['id'],
                   date=data['date'])

    def to_dict(self):
        data = {k: getattr(self, k) for k in self.FIELDS}
        data['items'] = [item.to_dict() for item in self.items]
        return data

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)

    @property
    def timestamp(self):
        return datetime.fromisoformat(self.date)

    def __eq__(self, other):
        return isinstance(other, Sale) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Sale(id={self.id!r}, total={self.total}, items={len(self.items)})"
