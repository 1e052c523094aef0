# errors.py
"""
Failure signals returned by the POS core.

Cart, catalog and checkout operations report expected operator mistakes
(unknown barcode, not enough stock, duplicate names...) through a Result
instead of raising, so the caller can show a message and carry on.
"""


class POSError(Exception):
    """Base class for every failure the core can signal."""
    category = "error"
    code = "error"

    def __init__(self, message=None, **details):
        self.message = message or self.__class__.__doc__.strip()
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        return {
            'category': self.category,
            'code': self.code,
            'message': self.message,
            **self.details
        }


# Validation
class ValidationError(POSError):
    """Invalid input."""
    category = "validation"
    code = "invalid"


class DuplicateName(ValidationError):
    """A product with this name already exists."""
    code = "product_name_exists"


class DuplicateBarcode(ValidationError):
    """A product with this barcode already exists."""
    code = "barcode_exists"


class InvalidBarcode(ValidationError):
    """Barcode must be 8 to 13 digits."""
    code = "barcode_length_error"


class InvalidProduct(ValidationError):
    """Product data is invalid."""
    code = "invalid_product"


class InvalidDiscount(ValidationError):
    """Discount is invalid."""
    code = "invalid_discount"


class EmptyCart(ValidationError):
    """Cart is empty."""
    code = "cart_empty"


class CartClosed(ValidationError):
    """This cart has already been committed."""
    code = "cart_closed"


# Stock
class StockError(POSError):
    """Stock limit violated."""
    category = "stock"
    code = "stock"


class OutOfStock(StockError):
    """Product is out of stock."""
    code = "out_of_stock"


class StockLimitReached(StockError):
    """No more stock available for this product."""
    code = "stock_limit_reached"


class MaxStockInCartReached(StockError):
    """The cart already holds all available stock of this product."""
    code = "max_stock_in_cart"


class ExceedsStock(StockError):
    """Requested quantity exceeds available stock."""
    code = "exceeds_stock"


# Commit
class CommitError(POSError):
    """Sale could not be completed."""
    category = "commit"
    code = "commit"


class InsufficientStock(CommitError):
    """Insufficient stock."""
    code = "insufficient_stock"

    def __init__(self, product_names, message=None):
        self.product_names = list(product_names)
        if message is None:
            message = ("Sale cannot be completed. Insufficient stock for: "
                       + ", ".join(self.product_names))
        super().__init__(message, product_names=self.product_names)


# Lookup
class NotFoundError(POSError):
    """Not found."""
    category = "not_found"
    code = "not_found"


class ProductNotFound(NotFoundError):
    """Product not found."""
    code = "product_not_found"


class LineItemNotFound(NotFoundError):
    """Product is not in the cart."""
    code = "line_not_found"


class Result:
    """Outcome of a core operation: either a value or a POSError."""
    __slots__ = ('value', 'error')

    def __init__(self, value=None, error: POSError = None):
        self.value = value
        self.error = error

    @classmethod
    def success(cls, value=None):
        return cls(value=value)

    @classmethod
    def failure(cls, error: POSError):
        return cls(error=error)

    @property
    def ok(self):
        return self.error is None

    def __bool__(self):
        return self.ok

    def unwrap(self):
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value

    def __repr__(self):
        if self.ok:
            return f"Result.success({self.value!r})"
        return f"Result.failure({self.error.__class__.__name__}: {self.error.message})"
