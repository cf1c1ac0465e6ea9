"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is missing or invalid; nothing was written"""

    pass


class MissingFieldsError(ValidationError):
    """One or more required fields were not supplied"""

    def __init__(self, *fields: str):
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}")


class InvalidProductError(ValidationError):
    """A line item has a non-positive quantity or price"""

    pass


class NotFoundOrUnauthorized(DomainException):
    """Record is absent or not owned by the requesting user"""

    pass


class ProductNotFoundError(NotFoundOrUnauthorized):
    """Referenced stock item does not exist for this owner"""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product with ID {product_id} not found in stock")


class InsufficientStockError(DomainException):
    """Not enough items on hand to satisfy a reservation"""

    def __init__(self, product_id: int, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product ID {product_id}. "
            f"Available: {available} items, requested: {requested}"
        )


class InternalStorageError(DomainException):
    """Transaction or connection failure in the persistent store"""

    pass


class StockInUseError(DomainException):
    """Stock item is still referenced by credit lines or sales"""

    def __init__(self, product_id: int, credit_lines: int, sale_items: int):
        self.product_id = product_id
        self.credit_lines = credit_lines
        self.sale_items = sale_items
        super().__init__(
            f"Product ID {product_id} is referenced by {credit_lines} credit line(s) "
            f"and {sale_items} sale item(s)"
        )


class SupplierInUseError(DomainException):
    """Supplier is still referenced by stock items or orders"""

    def __init__(self, supplier_id: int, stock_items: int, orders: int):
        self.supplier_id = supplier_id
        self.stock_items = stock_items
        self.orders = orders
        super().__init__(
            f"Supplier ID {supplier_id} is referenced by {stock_items} stock item(s) "
            f"and {orders} order(s)"
        )
