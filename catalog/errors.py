class CatalogError(Exception):
    """Base class for catalog service errors."""


class InvalidInput(CatalogError):
    """Raised when a request body or parameter is malformed."""


class ProductNotFound(CatalogError):
    """Raised when no product matches the requested id."""

    def __init__(self, product_id=None):
        super().__init__("Product not found")
        self.product_id = product_id


class StoreUnavailable(CatalogError):
    """Raised when the database or the object store cannot complete a call."""

    def __init__(self, message="A storage error occurred.", original_exception=None):
        super().__init__(message)
        self.original_exception = original_exception
