from __future__ import annotations


class SaleError(Exception):
    """Base class for every failure the sales engine reports."""


class ValidationError(SaleError):
    """Bad input caught before any request is sent."""


class EmptyCartError(ValidationError):
    def __init__(self, message: str = "Cart is empty") -> None:
        super().__init__(message)


class NoValidProductsError(EmptyCartError):
    def __init__(self, message: str = "No valid products found in draft") -> None:
        super().__init__(message)


class InsufficientStockError(SaleError):
    def __init__(self, product_name: str, requested: float, available: float) -> None:
        super().__init__(
            f"Not enough stock for {product_name!r}: requested={requested} available={available}"
        )
        self.product_name = product_name
        self.requested = requested
        self.available = available


class IdentityError(SaleError):
    """The bearer credential cannot yield an actor id."""


class MalformedTokenError(IdentityError):
    pass


class MissingClaimError(IdentityError):
    def __init__(self, claim: str) -> None:
        super().__init__(f"Token payload has no {claim!r} claim")
        self.claim = claim


class BackendError(SaleError):
    """Base class for failures that originate from the catalog backend."""


class AuthError(BackendError):
    def __init__(self, message: str = "Session expired. Please sign in again.") -> None:
        super().__init__(message)


class NetworkError(BackendError):
    pass


class ServerError(BackendError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(ServerError):
    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status_code=404)


class ForbiddenError(ServerError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=403)


class ConfirmationBusyError(SaleError):
    def __init__(self) -> None:
        super().__init__("A confirmation is already being committed")


class OperationInProgressError(SaleError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Operation already in progress: {operation}")
        self.operation = operation
