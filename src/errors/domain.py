"""Typed domain exceptions for API error mapping.

These exceptions provide stronger API contract guarantees than
string-based error message matching. Routes catch specific exception
types to return appropriate HTTP status codes.

Usage:
    # In service layer
    raise NotFoundError("Order", order_id)

    # In route handler
    try:
        order = service.get_order(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class NotFoundError(DomainError):
    """Resource was not found. Maps to HTTP 404."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier


class ConflictError(DomainError):
    """Resource conflict (e.g., duplicate). Maps to HTTP 409."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ValidationError(DomainError):
    """Validation failure. Maps to HTTP 400."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class DuplicateOrderError(ConflictError):
    """Order id already exists. Maps to HTTP 409."""

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order '{order_id}' already exists")
        self.order_id = order_id


class EmailProviderError(DomainError):
    """Email provider API call failed (transport error or non-2xx).

    Attributes:
        status_code: HTTP status from the provider, None for transport errors.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WebhookSignatureError(DomainError):
    """Webhook delivery failed authentication. Maps to HTTP 401."""

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message)
