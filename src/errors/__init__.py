"""Error types for PrintPalooza.

Domain exceptions raised by the service layer and translated to HTTP
status codes by the API routes:
- NotFoundError -> 404
- ValidationError -> 400
- ConflictError -> 409
- WebhookSignatureError -> 401
- EmailProviderError -> logged; never surfaced on the webhook path
"""

from src.errors.domain import (
    ConflictError,
    DomainError,
    DuplicateOrderError,
    EmailProviderError,
    NotFoundError,
    ValidationError,
    WebhookSignatureError,
)

__all__ = [
    "DomainError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "DuplicateOrderError",
    "EmailProviderError",
    "WebhookSignatureError",
]
