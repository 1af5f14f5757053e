"""FastAPI route modules.

Exports all route modules for inclusion in the main application.
"""

from src.api.routes import admin, orders, webhooks

__all__ = [
    "admin",
    "orders",
    "webhooks",
]
