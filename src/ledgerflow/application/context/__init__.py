"""Request-scoped application context."""

from ledgerflow.application.context.user_context import UserContext

__all__ = [
    "UserContext",
]
