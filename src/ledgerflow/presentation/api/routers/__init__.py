from ledgerflow.presentation.api.routers.imports import router as imports_router
from ledgerflow.presentation.api.routers.webhooks import router as webhooks_router

__all__ = [
    "imports_router",
    "webhooks_router",
]
