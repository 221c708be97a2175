"""Query layer. Read-only operations for retrieving data."""

from ledgerflow.application.queries.imports import (
    GetImportJobQuery,
    ListImportJobsQuery,
)

__all__ = [
    "GetImportJobQuery",
    "ListImportJobsQuery",
]
