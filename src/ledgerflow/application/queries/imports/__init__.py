"""Import queries."""

from ledgerflow.application.queries.imports.import_job_status_query import (
    GetImportJobQuery,
    ListImportJobsQuery,
)

__all__ = [
    "GetImportJobQuery",
    "ListImportJobsQuery",
]
