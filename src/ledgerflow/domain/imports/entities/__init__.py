"""Import domain entities."""

from ledgerflow.domain.imports.entities.import_job import ImportJob

__all__ = [
    "ImportJob",
]
