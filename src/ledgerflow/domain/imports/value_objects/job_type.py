"""Import job type enumeration."""

from enum import Enum


class JobType(Enum):
    """Where the records of an import job come from."""

    PROVIDER_SYNC = "provider_sync"
    BULK_UPLOAD = "bulk_upload"
