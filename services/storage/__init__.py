"""
Storage Module

Postgres record store + local upload storage
"""

from .db_store import PolicyStore, get_db_url
from .file_store import FileStore, file_extension, get_upload_dir
from .records import (
    STATUS_ORDER,
    AnalysisRecord,
    CustomerRecord,
    PolicyRecord,
    PolicyRepository,
    PolicyStatus,
    RecordNotFoundError,
    WordingAlreadyAssignedError,
    WordingRecord,
    advance_status,
)

__all__ = [
    # DB
    "PolicyStore",
    "get_db_url",
    # Files
    "FileStore",
    "file_extension",
    "get_upload_dir",
    # Records
    "STATUS_ORDER",
    "AnalysisRecord",
    "CustomerRecord",
    "PolicyRecord",
    "PolicyRepository",
    "PolicyStatus",
    "RecordNotFoundError",
    "WordingAlreadyAssignedError",
    "WordingRecord",
    "advance_status",
]
