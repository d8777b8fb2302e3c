"""
Domain layer for repolock.

Contains pure domain objects with no I/O or side effects:
- RepositoryEntry / RecordSet: manifest and lock records
- SyncResult / OperationSummary: what an install or update run did

These objects are immutable where possible and provide
serialization methods for JSONL output.
"""

from .record import RepositoryEntry, RecordSet
from .operation import SyncAction, SyncResult, OperationSummary

__all__ = [
    'RepositoryEntry',
    'RecordSet',
    'SyncAction',
    'SyncResult',
    'OperationSummary',
]
