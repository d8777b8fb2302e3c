"""
Operation result domain objects for repolock.

Provides the per-entry result of an install or update run and a summary
of the whole run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from .record import RecordSet


class SyncAction(Enum):
    """What happened to one repository during a run."""
    CLONED = "cloned"                    # fresh clone, head recorded
    PRESENT = "present"                  # checkout already existed, head recorded
    PINNED = "pinned"                    # pinned hash checked out
    UPDATED = "updated"                  # pull moved the head
    ALREADY_CURRENT = "already_current"  # pull found nothing new
    SKIPPED = "skipped"                  # pinned entry left alone by update


@dataclass
class SyncResult:
    """
    Result of processing one repository entry.

    Used to report progress of install/update runs entry by entry.
    """
    url: str
    directory: Optional[str]
    path: Optional[str]
    action: SyncAction
    hash: Optional[str] = None
    previous_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'url': self.url,
            'directory': self.directory,
            'path': self.path,
            'action': self.action.value,
            'hash': self.hash,
        }
        if self.previous_hash and self.previous_hash != self.hash:
            result['previous_hash'] = self.previous_hash
        return result


@dataclass
class OperationSummary:
    """
    Summary of an install or update run.

    lock is set once the run has completed and the lock was written.
    """
    operation: str  # "install" or "update"
    lock_path: Optional[str] = None
    details: List[SyncResult] = field(default_factory=list)
    lock: Optional[RecordSet] = None

    def add_detail(self, detail: SyncResult) -> None:
        self.details.append(detail)

    def count(self, action: SyncAction) -> int:
        return sum(1 for d in self.details if d.action == action)

    @property
    def total(self) -> int:
        return len(self.details)

    @property
    def completed(self) -> bool:
        return self.lock is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            'type': 'summary',
            'operation': self.operation,
            'total': self.total,
        }
        for action in SyncAction:
            result[action.value] = self.count(action)
        if self.lock_path:
            result['lock_file'] = self.lock_path
        return result
