"""
Service layer for repolock.

Contains business logic that orchestrates domain objects and infrastructure:
- merge: Manifest/lock reconciliation
- Synchronizer: Clone, pin and pull a single repository
- LockService: The install and update workflows

Services are the primary API for commands to use.
They handle coordination between infrastructure and domain layers.
"""

from .reconciler import merge, index_by_url
from .synchronizer import Synchronizer, AdvanceResult
from .lock_service import LockService

__all__ = [
    'merge',
    'index_by_url',
    'Synchronizer',
    'AdvanceResult',
    'LockService',
]
