"""
repolock - Clone a manifest of git repositories and lock their revisions.

A manifest declares repositories (URL, optional directory, optional
pinned hash). `install` clones them and writes a lock file with the exact
hash of each; `update` pulls the unpinned ones and rewrites the lock.

Quick Start:
    from repolock import LockService, Settings, load_config

    settings = Settings.from_config(load_config(), manifest="deps.yaml")
    service = LockService(settings)

    for result in service.install():
        print(result.url, result.directory, result.hash)

    # Later: pull everything that isn't pinned
    for result in service.update():
        print(result.url, result.action.value)

Domain Objects:
    RepositoryEntry - One repository (url, directory, hash)
    RecordSet - A manifest or a lock
    SyncResult - What happened to one repository in a run

Services:
    merge - Reconcile a manifest with an existing lock
    Synchronizer - Clone, pin and pull one repository
    LockService - The install and update workflows
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    RepositoryEntry,
    RecordSet,
    SyncAction,
    SyncResult,
    OperationSummary,
)

# Services
from .services import (
    merge,
    Synchronizer,
    LockService,
)

from .identity import resolve_directory
from .infra import GitClient, RecordStore

# Configuration
from .config import load_config, Settings

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "RepositoryEntry",
    "RecordSet",
    "SyncAction",
    "SyncResult",
    "OperationSummary",
    # Services
    "merge",
    "Synchronizer",
    "LockService",
    "resolve_directory",
    # Infrastructure
    "GitClient",
    "RecordStore",
    # Configuration
    "load_config",
    "Settings",
]
