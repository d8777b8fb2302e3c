"""
Infrastructure layer for repolock.

Contains abstractions for external systems:
- GitClient: Git command execution (the VCS backend)
- RecordStore: manifest/lock file persistence

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, PullResult
from .record_store import RecordStore, parse_record_set

__all__ = [
    'GitClient',
    'PullResult',
    'RecordStore',
    'parse_record_set',
]
