"""
Manifest/lock reconciliation for repolock.

The manifest decides which repositories are tracked and in what order;
the lock decides what they resolved to last time.
"""

import logging
from typing import Dict

from ..domain.record import RecordSet, RepositoryEntry

logger = logging.getLogger(__name__)


def index_by_url(record_set: RecordSet) -> Dict[str, RepositoryEntry]:
    """Map URL to entry; when a URL repeats, the last entry wins."""
    index: Dict[str, RepositoryEntry] = {}
    for entry in record_set.entries:
        index[entry.url] = entry
    return index


def merge(manifest: RecordSet, lock: RecordSet) -> RecordSet:
    """
    Merge a manifest with a previously written lock.

    For every manifest entry, in manifest order, a lock entry with the same
    URL replaces it entirely (its directory and hash win, even when the
    manifest has since changed them). Manifest entries the lock does not
    know are kept as they are. Lock entries the manifest no longer declares
    are dropped. The base directory always comes from the manifest.

    Neither input is modified.
    """
    locked = index_by_url(lock)
    entries = []
    for entry in manifest.entries:
        previous = locked.get(entry.url)
        if previous is None:
            entries.append(entry)
            continue
        if previous != entry:
            logger.debug(f"Using locked state for {entry.url}: {previous}")
        entries.append(previous)

    dropped = set(locked) - set(manifest.urls())
    for url in sorted(dropped):
        logger.info(f"Dropping {url}: no longer in the manifest")

    return RecordSet(base_directory=manifest.base_directory, entries=tuple(entries))
