"""
Install and update workflows for repolock.

Combines the record store, reconciler, identity resolver and synchronizer
into the two top-level runs. Both process entries one at a time, in order,
and stop at the first error; the lock file is only written once every
entry has been processed.
"""

import logging
from typing import Dict, Generator, List, Optional

from ..config import Settings
from ..domain.operation import OperationSummary, SyncAction, SyncResult
from ..domain.record import RecordSet, RepositoryEntry
from ..exit_codes import RecordReadError
from ..identity import resolve_directory
from ..infra.git_client import GitClient
from ..infra.record_store import RecordStore
from .reconciler import index_by_url, merge
from .synchronizer import Synchronizer

logger = logging.getLogger(__name__)


class LockService:
    """
    Runs install and update against a manifest and a lock file.

    Both runs are generators yielding one SyncResult per entry and
    returning the OperationSummary; the summary is also kept in
    last_result.

    Example:
        service = LockService(Settings.from_config(load_config()))
        for result in service.install():
            print(result.url, result.hash)
        print(service.last_result.lock_path)
    """

    def __init__(
        self,
        settings: Settings,
        git_client: Optional[GitClient] = None,
        manifest_store: Optional[RecordStore] = None,
        lock_store: Optional[RecordStore] = None,
    ):
        """
        Initialize LockService.

        Args:
            settings: Paths, base directory and git options for the run
            git_client: GitClient instance (creates new if None)
            manifest_store: Store for the manifest (defaults to settings path)
            lock_store: Store for the lock (defaults to settings path)
        """
        self.settings = settings
        self.git = git_client or GitClient(timeout=settings.git_timeout)
        self.sync = Synchronizer(self.git, remote=settings.remote)
        self.manifest_store = manifest_store or RecordStore(settings.manifest_path)
        self.lock_store = lock_store or RecordStore(settings.lock_path)
        self.last_result: Optional[OperationSummary] = None

    def read_manifest(self) -> RecordSet:
        """
        Read the manifest.

        Raises:
            RecordReadError: If it is missing, malformed or repeats a URL
        """
        if not self.manifest_store.exists():
            raise RecordReadError(f"Manifest not found: {self.manifest_store.path}",
                                  path=str(self.manifest_store.path))
        manifest = self.manifest_store.read()
        duplicates = manifest.duplicate_urls()
        if duplicates:
            raise RecordReadError(
                f"Manifest {self.manifest_store.path} lists a repository more than once: "
                f"{', '.join(duplicates)}",
                url=duplicates[0], path=str(self.manifest_store.path)
            )
        return manifest

    def install(self) -> Generator[SyncResult, None, OperationSummary]:
        """
        Clone every manifest repository and write the lock.

        Entries the existing lock already resolved are restored to their
        locked hash; new entries record the head they were cloned at.

        Yields:
            SyncResult for each entry

        Returns:
            OperationSummary with the written lock
        """
        summary = OperationSummary(operation="install")
        self.last_result = summary

        manifest = self.read_manifest()
        logger.info(f"Installing repositories from {self.manifest_store.path}")

        locked: Dict[str, RepositoryEntry] = {}
        if self.lock_store.exists():
            logger.info(f"Reconciling with lock {self.lock_store.path}")
            existing = self.lock_store.read()
            locked = index_by_url(existing)
            working = merge(manifest, existing)
        else:
            working = manifest

        base_dir = self.settings.base_dir_for(working.base_directory)
        resolved: List[RepositoryEntry] = []

        for entry in working.entries:
            directory = resolve_directory(entry)
            path = base_dir / directory

            head, cloned = self.sync.ensure_present(path, entry.url)
            if entry.is_pinned:
                self.sync.pin(path, entry.hash)
                logger.info(f"Checked out {entry.url} at {entry.hash}")
                final_hash = entry.hash
                action = SyncAction.PINNED
            else:
                final_hash = head
                action = SyncAction.CLONED if cloned else SyncAction.PRESENT

            previous = locked.get(entry.url)
            resolved.append(RepositoryEntry(url=entry.url, directory=directory, hash=final_hash))
            result = SyncResult(
                url=entry.url,
                directory=directory,
                path=str(path),
                action=action,
                hash=final_hash,
                previous_hash=previous.hash if previous else None,
            )
            summary.add_detail(result)
            yield result

        lock = RecordSet.from_entries(resolved, base_directory=working.base_directory)
        self._write_lock(lock, summary)
        return summary

    def update(self) -> Generator[SyncResult, None, OperationSummary]:
        """
        Pull every unpinned manifest repository and rewrite the lock.

        Entries with a hash in the manifest are skipped but still carried
        into the new lock, keeping their previously locked directory.

        Yields:
            SyncResult for each entry

        Returns:
            OperationSummary with the written lock
        """
        summary = OperationSummary(operation="update")
        self.last_result = summary

        manifest = self.read_manifest()
        if not self.lock_store.exists():
            raise RecordReadError(
                f"Lock file not found: {self.lock_store.path} (run 'repolock install' first)",
                path=str(self.lock_store.path)
            )
        locked = index_by_url(self.lock_store.read())
        logger.info(f"Updating repositories from {self.manifest_store.path}")

        base_dir = self.settings.base_dir_for(manifest.base_directory)
        resolved: List[RepositoryEntry] = []

        for entry in manifest.entries:
            previous = locked.get(entry.url)
            # The old lock remembers where the entry was installed
            current = previous or entry

            if entry.is_pinned:
                logger.info(f"Skipping as the repository {entry.url} is locked at {entry.hash}")
                # Skipped entries never need their URL parsed
                directory = current.directory or entry.directory
                resolved.append(RepositoryEntry(url=entry.url, directory=directory, hash=entry.hash))
                result = SyncResult(
                    url=entry.url,
                    directory=directory,
                    path=str(base_dir / directory) if directory else None,
                    action=SyncAction.SKIPPED,
                    hash=entry.hash,
                    previous_hash=previous.hash if previous else None,
                )
            else:
                directory = resolve_directory(current)
                path = base_dir / directory
                advanced = self.sync.advance(path)
                if advanced.already_current:
                    logger.info(f"{entry.url} already up to date at {advanced.hash}")
                    action = SyncAction.ALREADY_CURRENT
                else:
                    logger.info(f"Updated {entry.url} to {advanced.hash}")
                    action = SyncAction.UPDATED
                resolved.append(RepositoryEntry(url=entry.url, directory=directory, hash=advanced.hash))
                result = SyncResult(
                    url=entry.url,
                    directory=directory,
                    path=str(path),
                    action=action,
                    hash=advanced.hash,
                    previous_hash=advanced.previous_hash,
                )

            summary.add_detail(result)
            yield result

        lock = RecordSet.from_entries(resolved, base_directory=manifest.base_directory)
        self._write_lock(lock, summary)
        return summary

    def _write_lock(self, lock: RecordSet, summary: OperationSummary) -> None:
        self.lock_store.write(lock)
        summary.lock = lock
        summary.lock_path = str(self.lock_store.path)
        logger.info(f"Wrote {len(lock)} repositories to {self.lock_store.path}")

    def run(self, mode: str) -> Generator[SyncResult, None, OperationSummary]:
        """Dispatch to install or update by name."""
        if mode == "install":
            return self.install()
        if mode == "update":
            return self.update()
        raise ValueError(f"Unknown mode: {mode}")

