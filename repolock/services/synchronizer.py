"""
Per-repository synchronization for repolock.

Drives the clone, checkout and pull steps for one entry against the git
backend. Every failure is raised; there is no retry.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from ..exit_codes import CloneError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdvanceResult:
    """Outcome of pulling a tracked repository."""
    hash: str
    previous_hash: str

    @property
    def already_current(self) -> bool:
        return self.hash == self.previous_hash


class Synchronizer:
    """
    Clone, pin and advance repositories on disk.

    Example:
        sync = Synchronizer(GitClient())
        head, cloned = sync.ensure_present(Path("repos/a"), "https://example.com/a.git")
        sync.pin(Path("repos/a"), "0123abcd")
    """

    def __init__(self, git_client: Optional[GitClient] = None, remote: str = "origin"):
        self.git = git_client or GitClient()
        self.remote = remote

    def ensure_present(self, path: Path, url: str) -> Tuple[str, bool]:
        """
        Make sure a checkout of url exists at path.

        Clones when path holds no checkout yet. An existing checkout is
        left untouched.

        Returns:
            Tuple of (head hash, whether a clone happened)

        Raises:
            CloneError: If the clone fails or the existing checkout has no HEAD
        """
        if self.git.is_git_repo(str(path)):
            head = self.git.head(str(path))
            if not head:
                raise CloneError(f"Existing checkout at {path} has no HEAD", url=url, path=str(path))
            logger.info(f"{url} already present at {path}")
            return head, False

        logger.info(f"Cloning {url} to {path}")
        head = self.git.clone(url, str(path))
        return head, True

    def pin(self, path: Path, hash: str) -> None:
        """
        Check out hash in the working tree at path.

        Raises:
            CheckoutError: If hash is not available locally
        """
        logger.info(f"Checking out {hash} in {path}")
        self.git.checkout(str(path), hash)

    def advance(self, path: Path) -> AdvanceResult:
        """
        Pull the tracking branch from the remote.

        Already being at the remote's latest commit is a success.

        Raises:
            FetchError: If the pull fails
        """
        logger.info(f"Pulling {self.remote} in {path}")
        result = self.git.pull(str(path), remote=self.remote)
        return AdvanceResult(hash=result.head, previous_hash=result.previous_head)
