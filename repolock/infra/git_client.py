"""
Git client infrastructure for repolock.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import subprocess
from dataclasses import dataclass
from typing import Optional, List, Tuple
from pathlib import Path
import logging

from ..exit_codes import CloneError, CheckoutError, FetchError

logger = logging.getLogger(__name__)


@dataclass
class PullResult:
    """Result of git pull command."""
    head: str
    previous_head: str


class GitClient:
    """
    Abstraction over git commands.

    Query methods return None on failure; the operations repolock depends
    on (clone, checkout, pull) raise CloneError, CheckoutError or
    FetchError with the git output attached.

    Example:
        client = GitClient()
        client.clone("https://example.com/a.git", "repos/a")
        print(client.head("repos/a"))
    """

    def __init__(self, timeout: Optional[int] = None):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (None or 0: wait forever)
        """
        self.timeout = timeout or None

    def _run(
        self,
        args: List[str],
        cwd: Optional[str] = None,
        capture_stderr: bool = False
    ) -> Tuple[Optional[str], int]:
        """
        Run a git command.

        Args:
            args: Arguments following ``git``
            cwd: Working directory
            capture_stderr: Include stderr in output

        Returns:
            Tuple of (stdout, returncode)
        """
        cmd = ["git"] + args
        logger.debug(f"Running: {' '.join(cmd)} (cwd={cwd or '.'})")
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )

            output = result.stdout
            if capture_stderr and result.stderr:
                output += result.stderr

            return output.strip() if output else None, result.returncode

        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out after {self.timeout}s: {' '.join(cmd)}")
            return f"timed out after {self.timeout}s", -1
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            return str(e), -1

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git repository."""
        git_dir = Path(path) / ".git"
        return git_dir.exists()

    def head(self, path: str) -> Optional[str]:
        """Get the full hash of HEAD."""
        output, code = self._run(["rev-parse", "HEAD"], cwd=path)
        if code == 0 and output:
            return output.strip()
        return None

    def current_branch(self, path: str) -> Optional[str]:
        """Get current branch name, or None on a detached HEAD."""
        output, code = self._run(["symbolic-ref", "--quiet", "--short", "HEAD"], cwd=path)
        if code == 0 and output:
            return output.strip()
        return None

    def default_branch(self, path: str, remote: str = "origin") -> Optional[str]:
        """Get the branch the remote's HEAD points at (e.g. "main")."""
        output, code = self._run(
            ["symbolic-ref", "--quiet", "--short", f"refs/remotes/{remote}/HEAD"], cwd=path
        )
        if code == 0 and output:
            return output.strip().split("/", 1)[-1]
        return None

    def clone(self, url: str, path: str) -> str:
        """
        Clone a repository into path.

        Returns:
            Hash of the checked-out default branch head

        Raises:
            CloneError: If cloning fails or the clone has no HEAD
        """
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CloneError(f"Cannot create {Path(path).parent}: {e}", url=url, path=str(path)) from e

        output, code = self._run(["clone", "--", url, str(path)], capture_stderr=True)
        if code != 0:
            raise CloneError(f"Failed to clone {url}: {output or 'git clone failed'}",
                             url=url, path=str(path))

        head = self.head(path)
        if not head:
            raise CloneError(f"Cloned {url} but could not resolve HEAD", url=url, path=str(path))
        return head

    def checkout(self, path: str, revision: str) -> None:
        """
        Check out a revision as a detached HEAD.

        Raises:
            CheckoutError: If the revision is not available locally
        """
        output, code = self._run(["checkout", "--quiet", "--detach", "--end-of-options", revision],
                                 cwd=path, capture_stderr=True)
        if code != 0:
            raise CheckoutError(f"Failed to checkout {revision}: {output or 'git checkout failed'}",
                                path=str(path))

    def pull(self, path: str, remote: str = "origin") -> PullResult:
        """
        Fast-forward the current branch from remote.

        A checkout left on a detached HEAD is moved back to the remote's
        default branch first. A pull that finds nothing new is a success
        and leaves head equal to previous_head.

        Raises:
            FetchError: If path is not a repository or the pull fails
        """
        if not self.is_git_repo(path):
            raise FetchError(f"Not a git repository: {path}", path=str(path))

        previous = self.head(path)
        if not previous:
            raise FetchError(f"Could not resolve HEAD in {path}", path=str(path))

        if self.current_branch(path) is None:
            branch = self.default_branch(path, remote)
            if not branch:
                raise FetchError(f"HEAD is detached and {remote} has no default branch",
                                 path=str(path))
            logger.debug(f"Switching detached HEAD in {path} to {branch}")
            output, code = self._run(["checkout", "--quiet", branch], cwd=path,
                                     capture_stderr=True)
            if code != 0:
                raise FetchError(f"Failed to switch to {branch}: {output}", path=str(path))

        output, code = self._run(["pull", "--ff-only", remote], cwd=path,
                                 capture_stderr=True)
        if code != 0:
            raise FetchError(f"Failed to pull from {remote}: {output or 'git pull failed'}",
                             path=str(path))

        head = self.head(path)
        if not head:
            raise FetchError(f"Could not resolve HEAD in {path} after pull", path=str(path))

        return PullResult(head=head, previous_head=previous)
