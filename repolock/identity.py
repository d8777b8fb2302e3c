"""
Local directory names for repositories.
"""
import posixpath
import re
from urllib.parse import urlparse

from .domain.record import RepositoryEntry
from .exit_codes import InvalidURL

VCS_SUFFIX = ".git"

# scp-like SSH: git@github.com:owner/repo.git
SCP_LIKE = re.compile(r"^(?:[^@/:]+@)?[^@/:]+:(?!//)(.*)$")
CONTROL_CHARS = re.compile(r"[\x00-\x20\x7f]")


def directory_from_url(url: str) -> str:
    """
    Derive a directory name from a repository URL.

    Takes the last segment of the URL path and strips a trailing ``.git``.
    Handles HTTPS, SSH, file URLs, scp-like SSH and plain paths.

    Raises:
        InvalidURL: If the URL cannot be parsed or has no usable last segment
    """
    if not url or CONTROL_CHARS.search(url):
        raise InvalidURL(f"Invalid repository URL: {url!r}", url=url)

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidURL(f"Invalid repository URL: {url!r}: {e}", url=url) from e

    path = parsed.path
    if not parsed.scheme or len(parsed.scheme) == 1:
        # No scheme (or a Windows drive letter): maybe scp-like
        match = SCP_LIKE.match(url)
        if match and not parsed.netloc:
            path = match.group(1)

    name = posixpath.basename(path.strip("/"))
    if name.endswith(VCS_SUFFIX):
        name = name[:-len(VCS_SUFFIX)]

    if name in ("", ".", ".."):
        raise InvalidURL(f"Cannot derive a directory name from {url!r}", url=url)
    return name


def resolve_directory(entry: RepositoryEntry) -> str:
    """Return the entry's directory, deriving it from the URL when unset."""
    if entry.directory:
        return entry.directory
    return directory_from_url(entry.url)
