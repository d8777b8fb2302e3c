"""
Record domain objects for repolock.

A manifest and a lock share one shape: an optional base directory and an
ordered list of repository entries. Both are immutable; to "change" an
entry create a new one.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple, Iterable


def _unset_if_empty(value: Optional[str]) -> Optional[str]:
    """Normalise an optional string field: empty or missing means unset."""
    return value or None


@dataclass(frozen=True)
class RepositoryEntry:
    """
    One tracked repository.

    url is the identity of the entry within a record set. A directory of
    None means "derive from the URL"; a hash of None means "track the
    latest commit". A hash present in the manifest pins the entry.
    """
    url: str
    directory: Optional[str] = None
    hash: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RepositoryEntry':
        return cls(
            url=str(data['url']),
            directory=_unset_if_empty(data.get('directory')),
            hash=_unset_if_empty(data.get('hash')),
        )

    @property
    def is_pinned(self) -> bool:
        return bool(self.hash)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, leaving out unset fields."""
        result = {
            'url': self.url,
            'directory': self.directory,
            'hash': self.hash,
        }
        return {k: v for k, v in result.items() if v is not None}

    def __str__(self) -> str:
        if self.hash:
            return f"{self.url}@{self.hash}"
        return self.url


@dataclass(frozen=True)
class RecordSet:
    """
    A manifest or a lock.

    Entry order is significant: it is the processing order and the order
    written to the lock.
    """
    base_directory: Optional[str] = None
    entries: Tuple[RepositoryEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_entries(cls, entries: Iterable[RepositoryEntry],
                     base_directory: Optional[str] = None) -> 'RecordSet':
        return cls(base_directory=base_directory, entries=tuple(entries))

    def urls(self) -> Tuple[str, ...]:
        return tuple(entry.url for entry in self.entries)

    def duplicate_urls(self) -> Tuple[str, ...]:
        """URLs that appear more than once, in first-seen order."""
        seen = set()
        duplicates = []
        for url in self.urls():
            if url in seen and url not in duplicates:
                duplicates.append(url)
            seen.add(url)
        return tuple(duplicates)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.base_directory:
            result['base_directory'] = self.base_directory
        result['repositories'] = [entry.to_dict() for entry in self.entries]
        return result

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)
