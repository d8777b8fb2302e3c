"""
Record store infrastructure for repolock.

Reads and writes manifest/lock files with:
- Format chosen by suffix (YAML by default, JSON, TOML)
- Atomic writes (write to temp, then rename)
- Pretty formatting for human readability
- Automatic parent directory creation on write
"""

import json
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any, Dict
import logging

import toml
import yaml

from ..domain.record import RecordSet, RepositoryEntry
from ..exit_codes import RecordReadError, RecordWriteError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yaml', '.yml')
JSON_SUFFIXES = ('.json',)
TOML_SUFFIXES = ('.toml',)


def parse_record_set(data: Any, source: str = "<data>") -> RecordSet:
    """
    Build a RecordSet from decoded file content.

    Args:
        data: Decoded document (None for an empty file)
        source: Name used in error messages

    Raises:
        RecordReadError: If the document does not have the record shape
    """
    if data is None:
        return RecordSet()
    if not isinstance(data, dict):
        raise RecordReadError(f"{source}: expected a mapping at top level", path=source)

    base_directory = data.get('base_directory') or None
    if base_directory is not None and not isinstance(base_directory, str):
        raise RecordReadError(f"{source}: base_directory must be a string", path=source)

    raw_entries = data.get('repositories') or []
    if not isinstance(raw_entries, list):
        raise RecordReadError(f"{source}: repositories must be a list", path=source)

    entries = []
    for i, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            raise RecordReadError(f"{source}: repositories[{i}] must be a mapping", path=source)
        url = raw.get('url')
        if not isinstance(url, str) or not url.strip():
            raise RecordReadError(f"{source}: repositories[{i}] has no url", path=source)
        for key in ('directory', 'hash'):
            value = raw.get(key)
            if value is not None and not isinstance(value, str):
                raise RecordReadError(
                    f"{source}: repositories[{i}].{key} must be a string, got {value!r} "
                    f"(quote it, e.g. {key}: \"...\")",
                    url=url, path=source
                )
        unknown = set(raw) - {'url', 'directory', 'hash'}
        if unknown:
            logger.debug(f"{source}: ignoring unknown keys {sorted(unknown)} in {url}")
        entries.append(RepositoryEntry.from_dict(raw))

    return RecordSet(base_directory=base_directory, entries=tuple(entries))


class RecordStore:
    """
    Manifest/lock file persistence.

    Example:
        store = RecordStore(Path("repolock-lock.yaml"))
        if store.exists():
            lock = store.read()
        store.write(new_lock)
    """

    def __init__(self, path: Path):
        """
        Initialize RecordStore.

        Args:
            path: Path to the record file. The suffix picks the format.
        """
        self.path = Path(path).expanduser()

    @property
    def format(self) -> str:
        suffix = self.path.suffix.lower()
        if suffix in JSON_SUFFIXES:
            return 'json'
        if suffix in TOML_SUFFIXES:
            return 'toml'
        return 'yaml'

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> RecordSet:
        """
        Read the record file.

        Raises:
            RecordReadError: If the file is missing, unreadable or malformed
        """
        try:
            if self.format == 'toml':
                with open(self.path, 'rb') as f:
                    data = tomllib.load(f)
            else:
                with open(self.path, 'r', encoding='utf-8') as f:
                    if self.format == 'json':
                        text = f.read()
                        data = json.loads(text) if text.strip() else None
                    else:
                        data = yaml.safe_load(f)
        except FileNotFoundError:
            raise RecordReadError(f"File not found: {self.path}", path=str(self.path))
        except (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
            raise RecordReadError(f"Cannot parse {self.path}: {e}", path=str(self.path)) from e
        except OSError as e:
            raise RecordReadError(f"Cannot read {self.path}: {e}", path=str(self.path)) from e

        return parse_record_set(data, source=str(self.path))

    def dumps(self, record_set: RecordSet) -> str:
        """Serialize a record set in this store's format."""
        data: Dict[str, Any] = record_set.to_dict()
        if self.format == 'json':
            return json.dumps(data, indent=2, ensure_ascii=False) + '\n'
        if self.format == 'toml':
            return toml.dumps(data)
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False,
                              allow_unicode=True)

    def write(self, record_set: RecordSet) -> None:
        """
        Write the record file atomically, replacing any previous content.

        Raises:
            RecordWriteError: If the file cannot be written
        """
        try:
            content = self.dumps(record_set)
            if not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(content)
        except (OSError, yaml.YAMLError, TypeError) as e:
            raise RecordWriteError(f"Cannot write {self.path}: {e}", path=str(self.path)) from e
        logger.debug(f"Wrote {len(record_set)} entries to {self.path}")

    def _write_atomic(self, content: str) -> None:
        """Write content atomically using temp file and rename."""
        # Write to temp file in same directory
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)

            # Atomic rename
            os.replace(temp_path, self.path)

        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
