"""
Shared body of the 'install' and 'update' commands.

Core logic lives in LockService; this module turns its results into
streamed dictionaries or a table.
"""

import sys
from typing import Any, Dict, Generator, Optional

from ..config import Settings, configure_logging, load_config
from ..render import render_sync_table
from ..services.lock_service import LockService


def run_lock_command(mode: str, manifest: Optional[str], lock: Optional[str],
                     base_dir: Optional[str], table: Optional[bool],
                     verbose: bool = False) -> Generator[Dict[str, Any], None, None]:
    """
    Run install or update and yield one dictionary per repository.

    The summary is yielded last. In table mode nothing is yielded and a
    table is rendered once the run has finished.
    """
    config = load_config()
    configure_logging(config, verbose=verbose)

    settings = Settings.from_config(config, manifest=manifest, lock=lock, base_dir=base_dir)
    service = LockService(settings)

    # Auto-detect table mode if not specified
    if table is None:
        table = sys.stdout.isatty()

    rows = []
    for result in service.run(mode):
        if table:
            rows.append(result.to_dict())
        else:
            yield result.to_dict()

    summary = service.last_result.to_dict()
    if table:
        render_sync_table(rows, title=f"repolock {mode}", summary=summary)
    else:
        yield summary
