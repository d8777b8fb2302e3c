"""
Handles the 'update' command: pull unpinned repositories and rewrite the
lock file.
"""

import click

from ..cli_utils import standard_command, add_common_options
from .common import run_lock_command


@click.command("update")
@add_common_options('manifest', 'lock', 'base_dir', 'table', 'format', 'verbose', 'quiet')
@standard_command
def update_handler(manifest, lock, base_dir, table, format, verbose, quiet, **kwargs):
    """
    Pull the latest commits for unpinned repositories and rewrite the lock.

    Requires a lock file from a previous install. Repositories pinned in
    the manifest are left alone and keep their pinned hash.

    Examples:

    \b
        repolock update
        repolock update --table
        repolock update -f json
    """
    return run_lock_command("update", manifest, lock, base_dir, table, verbose)
