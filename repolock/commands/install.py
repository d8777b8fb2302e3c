"""
Handles the 'install' command: clone the manifest's repositories and
write the lock file.
"""

import click

from ..cli_utils import standard_command, add_common_options
from .common import run_lock_command


@click.command("install")
@add_common_options('manifest', 'lock', 'base_dir', 'table', 'format', 'verbose', 'quiet')
@standard_command
def install_handler(manifest, lock, base_dir, table, format, verbose, quiet, **kwargs):
    """
    Clone every repository in the manifest and write the lock file.

    Repositories already recorded in the lock are restored to their locked
    hash. Repositories pinned in the manifest are checked out at the pin.
    Everything else records the head it was cloned at.

    \b
    Output format:
    - Interactive terminal: Table format by default
    - Piped/redirected: JSONL streaming by default

    Examples:

    \b
        repolock install
        repolock install --manifest deps.yaml --lock deps-lock.yaml
        repolock install --base-dir third_party
    """
    return run_lock_command("install", manifest, lock, base_dir, table, verbose)
