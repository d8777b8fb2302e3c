"""
Rendering functions for repolock output.

This module handles all pretty-printing and table formatting.
Core functions return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Dict, Any, Optional

console = Console()

ACTION_LABELS = {
    'cloned': ("Cloned", "green"),
    'present': ("Present", "cyan"),
    'pinned': ("Pinned", "blue"),
    'updated': ("Updated", "green"),
    'already_current': ("Up to date", "dim"),
    'skipped': ("Skipped (pinned)", "yellow"),
}


def short_hash(value: Optional[str], length: int = 12) -> str:
    if not value:
        return "-"
    return value[:length]


def render_sync_table(results: List[Dict[str, Any]], title: str = "Repositories",
                      summary: Optional[Dict[str, Any]] = None) -> None:
    """
    Render install/update results as a pretty table.

    Args:
        results: List of SyncResult dictionaries
        title: Table title
        summary: Optional summary dictionary shown below the table
    """
    if not results:
        console.print("[yellow]No repositories in the manifest.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Repository", style="cyan")
    table.add_column("Directory")
    table.add_column("Hash", style="bold")
    table.add_column("Status")

    for result in results:
        label, color = ACTION_LABELS.get(result.get('action', ''), (result.get('action', ''), "white"))
        hash_text = short_hash(result.get('hash'))
        if result.get('previous_hash'):
            hash_text = f"{short_hash(result['previous_hash'])} -> {hash_text}"
        table.add_row(
            result.get('url', ''),
            result.get('directory') or '',
            hash_text,
            f"[{color}]{label}[/{color}]",
        )

    console.print(table)

    if summary and summary.get('lock_file'):
        console.print(f"[dim]Lock written to {summary['lock_file']}[/dim]")
