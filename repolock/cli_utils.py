"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Generator
from .config import logger
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError, RepolockError
)
from .format_utils import FORMATS, format_output, get_format_from_env


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Diagnostics logged on stderr
    - Clean JSONL/JSON/YAML output on stdout
    - --quiet/-q to suppress data output
    - One place where errors become exit codes

    The wrapped command returns a generator of dictionaries (or None when
    it renders its own output).
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        quiet = kwargs.get('quiet', False)
        output_format = kwargs.get('format', None)

        # Get format from env if not specified
        if output_format is None:
            output_format = get_format_from_env('jsonl')

        try:
            result = func(*args, **kwargs)

            if quiet:
                # In quiet mode, consume the generator but don't output
                if isinstance(result, Generator):
                    for _ in result:
                        pass
            elif isinstance(result, Generator):
                for line in format_output(result, output_format):
                    print(line, flush=True)

            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            logger.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            # Our errors carry their exit code and the entry that failed
            context = e.context() if isinstance(e, RepolockError) else {}
            where = " ".join(f"{k}={v}" for k, v in context.items())
            logger.error(f"{e}" + (f" ({where})" if where else ""))
            if not quiet:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__,
                    "exit_code": e.exit_code,
                }
                error_obj.update(context)
                print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            if not quiet:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__
                }
                print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            # Exit with appropriate code
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


# Standard options that many commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                           help='Log every git command (DEBUG level)'),
    'quiet': click.option('-q', '--quiet', is_flag=True,
                         help='Suppress data output, show only diagnostics'),
    'format': click.option('-f', '--format',
                         type=click.Choice(list(FORMATS)),
                         help='Output format (default: jsonl, or from REPOLOCK_FORMAT env)'),
    'table': click.option('--table/--no-table', default=None,
                          help='Display as formatted table (auto-detected by default)'),
    'manifest': click.option('--manifest', 'manifest', type=click.Path(dir_okay=False),
                             help='Manifest file (default: repolock-manifest.yaml)'),
    'lock': click.option('--lock', 'lock', type=click.Path(dir_okay=False),
                         help='Lock file (default: repolock-lock.yaml)'),
    'base_dir': click.option('--base-dir', 'base_dir', type=click.Path(file_okay=False),
                             help='Directory to install repositories under'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose', 'quiet')
        def my_command(verbose, quiet):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
