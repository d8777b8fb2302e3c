#!/usr/bin/env python3

import click

from repolock.commands.install import install_handler
from repolock.commands.update import update_handler


class ModeGroup(click.Group):
    """Group that prints usage for an unknown mode instead of failing."""

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if cmd_name is not None and self.get_command(ctx, cmd_name) is None \
                and not cmd_name.startswith('-'):
            click.echo(f"Unknown mode: {cmd_name}", err=True)
            click.echo(ctx.get_help())
            ctx.exit(0)
        return super().resolve_command(ctx, args)


@click.group(cls=ModeGroup, invoke_without_command=True)
@click.version_option(package_name="repolock")
@click.pass_context
def cli(ctx):
    """repolock - Clone a manifest of git repositories and lock their revisions.

    Run 'install' to clone what the manifest declares and record the exact
    hashes in the lock file, or 'update' to pull unpinned repositories and
    refresh the lock.
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(install_handler, name='install')
cli.add_command(update_handler, name='update')


def main():
    cli()

if __name__ == "__main__":
    main()
