"""Custom Click group with automatic help display on errors.

This module provides a custom Click Group class that automatically
displays contextual help when usage errors occur.
"""

import sys
from typing import Any

import click


class EurekaGroup(click.Group):
    """Custom Click group that auto-displays help on usage errors."""

    def main(self, *args: Any, **kwargs: Any) -> Any:
        """Override main to auto-display help on usage errors."""
        try:
            return super().main(*args, **kwargs)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            ctx = e.ctx if hasattr(e, "ctx") and e.ctx else None
            if ctx:
                click.echo("")
                click.echo(ctx.get_help())
                ctx.exit(e.exit_code if hasattr(e, "exit_code") else 2)
                return None
            sys.exit(e.exit_code if hasattr(e, "exit_code") else 2)

    def invoke(self, ctx: click.Context) -> Any:
        """Show the failing command's help on parameter errors."""
        try:
            return super().invoke(ctx)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            # Most specific context available (the subcommand's, if any)
            error_ctx = e.ctx if hasattr(e, "ctx") and e.ctx else ctx

            click.echo("")
            click.echo(error_ctx.get_help())
            error_ctx.exit(e.exit_code if hasattr(e, "exit_code") else 2)
            return None

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Override to show help when command is not found."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            # Parameter errors are reported by invoke() with the command's help
            if isinstance(e, click.exceptions.MissingParameter | click.exceptions.BadParameter):
                raise
            click.echo(f"Error: {e.format_message()}", err=True)
            click.echo("")
            click.echo(ctx.get_help())
            ctx.exit(2)
            return None, None, []


# Subgroups created with @main.group() also use EurekaGroup
EurekaGroup.group_class = EurekaGroup
