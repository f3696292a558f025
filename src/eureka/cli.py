"""eureka CLI entry point.

The main group loads nothing eagerly: commands build their pipeline on
first use from the ``--config`` and ``--profile`` options stored on the
context, so ``--help`` and ``--version`` work without a config file.
"""

import logging

import click

from eureka import __version__
from eureka.click_group import EurekaGroup
from eureka.commands import ALL_COMMANDS


@click.group(
    cls=EurekaGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)
@click.option("--config", "config_path", type=click.Path(), help="Config file path")
@click.option("--profile", help="Profile name used as the container name prefix")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config_path: str | None, profile: str | None, verbose: bool) -> None:
    """eureka - deploy a multi-tenant module platform on a local container engine.

    \b
    Deploys backend modules with their sidecars, waits for readiness, then
    rolls tenants, entitlements, roles, users and capability sets out.

    \b
    CONFIGURATION:
        Config file: ~/.eureka/config.eureka.yaml (or --config PATH)
        Environment variables override timing settings (EUREKA_*)

    \b
    EXAMPLES:
        $ eureka deploy-application
        $ eureka --profile combined deploy-modules
        $ eureka undeploy-module mod-orders
        $ eureka remove-tenant-entitlements --purge

    Use 'eureka COMMAND --help' for more information on a command.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )

    obj = ctx.ensure_object(dict)
    obj["config_path"] = config_path
    obj["profile"] = profile

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


for command in ALL_COMMANDS:
    main.add_command(command)


if __name__ == "__main__":
    main()


__all__ = ["main"]
