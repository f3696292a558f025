"""Deployment commands for eureka CLI.

This module provides commands for deploying and undeploying containers:
- deploy-management: Deploy the management modules and wait for readiness
- deploy-modules: Deploy the business modules with their sidecars
- deploy-application: Run the whole pipeline through consortium setup
- undeploy-*: Stop and remove containers by name pattern
- list-modules: Show the resolved modules and their ports
"""

import logging

import click
from rich.table import Table

from eureka.cli_helpers import console, fail, load_pipeline
from eureka.deployment_orchestrator import (
    application_pattern,
    business_pattern,
    management_pattern,
    single_module_pattern,
)
from eureka.errors import EurekaError

logger = logging.getLogger(__name__)


def _report_ports(kind: str, ports: dict[str, int]) -> None:
    click.echo(f"Deployed {len(ports)} {kind} module(s)")
    for name in sorted(ports):
        logger.debug(f"  {name} -> {ports[name]}")


def _report_removed(removed: list[str]) -> None:
    if not removed:
        click.echo("No matching containers found")
        return
    click.echo(f"Removed {len(removed)} container(s)")


# ============================================================================
# DEPLOY COMMANDS
# ============================================================================


@click.command(name="deploy-management")
@click.pass_context
def deploy_management(ctx: click.Context):
    """Deploy management modules and wait until they are ready.

    \b
    Examples:
        eureka deploy-management
        eureka --profile combined deploy-management
    """
    try:
        _report_ports("management", load_pipeline(ctx).deploy_management())
    except EurekaError as e:
        fail(e)


@click.command(name="deploy-modules")
@click.pass_context
def deploy_modules(ctx: click.Context):
    """Deploy business modules with their sidecars and wait until they are ready."""
    try:
        _report_ports("business", load_pipeline(ctx).deploy_modules())
    except EurekaError as e:
        fail(e)


@click.command(name="deploy-application")
@click.option(
    "--initial-delay",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait before polling the capability consumer group",
)
@click.pass_context
def deploy_application(ctx: click.Context, initial_delay: float | None):
    """Deploy the whole application and set up its tenants.

    Deploys management modules, waits for gateway routes, deploys business
    modules, registers the application, then creates tenants, entitlements,
    roles, users, capability sets and consortiums.

    \b
    Examples:
        eureka deploy-application
        eureka deploy-application --initial-delay 30
    """
    try:
        resolution = load_pipeline(ctx).deploy_application(initial_delay=initial_delay)
        console.print(
            f"[green]Application deployed[/green] ({len(resolution.descriptors)} module(s))"
        )
    except EurekaError as e:
        fail(e)


# ============================================================================
# UNDEPLOY COMMANDS
# ============================================================================


def _undeploy(ctx: click.Context, pattern_for) -> None:
    try:
        pipeline = load_pipeline(ctx)
        _report_removed(pipeline.undeploy(pattern_for(pipeline.config.profile)))
    except EurekaError as e:
        fail(e)


@click.command(name="undeploy-application")
@click.pass_context
def undeploy_application(ctx: click.Context):
    """Remove every container of the current profile."""
    _undeploy(ctx, application_pattern)


@click.command(name="undeploy-management")
@click.pass_context
def undeploy_management(ctx: click.Context):
    """Remove the management module containers."""
    _undeploy(ctx, management_pattern)


@click.command(name="undeploy-modules")
@click.pass_context
def undeploy_modules(ctx: click.Context):
    """Remove business module and sidecar containers."""
    _undeploy(ctx, business_pattern)


@click.command(name="undeploy-module")
@click.argument("module_name", type=str)
@click.pass_context
def undeploy_module(ctx: click.Context, module_name: str):
    """Remove a single module container and its sidecar.

    \b
    Examples:
        eureka undeploy-module mod-orders
    """
    _undeploy(ctx, lambda profile: single_module_pattern(profile, module_name))


# ============================================================================
# LIST COMMAND
# ============================================================================


@click.command(name="list-modules")
@click.pass_context
def list_modules(ctx: click.Context):
    """Show the resolved modules with their versions and ports."""
    try:
        resolution = load_pipeline(ctx).resolve()
    except EurekaError as e:
        fail(e)

    table = Table(title="Modules")
    table.add_column("Module", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Port", justify="right")
    table.add_column("Debug Port", justify="right")
    table.add_column("Sidecar Port", justify="right")
    table.add_column("Image", style="dim")

    for name in sorted(resolution.descriptors):
        descriptor = resolution.descriptors[name]
        table.add_row(
            name,
            descriptor.version,
            str(descriptor.port),
            str(descriptor.debug_port),
            str(descriptor.sidecar_port) if descriptor.has_sidecar else "-",
            descriptor.image,
        )

    console.print(table)


__all__ = [
    "deploy_application",
    "deploy_management",
    "deploy_modules",
    "list_modules",
    "undeploy_application",
    "undeploy_management",
    "undeploy_module",
    "undeploy_modules",
]
