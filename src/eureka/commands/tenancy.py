"""Tenant commands for eureka CLI.

Tenants, entitlements and consortiums are processed per partition: the
"nop" partition when no consortium is configured, otherwise central
tenants before member tenants of each consortium.
"""

import click

from eureka.cli_helpers import console, fail, load_pipeline
from eureka.errors import EurekaError


@click.command(name="create-tenants")
@click.pass_context
def create_tenants(ctx: click.Context):
    """Create the configured tenants that do not exist yet."""
    try:
        load_pipeline(ctx).services.management.create_tenants()
        click.echo("Tenants created")
    except EurekaError as e:
        fail(e)


@click.command(name="remove-tenants")
@click.pass_context
def remove_tenants(ctx: click.Context):
    """Remove the configured tenants."""
    try:
        load_pipeline(ctx).remove_tenants()
        click.echo("Tenants removed")
    except EurekaError as e:
        fail(e)


@click.command(name="create-tenant-entitlements")
@click.pass_context
def create_tenant_entitlements(ctx: click.Context):
    """Entitle the configured tenants to the application."""
    try:
        load_pipeline(ctx).create_tenant_entitlements()
        click.echo("Tenant entitlements created")
    except EurekaError as e:
        fail(e)


@click.command(name="remove-tenant-entitlements")
@click.option("--purge", is_flag=True, help="Also purge module data for the tenants")
@click.pass_context
def remove_tenant_entitlements(ctx: click.Context, purge: bool):
    """Revoke the application entitlement of the configured tenants.

    \b
    Examples:
        eureka remove-tenant-entitlements
        eureka remove-tenant-entitlements --purge
    """
    try:
        load_pipeline(ctx).remove_tenant_entitlements(purge)
        click.echo("Tenant entitlements removed")
    except EurekaError as e:
        fail(e)


@click.command(name="create-consortiums")
@click.pass_context
def create_consortiums(ctx: click.Context):
    """Create consortiums and register their tenants."""
    try:
        created = load_pipeline(ctx).services.consortiums.create_consortiums()
    except EurekaError as e:
        fail(e)

    if not created:
        click.echo("No consortiums to create")
        return
    for consortium in created:
        console.print(f"[green]Consortium ready:[/green] {consortium.name} ({consortium.id})")


__all__ = [
    "create_consortiums",
    "create_tenant_entitlements",
    "create_tenants",
    "remove_tenant_entitlements",
    "remove_tenants",
]
