"""Role, user and capability-set commands for eureka CLI."""

import click

from eureka import constants
from eureka.cli_helpers import fail, load_pipeline
from eureka.errors import EurekaError


@click.command(name="create-roles")
@click.pass_context
def create_roles(ctx: click.Context):
    """Create the configured roles in every tenant."""
    try:
        load_pipeline(ctx).create_roles()
        click.echo("Roles created")
    except EurekaError as e:
        fail(e)


@click.command(name="remove-roles")
@click.pass_context
def remove_roles(ctx: click.Context):
    """Remove the configured roles from every tenant."""
    try:
        load_pipeline(ctx).remove_roles()
        click.echo("Roles removed")
    except EurekaError as e:
        fail(e)


@click.command(name="create-users")
@click.pass_context
def create_users(ctx: click.Context):
    """Create the configured users with credentials and role assignments."""
    try:
        load_pipeline(ctx).create_users()
        click.echo("Users created")
    except EurekaError as e:
        fail(e)


@click.command(name="remove-users")
@click.pass_context
def remove_users(ctx: click.Context):
    """Remove the configured users from every tenant."""
    try:
        load_pipeline(ctx).remove_users()
        click.echo("Users removed")
    except EurekaError as e:
        fail(e)


@click.command(name="attach-capability-sets")
@click.option(
    "--initial-delay",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait before polling the capability consumer group",
)
@click.pass_context
def attach_capability_sets(ctx: click.Context, initial_delay: float | None):
    """Attach capability sets to roles once the consumer group is quiet.

    \b
    Examples:
        eureka attach-capability-sets
        eureka attach-capability-sets --initial-delay 0
    """
    try:
        load_pipeline(ctx).attach_capability_sets(initial_delay)
        click.echo("Capability sets attached")
    except EurekaError as e:
        fail(e)


@click.command(name="detach-capability-sets")
@click.pass_context
def detach_capability_sets(ctx: click.Context):
    """Detach capability sets from the configured roles."""
    try:
        load_pipeline(ctx).detach_capability_sets()
        click.echo("Capability sets detached")
    except EurekaError as e:
        fail(e)


@click.command(name="get-keycloak-access-token")
@click.option("--tenant", default=constants.MASTER_REALM, show_default=True, help="Tenant (realm) name")
@click.pass_context
def get_keycloak_access_token(ctx: click.Context, tenant: str):
    """Print an access token for a tenant."""
    try:
        token = load_pipeline(ctx).services.identity.get_access_token(tenant)
    except EurekaError as e:
        fail(e)
    click.echo(token)


@click.command(name="update-realm-lifespan")
@click.option("--seconds", type=click.IntRange(min=1), required=True, help="Access token lifespan")
@click.option("--realm", default=constants.MASTER_REALM, show_default=True, help="Realm to update")
@click.pass_context
def update_realm_lifespan(ctx: click.Context, seconds: int, realm: str):
    """Set the access token lifespan of a realm.

    \b
    Examples:
        eureka update-realm-lifespan --seconds 3600
    """
    try:
        load_pipeline(ctx).update_realm_lifespan(seconds, realm=realm)
        click.echo(f"Access token lifespan of {realm} set to {seconds}s")
    except EurekaError as e:
        fail(e)


__all__ = [
    "attach_capability_sets",
    "create_roles",
    "create_users",
    "detach_capability_sets",
    "get_keycloak_access_token",
    "remove_roles",
    "remove_users",
    "update_realm_lifespan",
]
