"""System commands for eureka CLI."""

import click

from eureka.cli_helpers import fail, load_pipeline
from eureka.errors import EurekaError


@click.command(name="get-vault-root-token")
@click.pass_context
def get_vault_root_token(ctx: click.Context):
    """Print the vault root token read from the vault container logs."""
    try:
        token = load_pipeline(ctx).services.secret_store.get_root_token()
    except EurekaError as e:
        fail(e)
    click.echo(token)


__all__ = ["get_vault_root_token"]
