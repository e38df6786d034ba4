"""CLI entry point for oidcdemo."""

import click

from oidcdemo import __version__
from oidcdemo.cli import config as config_commands
from oidcdemo.cli import serve as serve_commands


@click.group()
@click.version_option(version=__version__, prog_name="oidcdemo")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """oidcdemo - OAuth 2.0/OIDC Authorization Code Flow Demo Server."""
    ctx.ensure_object(dict)


@cli.command()
def guide() -> None:
    """Print the Keycloak client setup guide.

    URLs in the guide are filled in from the current configuration.
    """
    from oidcdemo.cli.config import load_or_fail
    from oidcdemo.idp_presets import get_setup_guide

    provider = load_or_fail().provider
    click.echo(
        get_setup_guide(
            realm_url=provider.endpoint,
            redirect_uri=provider.redirect_uri,
            logout_redirect_uri=provider.logout_redirect_uri,
        )
    )


cli.add_command(config_commands.config)
cli.add_command(serve_commands.serve)
