"""Configuration CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from oidcdemo.core.config import (
    DEFAULT_CONFIG_FILE,
    AppConfig,
    ConfigError,
    get_default_config_yaml,
    load_config,
)

# Common option for JSON output
json_option = click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON for scripting",
)


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Output result as JSON or indented key/value text.

    Args:
        data: Data to output
        as_json: If True, output as JSON
    """
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return

    for section, values in data.items():
        if isinstance(values, dict):
            click.echo(f"{section}:")
            for key, value in values.items():
                click.echo(f"  {key}: {value}")
        else:
            click.echo(f"{section}: {values}")


def load_or_fail(config_path: Path | None = None) -> AppConfig:
    """Load configuration, turning parse errors into a CLI error."""
    try:
        return load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from None


@click.group()
def config() -> None:
    """Manage oidcdemo configuration."""
    pass


@config.command("show")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help="Path to config.yaml",
)
@json_option
def config_show(config_path: Path | None, output_json: bool) -> None:
    """Show the resolved configuration.

    Values are merged from defaults, the config file and the environment.
    The client secret is masked.
    """
    app_config = load_or_fail(config_path)
    data = app_config.to_dict()
    data["config_path"] = str(app_config.config_path) if app_config.config_path else None
    output_result(data, output_json)


@config.command("init")
@click.option(
    "--path",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help=f"Where to write the file (default: {DEFAULT_CONFIG_FILE})",
)
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing config file.",
)
def config_init(config_path: Path | None, force: bool) -> None:
    """Write a default config.yaml.

    Examples:

        oidcdemo config init

        oidcdemo config init --path ./config.yaml --force
    """
    path = config_path or DEFAULT_CONFIG_FILE

    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists. Use --force to overwrite.")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(get_default_config_yaml())
    # The file may hold the client secret
    path.chmod(0o600)
    click.echo(f"Configuration written to: {path}")


@config.command("urls")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help="Path to config.yaml",
)
@json_option
def config_urls(config_path: Path | None, output_json: bool) -> None:
    """Show the Keycloak endpoint URLs derived from the configuration."""
    from oidcdemo.core.oidc.client import KeycloakClient

    client = KeycloakClient(load_or_fail(config_path).provider)
    data: dict[str, Any] = dict(client.endpoints.to_dict())
    data["login_url"] = client.authorization_url()

    if output_json:
        click.echo(json.dumps(data, indent=2))
        return

    for key, value in data.items():
        click.echo(f"{key}: {value}")
