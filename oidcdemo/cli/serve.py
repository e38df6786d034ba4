"""Server CLI commands."""

from dataclasses import replace
from pathlib import Path

import click


@click.command()
@click.option(
    "--host",
    "-h",
    default=None,
    help="Host to bind to (default: from config or 127.0.0.1)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (default: PORT, config or 3000)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help="Path to config.yaml",
)
@click.option(
    "--log-level",
    type=click.Choice(["ERROR", "WARNING", "INFO", "DEBUG"], case_sensitive=False),
    default=None,
    help="Log level (DEBUG includes redacted HTTP exchanges)",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable Flask debug mode",
)
def serve(
    host: str | None,
    port: int | None,
    config_path: Path | None,
    log_level: str | None,
    debug: bool,
) -> None:
    """Start the oidcdemo web server.

    Keycloak settings come from KEYCLOAK_* environment variables or the
    config file.

    Examples:

        # Start with settings from the environment
        oidcdemo serve

        # Start on a custom port
        oidcdemo serve --port 8000

        # Verbose protocol logging
        oidcdemo serve --log-level debug
    """
    from oidcdemo.app import run_server
    from oidcdemo.cli.config import load_or_fail

    config = load_or_fail(config_path)

    # Apply CLI overrides
    if debug:
        config = replace(config, server=replace(config.server, debug=True))

    if log_level:
        config = replace(config, logging=replace(config.logging, level=log_level.upper()))

    run_server(app_config=config, host=host, port=port)
