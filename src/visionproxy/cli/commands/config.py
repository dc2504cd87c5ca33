"""Configuration management commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from visionproxy.cli.console import console, error, success


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $VISIONPROXY_HOME/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Manage configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        import tomllib

        from pydantic import ValidationError
        from rich.syntax import Syntax
        from rich.table import Table

        from visionproxy.config import load_config
        from visionproxy.config.paths import get_config_path

        expanded_path = path.expanduser() if path else get_config_path()

        if action == "show":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            content = expanded_path.read_text()
            syntax = Syntax(content, "toml", theme="monokai", line_numbers=True)
            console.print(f"[bold]Config file: {expanded_path}[/bold]\n")
            console.print(syntax)

        elif action == "validate":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            try:
                config_obj = load_config(expanded_path)
            except (tomllib.TOMLDecodeError, ValidationError) as e:
                error(f"Invalid configuration: {e}")
                raise typer.Exit(1) from None

            table = Table(title="Configuration Summary")
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")

            remote = config_obj.remote
            table.add_row("Space", remote.space_url)
            table.add_row("Token", "set" if remote.token() else "not set")
            for mode, api_name in remote.endpoints.model_dump().items():
                table.add_row(f"Endpoint '{mode}'", api_name)
            table.add_row(
                "Max upload",
                f"{config_obj.uploads.max_upload_bytes // (1024 * 1024)} MiB",
            )
            table.add_row(
                "Server", f"{config_obj.server.host}:{config_obj.server.port}"
            )

            console.print(table)
            success("Configuration is valid")

        else:
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate")
            raise typer.Exit(1)
