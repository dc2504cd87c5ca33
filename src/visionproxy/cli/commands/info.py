"""Remote Space inspection command."""

import asyncio
import os
from pathlib import Path
from typing import Annotated

import typer

from visionproxy.cli.console import console, dim, error


def register(app: typer.Typer) -> None:
    """Register the info command."""

    @app.command()
    def info(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
    ) -> None:
        """Show the remote Space's named endpoints."""
        from rich.table import Table

        from visionproxy.config import load_config
        from visionproxy.errors import VisionProxyError
        from visionproxy.inference import GradioSpaceClient, VisionService
        from visionproxy.logging import (
            LOG_LEVEL_ENV_VAR,
            configure_logging,
            register_secret,
        )

        configure_logging(level=os.environ.get(LOG_LEVEL_ENV_VAR) or "WARNING")
        proxy_config = load_config(config)
        register_secret(proxy_config.remote.token())
        service = VisionService(
            config=proxy_config, backend=GradioSpaceClient(proxy_config.remote)
        )

        try:
            space = asyncio.run(service.describe())
        except VisionProxyError as e:
            error(f"{e.message}: {e.details}" if e.details else e.message)
            dim(f"Space URL: {proxy_config.remote.space_url}")
            raise typer.Exit(1) from None

        table = Table(title=f"Endpoints on {space.space_name}")
        table.add_column("Endpoint", style="cyan")
        table.add_column("Parameters", style="green")
        table.add_column("Configured mode", style="magenta")

        modes = {
            name: mode
            for mode, name in proxy_config.remote.endpoints.model_dump().items()
        }
        named = space.api_info.get("named_endpoints") or {}
        for endpoint in space.endpoints:
            details = named.get(endpoint) or {}
            params = ", ".join(
                str(p.get("parameter_name") or p.get("label") or "?")
                for p in details.get("parameters", [])
                if isinstance(p, dict)
            )
            table.add_row(endpoint, params or "-", modes.get(endpoint, ""))

        console.print(table)
