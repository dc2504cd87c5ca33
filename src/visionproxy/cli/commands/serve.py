"""Server command."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        host: Annotated[
            str | None,
            typer.Option(
                "--host",
                "-h",
                help="Host to bind to (default: server.host from config)",
            ),
        ] = None,
        port: Annotated[
            int | None,
            typer.Option(
                "--port",
                "-p",
                help="Port to bind to (default: server.port from config)",
            ),
        ] = None,
        log_file: Annotated[
            bool,
            typer.Option(
                "--log-file/--no-log-file",
                help="Also write JSONL logs under $VISIONPROXY_HOME/logs",
            ),
        ] = True,
    ) -> None:
        """Start the web server."""
        try:
            asyncio.run(_run_server(config, host, port, log_file))
        except KeyboardInterrupt:
            # Use print here since logging may not be configured yet
            print("\nServer stopped")


async def _run_server(
    config_path: Path | None = None,
    host: str | None = None,
    port: int | None = None,
    log_to_file: bool = True,
) -> None:
    from visionproxy.config import load_config
    from visionproxy.logging import configure_logging, register_secret
    from visionproxy.server import ServerRunner, create_app

    configure_logging(use_rich=True, log_to_file=log_to_file)

    logger.info("Loading configuration")
    proxy_config = load_config(config_path)
    register_secret(proxy_config.remote.token())

    app = create_app(proxy_config)
    runner = ServerRunner(
        app,
        host=host or proxy_config.server.host,
        port=port or proxy_config.server.port,
    )
    await runner.run()
