"""One-shot text-prompt detection from the terminal."""

import asyncio
import os
from pathlib import Path
from typing import Annotated

import typer

from visionproxy.cli.console import console, error, success


def register(app: typer.Typer) -> None:
    """Register the detect command."""

    @app.command()
    def detect(
        image: Annotated[
            Path,
            typer.Argument(
                exists=True,
                dir_okay=False,
                readable=True,
                help="Image file to analyze",
            ),
        ],
        prompt: Annotated[
            str,
            typer.Option("--prompt", "-p", help="What to look for"),
        ],
        threshold: Annotated[
            float,
            typer.Option("--threshold", min=0.0, max=1.0, help="Detection threshold"),
        ] = 0.5,
        mask_threshold: Annotated[
            float,
            typer.Option("--mask-threshold", min=0.0, max=1.0, help="Mask threshold"),
        ] = 0.5,
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
    ) -> None:
        """Run text-prompt detection on a local image."""
        from rich.table import Table

        from visionproxy.config import load_config
        from visionproxy.errors import VisionProxyError
        from visionproxy.inference import (
            GradioSpaceClient,
            TextPromptParams,
            VisionService,
        )
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
        params = TextPromptParams(
            prompt=prompt.strip(),
            threshold=threshold,
            mask_threshold=mask_threshold,
        )

        try:
            result = asyncio.run(service.analyze_text(image, params))
        except VisionProxyError as e:
            error(f"{e.message}: {e.details}" if e.details else e.message)
            raise typer.Exit(1) from None

        success(f"Result: {result.media.href}")
        console.print(f"Duration: {result.prediction.duration:.2f}s")
        if result.details:
            console.print(str(result.details), markup=False)

        if result.detections:
            table = Table(title="Detections")
            table.add_column("Label", style="cyan")
            table.add_column("Confidence", style="green", justify="right")
            for d in result.detections:
                table.add_row(d.label, f"{d.confidence:.0%}")
            console.print(table)
