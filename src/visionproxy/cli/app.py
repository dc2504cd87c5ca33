"""Main CLI application."""

import typer

from visionproxy.cli.commands import config, detect, info, serve

app = typer.Typer(
    name="visionproxy",
    help="visionproxy - web front-end for a hosted segmentation model",
    no_args_is_help=True,
)

serve.register(app)
info.register(app)
detect.register(app)
config.register(app)


if __name__ == "__main__":
    app()
