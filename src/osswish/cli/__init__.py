"""CLI commands for the wishlist cache service.

Provides command-line interface using Typer:
- osswish serve: Run the API server
- osswish generate-snapshot: Rebuild the snapshot file from GitHub

Usage:
    osswish --help
    osswish serve --port 4324
    osswish generate-snapshot --notify-url https://example.org/api/webhook/cache-refresh
"""

import typer

from osswish.cli.generate_cmd import app as generate_app
from osswish.cli.serve import app as serve_app

app = typer.Typer(
    name="osswish",
    help="OSS Wishlist snapshot cache service",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(generate_app, name="generate-snapshot")


@app.callback()
def callback() -> None:
    """OSS Wishlist snapshot cache service."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
