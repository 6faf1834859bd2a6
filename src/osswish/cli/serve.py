"""CLI command for running the API server.

Usage:
    osswish serve
    osswish serve --port 4324 --host 0.0.0.0
    osswish serve --reload --log-level debug
"""

from __future__ import annotations

import typer

app = typer.Typer(help="Run the wishlist cache API server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(
        "0.0.0.0",  # nosec B104 - intentional for container deployments
        "--host",
        "-h",
        help="Host to bind to",
    ),
    port: int = typer.Option(
        4324,
        "--port",
        "-p",
        help="Port to listen on",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        "-r",
        help="Enable auto-reload for development",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
) -> None:
    """Run the API server.

    Runs a single worker: the TTL cache is per-process, so extra workers would
    each hold their own memory layer.
    """
    import uvicorn

    typer.echo("Starting OSS Wishlist cache server...")
    typer.echo(f"  Host: {host}")
    typer.echo(f"  Port: {port}")
    typer.echo(f"  Log level: {log_level}")
    if reload:
        typer.echo("  Reload: enabled")
    typer.echo()

    uvicorn.run(
        app="osswish.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.lower(),
    )
