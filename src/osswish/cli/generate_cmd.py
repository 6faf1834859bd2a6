"""CLI command for regenerating the snapshot file.

Fetches every open wishlist from the configured source, writes the snapshot
atomically and optionally notifies running instances to drop their memory
cache.

Usage:
    osswish generate-snapshot
    osswish generate-snapshot --output public/wishlist-cache/all-wishlists.json
    osswish generate-snapshot --notify-url https://example.org/api/webhook/cache-refresh
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import typer

app = typer.Typer(help="Regenerate the wishlist snapshot file")


@app.callback(invoke_without_command=True)
def generate_snapshot(
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Snapshot file to write (defaults to the snapshot_path setting)",
    ),
    notify_url: str | None = typer.Option(
        None,
        "--notify-url",
        "-n",
        help="Cache refresh webhook to call after writing",
    ),
) -> None:
    """Fetch all wishlists and write the snapshot file."""
    asyncio.run(_generate(output, notify_url))


async def _generate(output: Path | None, notify_url: str | None) -> None:
    from rich.console import Console

    from osswish.cache.snapshot_store import LocalSnapshotStore
    from osswish.config import settings
    from osswish.core.errors import SnapshotPersistenceError, SourceFetchError
    from osswish.observability import LogContext, configure_logging
    from osswish.sources import create_fetcher

    console = Console()
    configure_logging(json_format=settings.env != "dev", level=settings.log_level)

    target = output or Path(settings.snapshot_path)
    fetcher = create_fetcher()

    with LogContext(request_id="generate-snapshot"):
        console.print(f"[blue]Fetching wishlists from:[/blue] {fetcher.name}")
        try:
            snapshot = await fetcher.fetch()
        except SourceFetchError as e:
            console.print(f"[red]Fetch failed:[/red] {e}")
            raise typer.Exit(code=1) from e
        finally:
            await fetcher.close()

        try:
            await LocalSnapshotStore(target).write(snapshot)
        except SnapshotPersistenceError as e:
            console.print(f"[red]Write failed:[/red] {e}")
            raise typer.Exit(code=1) from e

    console.print(f"[green]Snapshot written:[/green] {target}")
    console.print(f"  Total:    {snapshot.total_wishlists}")
    console.print(f"  Approved: {snapshot.approved_count}")
    console.print(f"  Pending:  {snapshot.pending_count}")

    if notify_url:
        headers = {"x-webhook-secret": settings.webhook_secret} if settings.webhook_secret else {}
        async with httpx.AsyncClient(timeout=10.0) as client:
            try:
                response = await client.post(notify_url, headers=headers)
                response.raise_for_status()
            except httpx.HTTPError as e:
                # The snapshot is already written; instances catch up when their TTL expires
                console.print(f"[yellow]Refresh webhook failed:[/yellow] {e}")
                return
        console.print(f"[green]Notified:[/green] {notify_url}")
