"""sessionlog Command Line Interface.

Operational helpers for the spill backlog: list what is waiting on disk,
and push it to a collector by hand.
"""

from __future__ import annotations

from pathlib import Path

import typer

from sessionlog import __version__
from sessionlog.contracts.errors import SpillStoreError, TransportConfigurationError
from sessionlog.core.config import default_os_label, default_storage_dir
from sessionlog.core.logging import configure_logging
from sessionlog.delivery.factory import create_transport
from sessionlog.delivery.orchestrator import DeliveryOrchestrator
from sessionlog.delivery.store import FileSpillStore
from sessionlog.engine.state import SessionState
from sessionlog.environment.connectivity import SocketConnectivityProbe, StaticConnectivityProbe
from sessionlog.environment.context import EnvironmentContextProvider

app = typer.Typer(
    name="sessionlog",
    help="sessionlog: inspect and replay spilled session batches.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sessionlog version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Emit debug diagnostics on stderr.",
    ),
) -> None:
    """sessionlog: inspect and replay spilled session batches."""
    configure_logging(level="DEBUG" if verbose else "WARNING")


@app.command()
def backlog(
    storage_dir: Path = typer.Option(
        default_storage_dir(),
        "--storage-dir",
        "-d",
        help="Directory holding spill files.",
    ),
    prefix: str = typer.Option(
        "logs",
        "--prefix",
        help="Spill file name prefix.",
    ),
) -> None:
    """List spilled batches waiting for delivery."""
    store = FileSpillStore(storage_dir, prefix=prefix)
    try:
        names = store.list_spills()
    except SpillStoreError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if not names:
        typer.echo("No spilled batches.")
        return
    for name in names:
        size = (storage_dir / name).stat().st_size
        typer.echo(f"{name}\t{size} bytes")
    typer.echo(f"{len(names)} spilled batch(es) in {storage_dir}")


@app.command()
def replay(
    server_url: str = typer.Option(
        ...,
        "--server-url",
        "-u",
        help="Collector endpoint to POST batches to.",
    ),
    storage_dir: Path = typer.Option(
        default_storage_dir(),
        "--storage-dir",
        "-d",
        help="Directory holding spill files.",
    ),
    prefix: str = typer.Option(
        "logs",
        "--prefix",
        help="Spill file name prefix.",
    ),
    assume_online: bool = typer.Option(
        False,
        "--assume-online",
        help="Skip the connectivity probe.",
    ),
) -> None:
    """Run one backlog recovery pass against a collector."""
    try:
        transport = create_transport("http", {"endpoint": server_url})
    except TransportConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if assume_online:
        probe: SocketConnectivityProbe | StaticConnectivityProbe = StaticConnectivityProbe(connected=True)
    else:
        probe = SocketConnectivityProbe.for_url(server_url)

    if not probe.is_connected():
        transport.close()
        typer.echo(f"Error: collector {server_url} is unreachable", err=True)
        raise typer.Exit(1)

    orchestrator = DeliveryOrchestrator(
        SessionState(),
        context_provider=EnvironmentContextProvider(os_label=default_os_label()),
        connectivity_probe=probe,
        spill_store=FileSpillStore(storage_dir, prefix=prefix),
        transport=transport,
    )
    try:
        results = [future.result() for future in orchestrator.recover_backlog()]
    finally:
        orchestrator.close()
        transport.close()

    delivered = sum(1 for r in results if r.delivered)
    deleted = sum(1 for r in results if r.deleted)
    typer.echo(f"Replayed {len(results)} batch(es): {delivered} delivered, {deleted} removed")
    if delivered < len(results):
        raise typer.Exit(2)


if __name__ == "__main__":
    app()
