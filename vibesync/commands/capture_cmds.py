from __future__ import annotations

import typer
from rich import print

from vibesync.config import VibeSyncConfig
from vibesync.sync.capture import CaptureState, capture_slot, selection_slot

from .common import open_stores, preview


def capture_put_cmd(
    *,
    config: VibeSyncConfig,
    text: str,
    selection: bool,
    extension_db: str | None,
) -> None:
    """Hand captured text to the page (or a selection to the side panel)."""

    stores = open_stores(config, context="cli", extension_db=extension_db)
    try:
        slot = selection_slot(stores.extension) if selection else capture_slot(stores.extension)
        try:
            slot.produce(text)
        except ValueError as exc:
            print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc
    finally:
        stores.close()
    print(f"[green]Stored {len(text)} chars in {slot.key}[/green]")


def capture_show_cmd(*, config: VibeSyncConfig, extension_db: str | None) -> None:
    """Show both handoff slots without consuming them."""

    stores = open_stores(config, context="cli", extension_db=extension_db)
    try:
        for slot in (capture_slot(stores.extension), selection_slot(stores.extension)):
            status = slot.status()
            print(f"- {slot.key}: {status.state.value} {preview(status.payload)}")
    finally:
        stores.close()


def capture_consume_cmd(*, config: VibeSyncConfig, extension_db: str | None) -> None:
    """Read the captured page content and clear the slot."""

    stores = open_stores(config, context="cli", extension_db=extension_db)
    try:
        status = capture_slot(stores.extension).consume()
    finally:
        stores.close()
    if status.state is CaptureState.EMPTY or status.payload is None:
        print("[yellow]No captured content[/yellow]")
        raise typer.Exit(code=1)
    typer.echo(status.payload)
