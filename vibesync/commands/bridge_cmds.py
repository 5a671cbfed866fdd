from __future__ import annotations

import contextlib
import json
import os
import signal
import threading
from pathlib import Path
from typing import Any

import typer
from rich import print
from rich.table import Table

from vibesync.codec import decode_value
from vibesync.config import VibeSyncConfig, get_config_path
from vibesync.runtime import (
    bridge_pid_path,
    bridge_status,
    clear_pid,
    stop_pidfile_with_reason,
    write_pid,
)
from vibesync.sync import reconcile
from vibesync.sync.bridge import attach_bridge, reset_bridge

from .common import StorePair, open_stores, pick_store, preview


def run_bridge_cmd(
    *,
    config: VibeSyncConfig,
    page_db: str | None,
    extension_db: str | None,
    interval_s: float | None,
    mode: str | None,
    stop_event: threading.Event | None = None,
) -> None:
    """Attach the bridge and keep it running until interrupted."""

    mode = mode or config.reconcile_mode
    if mode not in reconcile.RECONCILE_MODES:
        print(f"[red]Unknown reconcile mode {mode!r}[/red]")
        raise typer.Exit(code=1)
    interval = interval_s or config.reconcile_interval_s
    stores = open_stores(
        config, context=config.bridge_context, page_db=page_db, extension_db=extension_db
    )
    stop = stop_event or threading.Event()

    def _on_capture(payload: str) -> None:
        print(f"[cyan]Captured page content ready ({len(payload)} chars)[/cyan]")

    previous_handler = None
    if threading.current_thread() is threading.main_thread():
        with contextlib.suppress(ValueError):
            previous_handler = signal.signal(signal.SIGTERM, lambda *_: stop.set())
    pid_path = bridge_pid_path()
    write_pid(pid_path, os.getpid())
    try:
        bridge = attach_bridge(
            stores.page,
            stores.extension,
            reconcile_interval_s=interval,
            reconcile_mode=mode,
            capture_sink=_on_capture,
            log_path=Path(config.log_path).expanduser() if config.log_path else None,
        )
        print(
            f"[green]Bridge running[/green] (mode={mode}, every {interval:g}s, "
            f"seeded: {', '.join(bridge.seeded_keys) or 'none'})"
        )
        with contextlib.suppress(KeyboardInterrupt):
            stop.wait()
    finally:
        reset_bridge()
        clear_pid(pid_path)
        stores.close()
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)


def reconcile_cmd(
    *,
    config: VibeSyncConfig,
    page_db: str | None,
    extension_db: str | None,
    mode: str | None,
) -> None:
    """Run one reconciliation pass and print the corrections."""

    mode = mode or config.reconcile_mode
    stores = open_stores(config, context="cli", page_db=page_db, extension_db=extension_db)
    try:
        try:
            corrections = reconcile.reconcile_pass(stores.page, stores.extension, mode=mode)
        except ValueError as exc:
            print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc
    finally:
        stores.close()
    if not corrections:
        print("[green]Stores already in sync[/green]")
        return
    for correction in corrections:
        print(f"- {correction.key}: {correction.direction} {preview(correction.value)}")


def _comparison_table(stores: StorePair) -> Table:
    table = Table(title="Shared keys")
    table.add_column("key")
    table.add_column("page")
    table.add_column("extension")
    table.add_column("state")
    for item in reconcile.compare_stores(stores.page, stores.extension):
        state = "[green]in sync[/green]" if item.in_sync else "[yellow]drift[/yellow]"
        table.add_row(item.key, preview(item.page_value), preview(item.extension_value), state)
    return table


def status_cmd(
    *,
    config: VibeSyncConfig,
    page_db: str | None,
    extension_db: str | None,
) -> None:
    """Show bridge runtime status and per-key drift."""

    runtime = bridge_status()
    pid = f" (pid {runtime.pid})" if runtime.pid else ""
    colour = "green" if runtime.running else "yellow"
    print(f"[bold]Bridge[/bold]: [{colour}]{runtime.detail}[/{colour}]{pid}")
    print(f"- Config: {get_config_path()}")
    print(f"- Mode: {config.reconcile_mode}, interval {config.reconcile_interval_s:g}s")
    stores = open_stores(config, context="cli", page_db=page_db, extension_db=extension_db)
    try:
        print(_comparison_table(stores))
    finally:
        stores.close()


def stop_cmd() -> None:
    """Stop a bridge started with `vibesync run`."""

    result = stop_pidfile_with_reason()
    if result.stopped:
        print(f"[green]Bridge stopped[/green] (pid {result.pid})")
        return
    print(f"[yellow]Bridge not stopped: {result.reason}[/yellow]")
    raise typer.Exit(code=1)


def get_cmd(
    *,
    config: VibeSyncConfig,
    key: str,
    store: str,
    page_db: str | None,
    extension_db: str | None,
) -> None:
    """Print one key from one store as JSON."""

    stores = open_stores(config, context="cli", page_db=page_db, extension_db=extension_db)
    try:
        adapter = pick_store(stores, store)
        values = adapter.get([key])
    finally:
        stores.close()
    if key not in values:
        print(f"[yellow]{key} not set in {store} store[/yellow]")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(values[key], ensure_ascii=False, indent=2))


def set_cmd(
    *,
    config: VibeSyncConfig,
    key: str,
    value: str,
    store: str,
    page_db: str | None,
    extension_db: str | None,
) -> None:
    """Write one key into one store; the extension store decodes JSON input."""

    stores = open_stores(config, context="cli", page_db=page_db, extension_db=extension_db)
    try:
        adapter = pick_store(stores, store)
        parsed: Any = value if store == "page" else decode_value(value)
        future = adapter.set({key: parsed})
        error = future.exception()
    finally:
        stores.close()
    if error is not None:
        print(f"[red]Write failed: {error}[/red]")
        raise typer.Exit(code=1)
    print(f"[green]{key} written to {store} store[/green]")
