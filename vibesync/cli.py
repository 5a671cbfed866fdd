from __future__ import annotations

import json
from dataclasses import asdict

import typer
from rich import print

from . import __version__
from .commands.bridge_cmds import (
    get_cmd,
    reconcile_cmd,
    run_bridge_cmd,
    set_cmd,
    status_cmd,
    stop_cmd,
)
from .commands.capture_cmds import capture_consume_cmd, capture_put_cmd, capture_show_cmd
from .commands.common import read_config_or_exit, write_config_or_exit
from .commands.state_cmds import (
    reading_record_cmd,
    vocab_add_cmd,
    vocab_list_cmd,
    vocab_remove_cmd,
)
from .config import VibeSyncConfig, load_config

app = typer.Typer(help="vibesync: keep the reading page and the extension in sync")
capture_app = typer.Typer(help="Captured page content handoff")
vocab_app = typer.Typer(help="Shared vocabulary list")
reading_app = typer.Typer(help="Reading history")
config_app = typer.Typer(help="Configuration")
app.add_typer(capture_app, name="capture")
app.add_typer(vocab_app, name="vocab")
app.add_typer(reading_app, name="reading")
app.add_typer(config_app, name="config")


@app.command()
def version() -> None:
    """Print the installed version."""

    print(__version__)


@app.command()
def run(
    page_db: str = typer.Option(None, help="Path to the page store database"),
    extension_db: str = typer.Option(None, help="Path to the extension store database"),
    interval_s: float = typer.Option(None, help="Reconciliation interval in seconds"),
    mode: str = typer.Option(None, help="Reconciliation mode: push or symmetric"),
) -> None:
    """Attach the sync bridge and run until interrupted."""

    run_bridge_cmd(
        config=load_config(),
        page_db=page_db,
        extension_db=extension_db,
        interval_s=interval_s,
        mode=mode,
    )


@app.command()
def reconcile(
    page_db: str = typer.Option(None, help="Path to the page store database"),
    extension_db: str = typer.Option(None, help="Path to the extension store database"),
    mode: str = typer.Option(None, help="Reconciliation mode: push or symmetric"),
) -> None:
    """Run one reconciliation pass."""

    reconcile_cmd(config=load_config(), page_db=page_db, extension_db=extension_db, mode=mode)


@app.command()
def status(
    page_db: str = typer.Option(None, help="Path to the page store database"),
    extension_db: str = typer.Option(None, help="Path to the extension store database"),
) -> None:
    """Show bridge status and per-key drift."""

    status_cmd(config=load_config(), page_db=page_db, extension_db=extension_db)


@app.command()
def stop() -> None:
    """Stop a running bridge."""

    stop_cmd()


@app.command()
def get(
    key: str,
    store: str = typer.Option("page", help="page or extension"),
    page_db: str = typer.Option(None, help="Path to the page store database"),
    extension_db: str = typer.Option(None, help="Path to the extension store database"),
) -> None:
    """Read one key."""

    get_cmd(
        config=load_config(),
        key=key,
        store=store,
        page_db=page_db,
        extension_db=extension_db,
    )


@app.command("set")
def set_value(
    key: str,
    value: str,
    store: str = typer.Option("page", help="page or extension"),
    page_db: str = typer.Option(None, help="Path to the page store database"),
    extension_db: str = typer.Option(None, help="Path to the extension store database"),
) -> None:
    """Write one key."""

    set_cmd(
        config=load_config(),
        key=key,
        value=value,
        store=store,
        page_db=page_db,
        extension_db=extension_db,
    )


@capture_app.command("put")
def capture_put(
    text: str,
    selection: bool = typer.Option(False, help="Store as a side panel selection instead"),
    extension_db: str = typer.Option(None, help="Path to the extension store database"),
) -> None:
    """Store captured text for the page to pick up."""

    capture_put_cmd(config=load_config(), text=text, selection=selection, extension_db=extension_db)


@capture_app.command("show")
def capture_show(
    extension_db: str = typer.Option(None, help="Path to the extension store database"),
) -> None:
    """Show handoff slots."""

    capture_show_cmd(config=load_config(), extension_db=extension_db)


@capture_app.command("consume")
def capture_consume(
    extension_db: str = typer.Option(None, help="Path to the extension store database"),
) -> None:
    """Print captured content and clear the slot."""

    capture_consume_cmd(config=load_config(), extension_db=extension_db)


@vocab_app.command("add")
def vocab_add(
    word: str,
    translation: str = typer.Option("", help="Translation"),
    definition: str = typer.Option("", help="Short definition"),
    store: str = typer.Option("page", help="page or extension"),
) -> None:
    """Save a word."""

    vocab_add_cmd(
        config=load_config(),
        word=word,
        translation=translation,
        definition=definition,
        store=store,
    )


@vocab_app.command("remove")
def vocab_remove(
    word: str,
    store: str = typer.Option("page", help="page or extension"),
) -> None:
    """Delete a word."""

    vocab_remove_cmd(config=load_config(), word=word, store=store)


@vocab_app.command("list")
def vocab_list(store: str = typer.Option("page", help="page or extension")) -> None:
    """List saved words."""

    vocab_list_cmd(config=load_config(), store=store)


@reading_app.command("record")
def reading_record(store: str = typer.Option("page", help="page or extension")) -> None:
    """Record one finished article for today."""

    reading_record_cmd(config=load_config(), store=store)


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""

    typer.echo(json.dumps(asdict(load_config()), indent=2))


@config_app.command("set")
def config_set(key: str, value: str) -> None:
    """Persist one configuration value."""

    if key not in VibeSyncConfig.__dataclass_fields__:
        print(f"[red]Unknown config key {key!r}[/red]")
        raise typer.Exit(code=1)
    data = read_config_or_exit()
    if key == "reconcile_interval_s":
        try:
            data[key] = float(value)
        except ValueError as exc:
            print(f"[red]Invalid number: {value!r}[/red]")
            raise typer.Exit(code=1) from exc
    else:
        data[key] = value
    write_config_or_exit(data)
    print(f"[green]{key} saved[/green]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
