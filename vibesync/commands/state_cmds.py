from __future__ import annotations

import typer
from rich import print
from rich.table import Table

from vibesync import state
from vibesync.config import VibeSyncConfig

from .common import open_stores, pick_store


def vocab_add_cmd(
    *,
    config: VibeSyncConfig,
    word: str,
    translation: str,
    definition: str,
    store: str,
) -> None:
    """Save a word at the top of the vocabulary list."""

    stores = open_stores(config, context="cli")
    try:
        try:
            added = state.save_word(pick_store(stores, store), word, translation, definition)
        except ValueError as exc:
            print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc
    finally:
        stores.close()
    if added:
        print(f"[green]Saved {word}[/green]")
    else:
        print(f"[yellow]{word} already saved[/yellow]")


def vocab_remove_cmd(*, config: VibeSyncConfig, word: str, store: str) -> None:
    """Delete a word from the vocabulary list."""

    stores = open_stores(config, context="cli")
    try:
        removed = state.delete_word(pick_store(stores, store), word)
    finally:
        stores.close()
    if not removed:
        print(f"[yellow]{word} not found[/yellow]")
        raise typer.Exit(code=1)
    print(f"[green]Deleted {word}[/green]")


def vocab_list_cmd(*, config: VibeSyncConfig, store: str) -> None:
    """List saved words, most recent first."""

    stores = open_stores(config, context="cli")
    try:
        shared = state.load_shared_state(pick_store(stores, store))
    finally:
        stores.close()
    if not shared.vocabulary:
        print("No saved words")
        return
    table = Table(title=f"Vocabulary ({store})")
    table.add_column("word")
    table.add_column("translation")
    table.add_column("definition")
    for entry in shared.vocabulary:
        table.add_row(
            str(entry.get("word", "")),
            str(entry.get("translation", "")),
            str(entry.get("definition", "")),
        )
    print(table)


def reading_record_cmd(*, config: VibeSyncConfig, store: str) -> None:
    """Count one finished article for today."""

    stores = open_stores(config, context="cli")
    try:
        adapter = pick_store(stores, store)
        count = state.record_reading(adapter)
        streak = state.reading_streak(state.load_shared_state(adapter).reading_history)
    finally:
        stores.close()
    print(f"[green]Today: {count}[/green] (streak {streak} days)")
