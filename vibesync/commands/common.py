from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import typer
from rich import print

from vibesync.config import VibeSyncConfig, read_config_file, write_config_file
from vibesync.store import ExtensionStore, PageStore, StorageAdapter, StorageArea

STORE_CHOICES = ("page", "extension")


@dataclass
class StorePair:
    page: PageStore
    extension: ExtensionStore

    def close(self) -> None:
        self.page.area.close()
        self.extension.area.close()


def open_stores(
    config: VibeSyncConfig,
    *,
    context: str,
    page_db: str | None = None,
    extension_db: str | None = None,
) -> StorePair:
    page_area = StorageArea(page_db or config.page_db_path, name="page")
    extension_area = StorageArea(extension_db or config.extension_db_path, name="extension")
    return StorePair(
        page=PageStore(page_area, context=context),
        extension=ExtensionStore(extension_area, context=context),
    )


def pick_store(stores: StorePair, name: str) -> StorageAdapter:
    if name == "page":
        return stores.page
    if name == "extension":
        return stores.extension
    print(f"[red]Unknown store {name!r}; use one of: {', '.join(STORE_CHOICES)}[/red]")
    raise typer.Exit(code=1)


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def write_config_or_exit(data: dict[str, Any]) -> None:
    try:
        write_config_file(data)
    except OSError as exc:
        print(f"[red]Failed to write config: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def preview(value: Any, limit: int = 60) -> str:
    if value is None:
        return "-"
    text = value if isinstance(value, str) else repr(value)
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
