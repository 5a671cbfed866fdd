from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from vibesync.store import ExtensionStore, PageStore, StorageArea
from vibesync.sync.bridge import reset_bridge


class Ticker:
    """Deterministic, strictly increasing timestamps shared by both areas."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"2026-01-01T00:00:00.{self.count:06d}+00:00"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.setenv("VIBESYNC_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("VIBESYNC_PID", str(tmp_path / "bridge.pid"))
    monkeypatch.setenv("VIBESYNC_LOG", str(tmp_path / "bridge.log"))
    monkeypatch.setenv("VIBESYNC_PAGE_DB", str(tmp_path / "page.sqlite"))
    monkeypatch.setenv("VIBESYNC_EXTENSION_DB", str(tmp_path / "extension.sqlite"))
    yield
    reset_bridge()


@pytest.fixture
def ticker() -> Ticker:
    return Ticker()


@pytest.fixture
def page_area(tmp_path: Path, ticker: Ticker) -> Iterator[StorageArea]:
    area = StorageArea(tmp_path / "page.sqlite", name="page", clock=ticker)
    yield area
    area.close()


@pytest.fixture
def extension_area(tmp_path: Path, ticker: Ticker) -> Iterator[StorageArea]:
    area = StorageArea(tmp_path / "extension.sqlite", name="extension", clock=ticker)
    yield area
    area.close()


@pytest.fixture
def page(page_area: StorageArea) -> PageStore:
    return PageStore(page_area, context="bridge")


@pytest.fixture
def extension(extension_area: StorageArea) -> ExtensionStore:
    return ExtensionStore(extension_area, context="bridge")
