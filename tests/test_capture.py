import pytest

from vibesync.store import ExtensionStore, StorageArea
from vibesync.sync.capture import (
    CaptureState,
    CaptureStatus,
    capture_slot,
    next_pending_text,
    selection_slot,
)


def test_capture_slot_lifecycle(extension: ExtensionStore) -> None:
    slot = capture_slot(extension)
    delivered: list[str] = []

    assert slot.status() == CaptureStatus(CaptureState.EMPTY)

    slot.produce("Hello world article text")
    assert slot.status() == CaptureStatus(CaptureState.PENDING, "Hello world article text")

    forwarded = slot.forward(delivered.append)
    assert forwarded.state is CaptureState.DELIVERED
    assert delivered == ["Hello world article text"]
    assert extension.get_one("capturedFullPage") == "Hello world article text"

    consumed = slot.consume()
    assert consumed == CaptureStatus(CaptureState.CONSUMED, "Hello world article text")
    assert slot.status() == CaptureStatus(CaptureState.EMPTY)
    assert extension.get(["capturedFullPage"]) == {}


def test_capture_is_forwarded_once_per_payload(extension: ExtensionStore) -> None:
    slot = capture_slot(extension)
    delivered: list[str] = []
    slot.produce("first article")

    slot.forward(delivered.append)
    slot.forward(delivered.append)
    slot.produce("second article")
    slot.forward(delivered.append)

    assert delivered == ["first article", "second article"]


def test_forward_on_empty_slot_does_nothing(extension: ExtensionStore) -> None:
    delivered: list[str] = []

    status = capture_slot(extension).forward(delivered.append)

    assert status.state is CaptureState.EMPTY
    assert delivered == []


def test_selection_slot_clears_on_forward(extension: ExtensionStore) -> None:
    slot = selection_slot(extension)
    delivered: list[str] = []
    slot.produce("serendipity")

    status = slot.forward(delivered.append)

    assert status == CaptureStatus(CaptureState.CONSUMED, "serendipity")
    assert delivered == ["serendipity"]
    assert extension.get(["selectedText"]) == {}


def test_watch_forwards_payload_written_by_another_context(
    extension_area: StorageArea,
) -> None:
    bridge_side = ExtensionStore(extension_area, context="bridge")
    background = ExtensionStore(extension_area, context="background")
    delivered: list[str] = []
    slot = capture_slot(bridge_side)
    subscription = slot.watch(delivered.append)

    capture_slot(background).produce("Hello world article text")

    assert delivered == ["Hello world article text"]
    assert slot.status().state is CaptureState.DELIVERED
    subscription.cancel()


def test_produce_rejects_empty_payload(extension: ExtensionStore) -> None:
    with pytest.raises(ValueError, match="non-empty"):
        capture_slot(extension).produce("   ")


def test_next_pending_text_prefers_selection(extension: ExtensionStore) -> None:
    capture_slot(extension).produce("full article")
    selection_slot(extension).produce("one phrase")

    assert next_pending_text(extension) == "one phrase"
    assert extension.get(["selectedText"]) == {}
    assert next_pending_text(extension) == "full article"
    assert extension.get_one("capturedFullPage") == "full article"


def test_next_pending_text_with_nothing_pending(extension: ExtensionStore) -> None:
    assert next_pending_text(extension) is None
