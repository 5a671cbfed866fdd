from vibesync.signals import SyncSignal
from vibesync.store import ExtensionStore, PageStore, StorageChange
from vibesync.sync.propagate import (
    GUARDED,
    UNCHANGED,
    WRITTEN,
    propagate_extension_changes,
    propagate_page_changes,
)


def test_page_change_is_decoded_into_extension(extension: ExtensionStore) -> None:
    changes = {"vocabulary": StorageChange(None, '[{"word":"lucid"}]')}

    outcomes = propagate_page_changes(changes, extension)

    assert outcomes == {"vocabulary": WRITTEN}
    assert extension.get_one("vocabulary") == [{"word": "lucid"}]


def test_page_change_keeps_unparseable_text(extension: ExtensionStore) -> None:
    propagate_page_changes({"credential": StorageChange(None, "not-json{")}, extension)

    assert extension.get_one("credential") == "not-json{"


def test_empty_credential_from_page_is_dropped(extension: ExtensionStore) -> None:
    extension.set({"credential": "abc123"})

    outcomes = propagate_page_changes({"credential": StorageChange("abc123", "")}, extension)

    assert outcomes == {"credential": GUARDED}
    assert extension.get_one("credential") == "abc123"


def test_removed_credential_from_page_is_dropped(extension: ExtensionStore) -> None:
    extension.set({"credential": "abc123"})

    outcomes = propagate_page_changes({"credential": StorageChange("abc123", None)}, extension)

    assert outcomes == {"credential": GUARDED}
    assert extension.get_one("credential") == "abc123"


def test_removed_vocabulary_from_page_is_removed(extension: ExtensionStore) -> None:
    extension.set({"vocabulary": [{"word": "lucid"}]})

    outcomes = propagate_page_changes({"vocabulary": StorageChange("[]", None)}, extension)

    assert outcomes == {"vocabulary": WRITTEN}
    assert extension.get(["vocabulary"]) == {}


def test_page_change_outside_shared_keys_is_ignored(extension: ExtensionStore) -> None:
    outcomes = propagate_page_changes({"theme": StorageChange(None, "dark")}, extension)

    assert outcomes == {}
    assert extension.get(["theme"]) == {}


def test_equal_page_value_is_not_rewritten(extension: ExtensionStore) -> None:
    extension.set({"readingHistory": {"2026-1-5": 1}})
    seen: list[str] = []
    extension.subscribe(lambda changes, area: seen.extend(changes))

    outcomes = propagate_page_changes(
        {"readingHistory": StorageChange(None, '{"2026-1-5": 1}')}, extension
    )

    assert outcomes == {"readingHistory": UNCHANGED}
    assert seen == []


def test_extension_change_is_serialized_into_page(page: PageStore) -> None:
    signal = SyncSignal()
    fired: list[bool] = []
    signal.connect(lambda: fired.append(True))
    changes = {
        "vocabulary": StorageChange(None, [{"word": "lucid"}]),
        "credential": StorageChange(None, "k1"),
    }

    outcomes = propagate_extension_changes(changes, "local", page, signal)

    assert outcomes == {"vocabulary": WRITTEN, "credential": WRITTEN}
    assert page.get_raw(["vocabulary", "credential"]) == {
        "vocabulary": '[{"word":"lucid"}]',
        "credential": "k1",
    }
    assert fired == [True]


def test_extension_change_in_other_area_is_ignored(page: PageStore) -> None:
    outcomes = propagate_extension_changes(
        {"credential": StorageChange(None, "k1")}, "sync", page
    )

    assert outcomes == {}
    assert page.get(["credential"]) == {}


def test_empty_credential_from_extension_is_dropped(page: PageStore) -> None:
    page.set({"credential": "abc123"})
    signal = SyncSignal()
    fired: list[bool] = []
    signal.connect(lambda: fired.append(True))

    outcomes = propagate_extension_changes(
        {"credential": StorageChange("abc123", None)}, "local", page, signal
    )

    assert outcomes == {"credential": GUARDED}
    assert page.get_one("credential") == "abc123"
    assert fired == []


def test_unchanged_extension_value_does_not_signal(page: PageStore) -> None:
    page.set({"vocabulary": '[{"word": "lucid"}]'})
    signal = SyncSignal()
    fired: list[bool] = []
    signal.connect(lambda: fired.append(True))

    outcomes = propagate_extension_changes(
        {"vocabulary": StorageChange(None, [{"word": "lucid"}])}, "local", page, signal
    )

    assert outcomes == {"vocabulary": UNCHANGED}
    assert fired == []


def test_page_list_does_not_match_extension_string(extension: ExtensionStore) -> None:
    extension.set({"vocabulary": "[1]"})

    outcomes = propagate_page_changes({"vocabulary": StorageChange(None, "[1]")}, extension)

    assert outcomes == {"vocabulary": WRITTEN}
    assert extension.get_one("vocabulary") == [1]


def test_page_nan_text_is_copied_as_a_string(extension: ExtensionStore) -> None:
    outcomes = propagate_page_changes({"credential": StorageChange(None, "NaN")}, extension)

    assert outcomes == {"credential": WRITTEN}
    assert extension.get_one("credential") == "NaN"

    again = propagate_page_changes({"credential": StorageChange("NaN", "NaN")}, extension)
    assert again == {"credential": UNCHANGED}


def test_extension_string_already_spelled_by_page_text(page: PageStore) -> None:
    page.set({"vocabulary": "[1]"})
    signal = SyncSignal()
    fired: list[bool] = []
    signal.connect(lambda: fired.append(True))

    outcomes = propagate_extension_changes(
        {"vocabulary": StorageChange(None, "[1]")}, "local", page, signal
    )

    assert outcomes == {"vocabulary": UNCHANGED}
    assert fired == []
