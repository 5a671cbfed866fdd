from vibesync.signals import SyncSignal


def test_dispatch_reaches_every_listener() -> None:
    signal = SyncSignal()
    calls: list[str] = []
    signal.connect(lambda: calls.append("a"))
    signal.connect(lambda: calls.append("b"))

    assert signal.dispatch() == 2
    assert calls == ["a", "b"]


def test_failing_listener_does_not_stop_dispatch() -> None:
    signal = SyncSignal()
    calls: list[str] = []

    def _boom() -> None:
        raise RuntimeError("render failed")

    signal.connect(_boom)
    signal.connect(lambda: calls.append("b"))

    signal.dispatch()

    assert calls == ["b"]


def test_disconnected_listener_is_not_called() -> None:
    signal = SyncSignal()
    calls: list[str] = []
    subscription = signal.connect(lambda: calls.append("a"))

    subscription.cancel()

    assert signal.dispatch() == 0
    assert calls == []
