"""Tests for EventHook."""

import pytest

from reqcache import EventHook


class TestEventHook:
    """Tests for observer channels."""

    def test_handlers_run_in_registration_order(self) -> None:
        hook = EventHook()
        calls: list[str] = []
        hook.on(lambda data: calls.append(f"a:{data}"))
        hook.on(lambda data: calls.append(f"b:{data}"))
        hook.trigger(1)
        assert calls == ["a:1", "b:1"]

    def test_trigger_without_payload(self) -> None:
        hook = EventHook()
        calls: list[None] = []
        hook.on(lambda: calls.append(None))
        hook.trigger()
        hook.trigger()
        assert calls == [None, None]

    def test_unsubscribe(self) -> None:
        hook = EventHook()
        calls: list[int] = []
        off = hook.on(calls.append)
        hook.trigger(1)
        off()
        off()  # idempotent
        hook.trigger(2)
        assert calls == [1]
        assert len(hook) == 0

    def test_same_handler_registered_twice(self) -> None:
        hook = EventHook()
        calls: list[int] = []
        first = hook.on(calls.append)
        hook.on(calls.append)
        hook.trigger(1)
        first()
        hook.trigger(2)
        assert calls == [1, 1, 2]

    def test_unsubscribe_during_trigger(self) -> None:
        hook = EventHook()
        calls: list[str] = []

        def once(data: int) -> None:
            calls.append(f"once:{data}")
            off()

        off = hook.on(once)
        hook.on(lambda data: calls.append(f"always:{data}"))
        hook.trigger(1)
        hook.trigger(2)
        assert calls == ["once:1", "always:1", "always:2"]

    def test_subscribe_during_trigger_waits_for_next(self) -> None:
        hook = EventHook()
        calls: list[str] = []

        def register(data: int) -> None:
            calls.append(f"register:{data}")
            hook.on(lambda d: calls.append(f"late:{d}"))

        hook.on(register)
        hook.trigger(1)
        assert calls == ["register:1"]

    def test_off_removes_handler(self) -> None:
        hook = EventHook()
        calls: list[int] = []
        hook.on(calls.append)
        hook.off(calls.append)
        hook.trigger(1)
        assert calls == []

    def test_handler_exception_propagates(self) -> None:
        hook = EventHook()

        def broken(data: int) -> None:
            raise RuntimeError("handler failed")

        hook.on(broken)
        with pytest.raises(RuntimeError, match="handler failed"):
            hook.trigger(1)

    def test_clear(self) -> None:
        hook = EventHook()
        hook.on(print)
        hook.clear()
        assert len(hook) == 0
