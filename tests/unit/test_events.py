"""Tests for the EventEmitter bus."""

from __future__ import annotations

import pytest

from ttlstore.events import EventEmitter


class TestEventEmitter:
    def test_on_and_emit(self):
        events = EventEmitter()
        received: list[object] = []
        events.on("cache:set", received.append)
        events.emit("cache:set", {"key": "k"})
        assert received == [{"key": "k"}]

    def test_emit_without_data(self):
        events = EventEmitter()
        received: list[object] = []
        events.on("cache:clear", received.append)
        events.emit("cache:clear")
        assert received == [None]

    def test_unsubscribe_function(self):
        events = EventEmitter()
        received: list[object] = []
        unsubscribe = events.on("e", received.append)
        unsubscribe()
        events.emit("e", 1)
        assert received == []

    def test_off(self):
        events = EventEmitter()
        received: list[object] = []
        events.on("e", received.append)
        events.off("e", received.append)
        events.off("unknown", received.append)
        events.emit("e", 1)
        assert received == []

    def test_same_listener_registered_once(self):
        events = EventEmitter()
        received: list[object] = []
        events.on("e", received.append)
        events.on("e", received.append)
        events.emit("e", 1)
        assert received == [1]
        assert events.listener_count("e") == 1

    def test_once(self):
        events = EventEmitter()
        received: list[object] = []
        events.once("e", received.append)
        events.emit("e", 1)
        events.emit("e", 2)
        assert received == [1]
        assert events.listener_count("e") == 0

    def test_wildcard_receives_event_name(self):
        events = EventEmitter()
        received: list[tuple[str, object]] = []
        events.on("cache:*", lambda event, data: received.append((event, data)))
        events.emit("cache:set", 1)
        events.emit("cache:delete", 2)
        events.emit("storage:put", 3)
        assert received == [("cache:set", 1), ("cache:delete", 2)]

    def test_exact_listeners_run_before_wildcards(self):
        events = EventEmitter()
        order: list[str] = []
        events.on("a:*", lambda event, data: order.append("wildcard"))
        events.on("a:b", lambda data: order.append("exact"))
        events.emit("a:b")
        assert order == ["exact", "wildcard"]

    def test_failing_listener_does_not_stop_delivery(self):
        events = EventEmitter()
        received: list[object] = []

        def boom(data):
            raise ValueError("first")

        def boom_again(data):
            raise KeyError("second")

        events.on("e", boom)
        events.on("e", received.append)
        events.on("e", boom_again)
        with pytest.raises(ValueError, match="first"):
            events.emit("e", 1)
        assert received == [1]

    def test_remove_all_listeners(self):
        events = EventEmitter()
        events.on("a", print)
        events.on("b", print)
        events.remove_all_listeners("a")
        assert events.listener_count("a") == 0
        assert events.listener_count("b") == 1
        events.remove_all_listeners()
        assert events.listener_count("b") == 0

    def test_listener_may_unsubscribe_during_emit(self):
        events = EventEmitter()
        received: list[object] = []

        def first(data):
            received.append(("first", data))
            events.off("e", first)

        events.on("e", first)
        events.on("e", lambda data: received.append(("second", data)))
        events.emit("e", 1)
        events.emit("e", 2)
        assert received == [("first", 1), ("second", 1), ("second", 2)]
