"""Tests for timetrace.events — the event model."""

import dataclasses

import pytest

from timetrace.events import (
    NO_FUNCTION_KEY,
    EventRecord,
    FunctionRef,
    IncludeEvent,
    IncludeEventKind,
    Interval,
    ParseEvent,
    ParseEventKind,
    PassEvent,
    PassEventKind,
    UnitEvent,
    UnitEventKind,
    describe_function,
    now_ns,
)


class TestEvents:
    """Event dataclasses are immutable value objects."""

    def test_events_are_frozen(self) -> None:
        event = IncludeEvent(IncludeEventKind.ENTER, "a.h")
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.path = "b.h"  # type: ignore[misc]

    def test_leave_has_no_path(self) -> None:
        assert IncludeEvent(IncludeEventKind.LEAVE).path == ""

    def test_pass_defaults_to_no_function(self) -> None:
        event = PassEvent(PassEventKind.START, "ssa")
        assert event.function is None
        assert event.key == NO_FUNCTION_KEY == -1

    def test_equality_by_value(self) -> None:
        assert ParseEvent(ParseEventKind.START, "f", 3) == ParseEvent(
            ParseEventKind.START, "f", 3
        )


class TestEventRecord:
    """EventRecord — timestamped events."""

    def test_observe_uses_clock(self) -> None:
        record = EventRecord.observe(UnitEvent(UnitEventKind.START), lambda: 42)
        assert record.timestamp_ns == 42
        assert record.event.kind is UnitEventKind.START

    def test_observe_default_clock_is_monotonic(self) -> None:
        before = now_ns()
        record = EventRecord.observe(UnitEvent(UnitEventKind.START))
        assert record.timestamp_ns >= before

    def test_record_is_frozen(self) -> None:
        record = EventRecord(UnitEvent(UnitEventKind.END), 10)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.timestamp_ns = 11  # type: ignore[misc]

    def test_interval_duration(self) -> None:
        start = EventRecord(UnitEvent(UnitEventKind.START), 100)
        end = EventRecord(UnitEvent(UnitEventKind.END), 350)
        assert Interval(start, end).duration_ns == 250


class TestFunctionNames:
    """FunctionRef and the default name resolver."""

    def test_verbosity_levels(self) -> None:
        ref = FunctionRef(name="run", scope="ns::Worker", signature="int, char*")
        assert ref.printable_name(0) == "run"
        assert ref.printable_name(1) == "ns::Worker::run"
        assert ref.printable_name(2) == "ns::Worker::run(int, char*)"

    def test_unscoped_name(self) -> None:
        ref = FunctionRef(name="main")
        assert ref.printable_name(1) == "main"
        assert ref.printable_name(2) == "main()"

    def test_describe_uses_printable_name(self) -> None:
        assert describe_function(FunctionRef("f", "a"), 1) == "a::f"

    def test_describe_falls_back_to_str(self) -> None:
        assert describe_function("plain", 2) == "plain"
        assert describe_function(17, 0) == "17"

    def test_describe_none_is_empty(self) -> None:
        assert describe_function(None, 1) == ""
