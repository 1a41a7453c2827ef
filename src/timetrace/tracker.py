"""Event tracker — correlates begin/end records into intervals.

Every category shares one LIFO match primitive: a terminating record pops the
most recent pending begin on its stack and produces an interval, or is
reported as a mismatch when the stack is empty.  Unit and include events use
a single stack; parse events are keyed by function key and pass events by
pass name.

Parse events keep two keyed collections.  ``START`` pushes onto the parse
stacks and ``PRE_GENERICIZE`` pushes onto the genericize stacks while closing
the parse interval.  ``FINISH`` closes whichever of the two is pending,
trying the parse stacks first, so a function that never reached
pre-genericize still produces a single ``parse`` interval.

Keyed stacks are removed as soon as they drain, so ``flush()`` only visits
keys with pending work and a reused key starts from a fresh stack.

"""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any, Protocol

from timetrace.events import (
    EventRecord,
    IncludeEvent,
    IncludeEventKind,
    Interval,
    Mismatch,
    ParseEvent,
    ParseEventKind,
    PassEvent,
    PassEventKind,
    UnitEvent,
    UnitEventKind,
)

type _Stack = list[EventRecord[Any]]
type _StackMap = dict[Hashable, _Stack]


class MatchSink(Protocol):
    """Receives the outcome of every terminating or flushed record."""

    def on_match(self, start: EventRecord[Any], end: EventRecord[Any]) -> None: ...

    def on_mismatch(self, record: EventRecord[Any]) -> None: ...


class OutcomeLog:
    """A ``MatchSink`` that keeps outcomes in the order they were produced."""

    __slots__ = ("outcomes",)

    def __init__(self) -> None:
        self.outcomes: list[Interval[Any] | Mismatch[Any]] = []

    def on_match(self, start: EventRecord[Any], end: EventRecord[Any]) -> None:
        self.outcomes.append(Interval(start=start, end=end))

    def on_mismatch(self, record: EventRecord[Any]) -> None:
        self.outcomes.append(Mismatch(record=record))

    @property
    def intervals(self) -> list[Interval[Any]]:
        return [o for o in self.outcomes if isinstance(o, Interval)]

    @property
    def mismatches(self) -> list[Mismatch[Any]]:
        return [o for o in self.outcomes if isinstance(o, Mismatch)]


# ---------------------------------------------------------------------------
# Stack primitives
# ---------------------------------------------------------------------------


def _push(stacks: _StackMap, key: Hashable, record: EventRecord[Any]) -> None:
    stacks.setdefault(key, []).append(record)


def _pop(stack: _Stack) -> EventRecord[Any] | None:
    return stack.pop() if stack else None


def _pop_keyed(stacks: _StackMap, key: Hashable) -> EventRecord[Any] | None:
    stack = stacks.get(key)
    if stack is None:
        return None
    record = stack.pop()
    if not stack:
        del stacks[key]
    return record


class EventTracker:
    """Matches begin/end records per category and reports the outcome.

    Args:
        sink: Receives every matched pair and every mismatch.

    Usage::

        log = OutcomeLog()
        tracker = EventTracker(log)
        for record in records:
            tracker.submit(record)
        tracker.flush()

    """

    __slots__ = ("_genericize", "_include", "_parse", "_passes", "_sink", "_unit")

    def __init__(self, sink: MatchSink) -> None:
        self._sink = sink
        self._unit: _Stack = []
        self._include: _Stack = []
        self._parse: _StackMap = {}
        self._genericize: _StackMap = {}
        self._passes: _StackMap = {}

    def __enter__(self) -> EventTracker:
        return self

    def __exit__(self, exc_type: object, *exc_info: object) -> None:
        # pending begins are only anomalies if every record was submitted
        if exc_type is None:
            self.flush()

    @property
    def pending(self) -> int:
        """Number of begin records still waiting for their end."""
        keyed = (self._parse, self._genericize, self._passes)
        return (
            len(self._unit)
            + len(self._include)
            + sum(len(stack) for stacks in keyed for stack in stacks.values())
        )

    # ----- Submission -----

    def submit(self, record: EventRecord[Any]) -> None:
        """Route a record to the policy for its category."""
        match record.event:
            case UnitEvent():
                self.submit_unit(record)
            case IncludeEvent():
                self.submit_include(record)
            case ParseEvent():
                self.submit_parse(record)
            case PassEvent():
                self.submit_pass(record)
            case _:
                msg = f"unsupported event type: {type(record.event).__name__}"
                raise TypeError(msg)

    def submit_unit(self, record: EventRecord[UnitEvent]) -> None:
        if record.event.kind is UnitEventKind.START:
            self._unit.append(record)
        else:
            self._resolve(_pop(self._unit), record)

    def submit_include(self, record: EventRecord[IncludeEvent]) -> None:
        if record.event.kind is IncludeEventKind.ENTER:
            self._include.append(record)
        else:
            self._resolve(_pop(self._include), record)

    def submit_pass(self, record: EventRecord[PassEvent]) -> None:
        name = record.event.name
        if record.event.kind is PassEventKind.START:
            _push(self._passes, name, record)
        else:
            self._resolve(_pop_keyed(self._passes, name), record)

    def submit_parse(self, record: EventRecord[ParseEvent]) -> None:
        key = record.event.key
        match record.event.kind:
            case ParseEventKind.START:
                _push(self._parse, key, record)
            case ParseEventKind.PRE_GENERICIZE:
                _push(self._genericize, key, record)
                self._resolve(_pop_keyed(self._parse, key), record)
            case ParseEventKind.FINISH:
                start = _pop_keyed(self._parse, key)
                if start is None:
                    start = _pop_keyed(self._genericize, key)
                self._resolve(start, record)

    # ----- Shutdown -----

    def flush(self) -> None:
        """Report every pending begin as a mismatch and empty all stacks.

        Stacks are drained top-first.  Calling ``flush()`` again on an empty
        tracker reports nothing.

        """
        for stack in (self._unit, self._include):
            self._drain(stack)
        for stacks in (self._parse, self._genericize, self._passes):
            for stack in stacks.values():
                self._drain(stack)
            stacks.clear()

    def _drain(self, stack: _Stack) -> None:
        while stack:
            self._sink.on_mismatch(stack.pop())

    def _resolve(self, start: EventRecord[Any] | None, end: EventRecord[Any]) -> None:
        if start is not None:
            self._sink.on_match(start, end)
        else:
            self._sink.on_mismatch(end)
