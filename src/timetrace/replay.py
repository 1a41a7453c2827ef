"""Replay recorded event logs.

An event log is JSON Lines, one event per line, in arrival order::

    {"ts": 1000, "event": "unit", "kind": "start"}
    {"ts": 1200, "event": "include", "kind": "enter", "file": "a.h"}
    {"ts": 1500, "event": "include", "kind": "leave"}
    {"ts": 2000, "event": "parse", "kind": "start", "key": 7,
     "function": {"name": "f", "scope": "ns", "signature": "int"}}
    {"ts": 2600, "event": "pass", "kind": "start", "name": "ssa", "key": 7,
     "function": "ns::f"}

``ts`` is an integer monotonic nanosecond timestamp.  ``function`` is either a
display name or an object with ``name`` and optional ``scope`` and
``signature``.  Blank lines are skipped.

"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from timetrace._errors import ReplayError
from timetrace.events import (
    NO_FUNCTION_KEY,
    EventRecord,
    FunctionRef,
    IncludeEvent,
    IncludeEventKind,
    ParseEvent,
    ParseEventKind,
    PassEvent,
    PassEventKind,
    UnitEvent,
    UnitEventKind,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from timetrace.events import Event


def load_events(path: Path) -> list[EventRecord[Any]]:
    """Read every record from the event log at ``path``."""
    try:
        with path.open("rb") as fh:
            return list(iter_events(fh))
    except OSError as exc:
        msg = f"cannot read {path}: {exc}"
        raise ReplayError(msg) from exc


def iter_events(lines: Iterable[str | bytes]) -> Iterator[EventRecord[Any]]:
    """Decode records lazily from an iterable of log lines.

    Byte lines are decoded as UTF-8 one at a time so a bad line reports its
    line number.

    """
    for lineno, line in enumerate(lines, start=1):
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ReplayError(f"invalid UTF-8: {exc.reason}", lineno=lineno) from exc
        if line.strip():
            yield parse_event_line(line, lineno)


def parse_event_line(line: str, lineno: int = 0) -> EventRecord[Any]:
    """Decode a single log line into an ``EventRecord``.

    Raises:
        ReplayError: The line is not valid JSON or not a known event.

    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ReplayError(f"invalid JSON: {exc.msg}", lineno=lineno) from exc
    if not isinstance(data, dict):
        raise ReplayError("expected a JSON object", lineno=lineno)

    ts = data.get("ts")
    if not isinstance(ts, int) or isinstance(ts, bool):
        raise ReplayError("'ts' must be an integer nanosecond timestamp", lineno=lineno)

    try:
        event = _decode_event(data)
    except (KeyError, ValueError, TypeError) as exc:
        raise ReplayError(f"bad {data.get('event')!r} event: {exc}", lineno=lineno) from exc
    return EventRecord(event=event, timestamp_ns=ts)


def _decode_event(data: dict[str, Any]) -> Event:
    category = data.get("event")
    kind = data["kind"]
    match category:
        case "unit":
            return UnitEvent(UnitEventKind(kind))
        case "include":
            include_kind = IncludeEventKind(kind)
            path = data["file"] if include_kind is IncludeEventKind.ENTER else ""
            return IncludeEvent(include_kind, _require_str(path, "file"))
        case "parse":
            return ParseEvent(
                ParseEventKind(kind),
                _decode_function(data["function"]),
                _require_int(data["key"], "key"),
            )
        case "pass":
            function = data.get("function")
            return PassEvent(
                PassEventKind(kind),
                _require_str(data["name"], "name"),
                None if function is None else _decode_function(function),
                _require_int(data.get("key", NO_FUNCTION_KEY), "key"),
            )
        case _:
            msg = f"unknown event category {category!r}"
            raise ValueError(msg)


def _decode_function(value: Any) -> FunctionRef:
    if isinstance(value, str):
        return FunctionRef(name=value)
    if isinstance(value, dict):
        return FunctionRef(
            name=_require_str(value["name"], "function.name"),
            scope=_require_str(value.get("scope", ""), "function.scope"),
            signature=_require_str(value.get("signature", ""), "function.signature"),
        )
    msg = "'function' must be a string or an object"
    raise TypeError(msg)


def _require_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        msg = f"{field!r} must be a string"
        raise TypeError(msg)
    return value


def _require_int(value: Any, field: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        msg = f"{field!r} must be an integer"
        raise TypeError(msg)
    return value
