"""Trace writer — streams intervals into a Trace Event Format document.

The document is a single JSON array of complete (``"ph":"X"``) and instant
(``"ph":"i"``) events on one synthetic process/thread, loadable by
``chrome://tracing``, Perfetto and speedscope.

Timestamps are relative to a shared epoch and written as fixed-point
microseconds with three decimals, computed from integer nanoseconds so no
precision is lost to float formatting.

Every string is escaped by the writer.  Function display names are resolved
once per function key and cached already escaped.

"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from timetrace._errors import TraceWriteError
from timetrace.events import (
    EventRecord,
    IncludeEvent,
    IncludeEventKind,
    ParseEvent,
    ParseEventKind,
    PassEvent,
    PassEventKind,
    UnitEvent,
    UnitEventKind,
    describe_function,
)

if TYPE_CHECKING:
    from typing import BinaryIO

    from timetrace._types import NameResolver


def format_us(ns: int) -> str:
    """Format a nanosecond count as microseconds with three decimals."""
    sign = "-" if ns < 0 else ""
    whole, frac = divmod(abs(ns), 1000)
    return f"{sign}{whole}.{frac:03d}"


def quote(value: str) -> str:
    """Return ``value`` as an escaped JSON string literal."""
    return json.dumps(value, ensure_ascii=False)


class TraceWriter:
    """Append-only writer for one trace document.

    The opening ``[`` is written on construction and the closing ``]`` by
    ``close()``, which runs exactly once.  Use as a context manager so the
    document is closed on every exit path::

        with TraceWriter(fh, epoch_ns) as writer:
            writer.write_interval(start, end)

    The writer is also a ``MatchSink`` so it can be handed to an
    ``EventTracker`` directly.

    Args:
        sink: Binary stream receiving the document.
        epoch_ns: Timestamp mapped to ``ts`` zero.
        decl_verbosity: Detail level passed to ``resolve_name``.
        resolve_name: Turns an opaque function identity into a display name.

    """

    __slots__ = (
        "_closed",
        "_decl_verbosity",
        "_epoch_ns",
        "_marker_count",
        "_name_cache",
        "_resolve_name",
        "_sink",
        "_slice_count",
    )

    def __init__(
        self,
        sink: BinaryIO,
        epoch_ns: int,
        *,
        decl_verbosity: int = 1,
        resolve_name: NameResolver = describe_function,
    ) -> None:
        self._sink = sink
        self._epoch_ns = epoch_ns
        self._decl_verbosity = decl_verbosity
        self._resolve_name = resolve_name
        self._slice_count = 0
        self._marker_count = 0
        self._name_cache: dict[int, str] = {}
        self._closed = False
        self._write("[")

    def __enter__(self) -> TraceWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def slice_count(self) -> int:
        """Number of entries written so far (intervals, markers and custom)."""
        return self._slice_count

    @property
    def marker_count(self) -> int:
        """Number of mismatch markers written so far."""
        return self._marker_count

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Write the closing delimiter.  Later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self._write("]")

    # ----- MatchSink protocol -----

    def on_match(self, start: EventRecord[Any], end: EventRecord[Any]) -> None:
        self.write_interval(start, end)

    def on_mismatch(self, record: EventRecord[Any]) -> None:
        self.write_marker(record)

    # ----- Entries -----

    def write_interval(self, start: EventRecord[Any], end: EventRecord[Any]) -> None:
        """Write one duration entry for a matched begin/end pair."""
        event = start.event
        args: dict[str, str] | None = None
        match event:
            case UnitEvent():
                name = "unit"
            case IncludeEvent():
                name = "include"
                args = {"file": quote(event.path)}
            case ParseEvent():
                name = "parse" if event.kind is ParseEventKind.START else "genericize"
                args = self._function_args(event.function, event.key)
            case PassEvent():
                name = event.name
                args = self._function_args(event.function, event.key)
            case _:
                msg = f"unsupported event type: {type(event).__name__}"
                raise TypeError(msg)
        self._write_slice(name, start.timestamp_ns, end.timestamp_ns, args)

    def write_marker(self, record: EventRecord[Any]) -> None:
        """Write one instant entry for an unmatched record."""
        event = record.event
        args: dict[str, str] | None = None
        match event:
            case UnitEvent():
                name = "unit (start)" if event.kind is UnitEventKind.START else "unit (end)"
            case IncludeEvent():
                if event.kind is IncludeEventKind.ENTER:
                    name = "include (enter)"
                    args = {"file": quote(event.path)}
                else:
                    name = "include (leave)"
            case ParseEvent():
                name = {
                    ParseEventKind.START: "parse (start)",
                    ParseEventKind.PRE_GENERICIZE: "genericize (start)",
                    ParseEventKind.FINISH: "parse (finish)",
                }[event.kind]
                args = self._function_args(event.function, event.key)
            case PassEvent():
                suffix = " (start)" if event.kind is PassEventKind.START else " (cancelled)"
                name = event.name + suffix
                args = self._function_args(event.function, event.key)
            case _:
                msg = f"unsupported event type: {type(event).__name__}"
                raise TypeError(msg)
        self._marker_count += 1
        self._write_slice(name, record.timestamp_ns, record.timestamp_ns, args)

    def write_custom(self, name: str, start_ns: int, end_ns: int) -> None:
        """Write an entry not derived from an event (e.g. the dump itself)."""
        self._write_slice(name, start_ns, end_ns, None)

    # ----- Internals -----

    def _function_args(self, function: Any, key: int) -> dict[str, str] | None:
        if function is None:
            return None
        return {"function": self._function_name(function, key)}

    def _function_name(self, function: Any, key: int) -> str:
        if key < 0:
            return quote(self._resolve_name(function, self._decl_verbosity))
        cached = self._name_cache.get(key)
        if cached is None:
            cached = quote(self._resolve_name(function, self._decl_verbosity))
            self._name_cache[key] = cached
        return cached

    def _write_slice(
        self,
        name: str,
        start_ns: int,
        end_ns: int,
        args: dict[str, str] | None,
    ) -> None:
        if self._closed:
            msg = "trace document is already closed"
            raise TraceWriteError(msg)

        ts = start_ns - self._epoch_ns
        dur = end_ns - start_ns

        parts = [f'{{"name":{quote(name)},"ts":{format_us(ts)},']
        if dur > 0:
            parts.append(f'"ph":"X","dur":{format_us(dur)},')
        else:
            parts.append('"ph":"i",')
        parts.append('"pid":0,"tid":0')
        if args:
            # values are already escaped
            body = ",".join(f"{quote(k)}:{v}" for k, v in args.items())
            parts.append(f',"args":{{{body}}}')
        parts.append("}")

        if self._slice_count > 0:
            parts.insert(0, ",")
        self._write("".join(parts))
        self._slice_count += 1

    def _write(self, text: str) -> None:
        try:
            self._sink.write(text.encode("utf-8"))
        except OSError as exc:
            msg = f"failed to write trace: {exc}"
            raise TraceWriteError(msg) from exc
