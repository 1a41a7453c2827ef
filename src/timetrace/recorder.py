"""Event recorder — buffers host callbacks and dumps them as a trace.

The host compiler calls one hook per instrumentation point.  Each hook stamps
its event immediately and appends it to the stream for its category; no
matching happens until the run completes.  ``dump()`` then replays the
streams through an ``EventTracker`` wired to a ``TraceWriter``, records how
long that took as a final entry, and closes the document.

Pass timing uses marker passes inserted into the host's pass lists:

- ``pass_execution(name)`` fires before every pass and opens it.
- A ``SINGLE`` marker placed after a pass closes that pass.
- ``START_LIST`` / ``END_LIST`` markers bracket a whole pass list for the
  current function.

"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from timetrace._errors import TraceWriteError
from timetrace.config import TraceConfig
from timetrace.events import (
    NO_FUNCTION_KEY,
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
    now_ns,
)
from timetrace.tracker import EventTracker
from timetrace.writer import TraceWriter

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from typing import BinaryIO

    from timetrace._types import NameResolver


class PassMarker(Enum):
    """Role of an inserted marker pass."""

    SINGLE = "single"
    START_LIST = "start_list"
    END_LIST = "end_list"


@dataclass(frozen=True, slots=True)
class DumpSummary:
    """Outcome of one ``dump()``.

    Attributes:
        entries: Entries written, including the final dump entry.
        markers: Mismatch markers among them.
        dump_ms: Time spent writing the document.
        path: Destination, when written through ``write_trace()``.

    """

    entries: int
    markers: int
    dump_ms: float
    path: Path | None = None


def compute_epoch(streams: Iterable[Sequence[EventRecord[Any]]]) -> int | None:
    """Earliest first timestamp across the non-empty streams.

    Each stream is in arrival order, so its first record is its earliest.
    Returns ``None`` when every stream is empty.

    """
    firsts = [stream[0].timestamp_ns for stream in streams if stream]
    return min(firsts) if firsts else None


class EventRecorder:
    """Collects host events for a single run.

    Args:
        clock: Monotonic nanosecond clock used to stamp events.

    """

    __slots__ = ("_clock", "_include", "_parse", "_passes", "_unit")

    def __init__(self, clock: Callable[[], int] = now_ns) -> None:
        self._clock = clock
        self._unit: list[EventRecord[UnitEvent]] = []
        self._include: list[EventRecord[IncludeEvent]] = []
        self._parse: list[EventRecord[ParseEvent]] = []
        self._passes: list[EventRecord[PassEvent]] = []

    def __len__(self) -> int:
        return len(self._unit) + len(self._include) + len(self._parse) + len(self._passes)

    def add(self, record: EventRecord[Any]) -> None:
        """Append an already stamped record to its category's stream."""
        match record.event:
            case UnitEvent():
                self._unit.append(record)
            case IncludeEvent():
                self._include.append(record)
            case ParseEvent():
                self._parse.append(record)
            case PassEvent():
                self._passes.append(record)
            case _:
                msg = f"unsupported event type: {type(record.event).__name__}"
                raise TypeError(msg)

    def _observe(self, event: Any) -> None:
        self.add(EventRecord.observe(event, self._clock))

    # ----- Translation unit -----

    def start_unit(self) -> None:
        self._observe(UnitEvent(UnitEventKind.START))

    def finish_unit(self) -> None:
        self._observe(UnitEvent(UnitEventKind.END))

    # ----- Includes -----

    def enter_file(self, path: str) -> None:
        self._observe(IncludeEvent(IncludeEventKind.ENTER, path))

    def leave_file(self) -> None:
        self._observe(IncludeEvent(IncludeEventKind.LEAVE))

    # ----- Function parsing -----

    def start_parse_function(self, function: Any, key: int) -> None:
        self._observe(ParseEvent(ParseEventKind.START, function, key))

    def pre_genericize(self, function: Any, key: int) -> None:
        self._observe(ParseEvent(ParseEventKind.PRE_GENERICIZE, function, key))

    def finish_parse_function(self, function: Any, key: int) -> None:
        self._observe(ParseEvent(ParseEventKind.FINISH, function, key))

    # ----- Passes -----

    def pass_start(
        self, name: str, function: Any = None, key: int = NO_FUNCTION_KEY
    ) -> None:
        self._observe(PassEvent(PassEventKind.START, name, function, key))

    def pass_end(
        self, name: str, function: Any = None, key: int = NO_FUNCTION_KEY
    ) -> None:
        self._observe(PassEvent(PassEventKind.END, name, function, key))

    def pass_execution(self, name: str) -> None:
        """A pass is about to execute."""
        self.pass_start(name)

    def pass_gate(
        self,
        marker: PassMarker,
        name: str,
        function: Any = None,
        key: int = NO_FUNCTION_KEY,
    ) -> None:
        """A marker pass was reached for ``function`` (if any)."""
        match marker:
            case PassMarker.SINGLE:
                self.pass_end(name)
            case PassMarker.START_LIST:
                self.pass_start(name, function, key)
            case PassMarker.END_LIST:
                self.pass_end(name, function, key)

    # ----- Dump -----

    def dump(
        self,
        sink: BinaryIO,
        *,
        decl_verbosity: int = 1,
        resolve_name: NameResolver = describe_function,
        dump_name: str = "plugin_dump",
    ) -> DumpSummary:
        """Correlate all buffered events and write them to ``sink``.

        The buffers are consumed: the recorder is empty afterwards.

        """
        dump_start = self._clock()
        streams = (self._unit, self._include, self._parse, self._passes)
        epoch = compute_epoch(streams)
        self._unit, self._include, self._parse, self._passes = [], [], [], []

        t0 = time.perf_counter()
        with TraceWriter(
            sink,
            dump_start if epoch is None else epoch,
            decl_verbosity=decl_verbosity,
            resolve_name=resolve_name,
        ) as writer:
            with EventTracker(writer) as tracker:
                for stream in streams:
                    for record in stream:
                        tracker.submit(record)
            writer.write_custom(dump_name, dump_start, self._clock())
        dump_ms = (time.perf_counter() - t0) * 1000

        return DumpSummary(
            entries=writer.slice_count,
            markers=writer.marker_count,
            dump_ms=dump_ms,
        )

    def write_trace(
        self,
        base_name: str | Path,
        config: TraceConfig | None = None,
        *,
        resolve_name: NameResolver = describe_function,
    ) -> DumpSummary:
        """Dump into the trace document for ``base_name``.

        Raises:
            TraceWriteError: The document could not be created or written.

        """
        config = config if config is not None else TraceConfig()
        path = config.trace_path(base_name)
        try:
            fh = path.open("wb")
        except OSError as exc:
            msg = f"cannot open {path}: {exc}"
            raise TraceWriteError(msg) from exc
        with fh:
            summary = self.dump(
                fh,
                decl_verbosity=config.decl_verbosity,
                resolve_name=resolve_name,
                dump_name=config.dump_name,
            )
        summary = replace(summary, path=path)
        if config.verbose:
            _print_summary(summary)
        return summary


def _print_summary(s: DumpSummary) -> None:
    """Print a one-line dump summary to stderr."""
    entries = "entry" if s.entries == 1 else "entries"
    markers = "marker" if s.markers == 1 else "markers"
    print(
        f"  [{s.dump_ms:.0f}ms] {s.path} -> {s.entries} {entries}, "
        f"{s.markers} unmatched {markers}",
        file=sys.stderr,
    )
