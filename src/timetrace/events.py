"""Event model for compiler phase tracing.

Defines the four categories of observable phase transitions emitted by the
host compiler:

- **Unit**: translation unit start / end
- **Include**: entering / leaving a source file
- **Parse**: per-function parse start, pre-genericize, finish
- **Pass**: named optimisation pass (or pass list) start / end

All events are frozen dataclasses.  An ``EventRecord`` pairs an event with the
monotonic nanosecond timestamp at which it was observed; it is never
re-timestamped afterwards.

"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

#: Key carried by pass events that are not tied to a specific function.
NO_FUNCTION_KEY = -1


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class UnitEventKind(Enum):
    START = "start"
    END = "end"


class IncludeEventKind(Enum):
    ENTER = "enter"
    LEAVE = "leave"


class ParseEventKind(Enum):
    START = "start"
    PRE_GENERICIZE = "pre_genericize"
    FINISH = "finish"


class PassEventKind(Enum):
    START = "start"
    END = "end"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UnitEvent:
    """A translation unit started or ended."""

    kind: UnitEventKind


@dataclass(frozen=True, slots=True)
class IncludeEvent:
    """The preprocessor entered or left a source file.

    Attributes:
        kind: Enter or leave.
        path: File being entered.  Empty for ``LEAVE``.

    """

    kind: IncludeEventKind
    path: str = ""


@dataclass(frozen=True, slots=True)
class ParseEvent:
    """A function reached a parse phase boundary.

    Attributes:
        kind: Start, pre-genericize, or finish.
        function: Opaque function identity, resolved to a display name only
            when the trace is written.
        key: Integer identity of the function, unique while the function is
            being processed.

    """

    kind: ParseEventKind
    function: Any
    key: int


@dataclass(frozen=True, slots=True)
class PassEvent:
    """A named pass started or ended.

    Attributes:
        kind: Start or end.
        name: Pass (or pass list) name.
        function: Function the pass runs on, if any.
        key: Integer identity of ``function``, or ``NO_FUNCTION_KEY``.

    """

    kind: PassEventKind
    name: str
    function: Any = None
    key: int = NO_FUNCTION_KEY


type Event = UnitEvent | IncludeEvent | ParseEvent | PassEvent


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()


# ---------------------------------------------------------------------------
# Records and outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EventRecord[E: Event]:
    """An event paired with the time it was observed."""

    event: E
    timestamp_ns: int

    @classmethod
    def observe(cls, event: E, clock: Callable[[], int] = now_ns) -> "EventRecord[E]":
        """Stamp ``event`` with the current clock value."""
        return cls(event=event, timestamp_ns=clock())


@dataclass(frozen=True, slots=True)
class Interval[E: Event]:
    """A matched begin/end pair."""

    start: EventRecord[E]
    end: EventRecord[E]

    @property
    def duration_ns(self) -> int:
        return self.end.timestamp_ns - self.start.timestamp_ns


@dataclass(frozen=True, slots=True)
class Mismatch[E: Event]:
    """A record that could not be paired with its counterpart."""

    record: EventRecord[E]


# ---------------------------------------------------------------------------
# Function identities
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FunctionRef:
    """A function identity as recorded in an event log.

    Attributes:
        name: Bare function name.
        scope: Enclosing scope (namespace / class), without trailing ``::``.
        signature: Parameter list, without parentheses.

    """

    name: str
    scope: str = ""
    signature: str = ""

    def printable_name(self, verbosity: int) -> str:
        """Render the name at the given detail level (0, 1 or 2)."""
        if verbosity <= 0 or not self.scope:
            qualified = self.name
        else:
            qualified = f"{self.scope}::{self.name}"
        if verbosity >= 2:
            return f"{qualified}({self.signature})"
        return qualified


def describe_function(function: Any, verbosity: int) -> str:
    """Default display-name resolver for function identities."""
    if function is None:
        return ""
    printable = getattr(function, "printable_name", None)
    if callable(printable):
        return str(printable(verbosity))
    return str(function)
