"""Tests for timetrace.replay — decoding recorded event logs."""

from __future__ import annotations

from pathlib import Path

import pytest

from timetrace._errors import ReplayError
from timetrace.events import (
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
from timetrace.replay import iter_events, load_events, parse_event_line


class TestParseEventLine:
    """parse_event_line — one JSON object per event."""

    def test_unit(self) -> None:
        record = parse_event_line('{"ts": 10, "event": "unit", "kind": "start"}')
        assert record.event == UnitEvent(UnitEventKind.START)
        assert record.timestamp_ns == 10

    def test_include_enter_and_leave(self) -> None:
        enter = parse_event_line('{"ts": 1, "event": "include", "kind": "enter", "file": "a.h"}')
        leave = parse_event_line('{"ts": 2, "event": "include", "kind": "leave"}')
        assert enter.event == IncludeEvent(IncludeEventKind.ENTER, "a.h")
        assert leave.event == IncludeEvent(IncludeEventKind.LEAVE)

    def test_parse_with_function_object(self) -> None:
        record = parse_event_line(
            '{"ts": 3, "event": "parse", "kind": "pre_genericize", "key": 4,'
            ' "function": {"name": "f", "scope": "ns", "signature": "int"}}'
        )
        assert record.event == ParseEvent(
            ParseEventKind.PRE_GENERICIZE, FunctionRef("f", "ns", "int"), 4
        )

    def test_pass_defaults(self) -> None:
        record = parse_event_line('{"ts": 5, "event": "pass", "kind": "end", "name": "dce"}')
        assert record.event == PassEvent(PassEventKind.END, "dce")

    def test_pass_with_function_string(self) -> None:
        record = parse_event_line(
            '{"ts": 5, "event": "pass", "kind": "start", "name": "dce", "key": 2, "function": "g"}'
        )
        assert record.event == PassEvent(PassEventKind.START, "dce", FunctionRef("g"), 2)

    @pytest.mark.parametrize(
        "line",
        [
            "not json",
            "[1, 2]",
            '{"event": "unit", "kind": "start"}',
            '{"ts": "1", "event": "unit", "kind": "start"}',
            '{"ts": 1, "event": "thread", "kind": "start"}',
            '{"ts": 1, "event": "unit", "kind": "middle"}',
            '{"ts": 1, "event": "include", "kind": "enter"}',
            '{"ts": 1, "event": "parse", "kind": "start", "function": "f"}',
            '{"ts": 1, "event": "parse", "kind": "start", "key": true, "function": "f"}',
            '{"ts": 1, "event": "pass", "kind": "start", "name": 3}',
        ],
    )
    def test_malformed_lines(self, line: str) -> None:
        with pytest.raises(ReplayError) as excinfo:
            parse_event_line(line, 12)
        assert excinfo.value.lineno == 12
        assert str(excinfo.value).startswith("line 12:")


class TestLoadEvents:
    """load_events / iter_events — whole logs."""

    def test_skips_blank_lines(self) -> None:
        lines = [
            '{"ts": 1, "event": "unit", "kind": "start"}\n',
            "\n",
            '{"ts": 2, "event": "unit", "kind": "end"}\n',
        ]
        assert [r.timestamp_ns for r in iter_events(lines)] == [1, 2]

    def test_reports_line_number(self) -> None:
        lines = ['{"ts": 1, "event": "unit", "kind": "start"}', "", "{"]
        with pytest.raises(ReplayError) as excinfo:
            list(iter_events(lines))
        assert excinfo.value.lineno == 3

    def test_load_from_file(self, tmp_path: Path) -> None:
        log = tmp_path / "events.jsonl"
        log.write_text(
            '{"ts": 1, "event": "include", "kind": "enter", "file": "a.h"}\n'
            '{"ts": 2, "event": "include", "kind": "leave"}\n'
        )
        records = load_events(log)
        assert len(records) == 2

    def test_invalid_utf8_reports_line(self, tmp_path: Path) -> None:
        log = tmp_path / "events.jsonl"
        log.write_bytes(
            b'{"ts": 1, "event": "unit", "kind": "start"}\n'
            b'{"ts": 2, "event": "include", "kind": "enter", "file": "\xff.h"}\n'
        )
        with pytest.raises(ReplayError, match="invalid UTF-8") as excinfo:
            load_events(log)
        assert excinfo.value.lineno == 2

    def test_byte_lines_are_decoded(self) -> None:
        lines = [b'{"ts": 1, "event": "include", "kind": "enter", "file": "\xc3\xa9.h"}\n']
        (record,) = iter_events(lines)
        assert record.event.path == "\u00e9.h"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ReplayError, match="cannot read"):
            load_events(tmp_path / "nope.jsonl")
