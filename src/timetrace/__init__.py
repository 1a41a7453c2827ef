"""Timetrace — compiler phase events to Trace Event Format.

Correlates the begin/end notifications a compiler emits while it works
through translation units, include files, function parsing and optimisation
passes, and writes the resulting timeline as a JSON trace viewable in
``chrome://tracing`` or Perfetto.

Quick start::

    from timetrace import EventRecorder

    recorder = EventRecorder()
    recorder.start_unit()
    recorder.enter_file("a.h")
    recorder.leave_file()
    recorder.finish_unit()
    recorder.write_trace("main.c")      # -> main.c.trace.json

Lower-level pieces::

    EventTracker    LIFO begin/end matching per category and key
    TraceWriter     streaming Trace Event Format writer

"""

__version__ = "0.1.0"
__all__ = [
    "EventRecorder",
    "EventTracker",
    "TraceConfig",
    "TraceWriter",
    "__version__",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import timetrace`` fast while providing a clean top-level API.
    """
    if name == "EventRecorder":
        from timetrace.recorder import EventRecorder

        return EventRecorder

    if name == "EventTracker":
        from timetrace.tracker import EventTracker

        return EventTracker

    if name == "TraceConfig":
        from timetrace.config import TraceConfig

        return TraceConfig

    if name == "TraceWriter":
        from timetrace.writer import TraceWriter

        return TraceWriter

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
