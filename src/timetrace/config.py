"""Timetrace configuration.

TraceConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass
from pathlib import Path

from timetrace._errors import ConfigError

DECL_VERBOSITY_LEVELS = (0, 1, 2)


@dataclass(frozen=True, slots=True)
class TraceConfig:
    """Configuration for writing a trace document.

    Attributes:
        decl_verbosity: Detail level of function names (0: bare name,
            1: with enclosing scope, 2: with signature).
        output_dir: Directory for trace documents.  ``None`` writes next to
            the base name.
        output_suffix: Suffix appended to the base name of the traced unit.
        dump_name: Name of the final entry recording the dump itself.
        verbose: Print a one-line summary to stderr after writing.

    """

    decl_verbosity: int = 1
    output_dir: Path | None = None
    output_suffix: str = ".trace.json"
    dump_name: str = "plugin_dump"
    verbose: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.decl_verbosity, bool) or self.decl_verbosity not in DECL_VERBOSITY_LEVELS:
            msg = f"decl_verbosity must be 0, 1, or 2 (got {self.decl_verbosity!r})"
            raise ConfigError(msg)
        if not isinstance(self.verbose, bool):
            msg = f"verbose must be true or false (got {self.verbose!r})"
            raise ConfigError(msg)
        if self.output_dir is not None and not isinstance(self.output_dir, Path):
            object.__setattr__(self, "output_dir", Path(self.output_dir))

    def trace_path(self, base_name: str | Path) -> Path:
        """Path of the trace document for a unit with the given base name."""
        path = Path(f"{base_name}{self.output_suffix}")
        if self.output_dir is not None:
            return self.output_dir / path.name
        return path
