"""Shared type definitions for timetrace."""

from collections.abc import Callable
from typing import Any

# Resolves an opaque function identity to a display name at a verbosity level
type NameResolver = Callable[[Any, int], str]
