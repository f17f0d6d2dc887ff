"""Error taxonomy for delta resolution and the migration unit store.

Every error raised by the core derives from SchemaShiftError so frontends
(CLI, automation, tests) can map the whole family onto an exit status while
still reacting to specific failures.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class SchemaShiftError(RuntimeError):
    """Base class for all schemashift errors."""


class ResolutionAborted(SchemaShiftError):
    """Raised when the resolution oracle signals an abort."""

    def __init__(self, message: str = "Resolution aborted by the oracle."):
        super().__init__(message)


class ValidationError(SchemaShiftError):
    """Raised when a snapshot or resolver input is structurally invalid."""


class UnparseableUnitTag(SchemaShiftError):
    """Raised when a unit directory name is not a valid migration tag."""

    def __init__(self, name: str, reason: str | None = None):
        self.name = name
        detail = f": {reason}" if reason else ""
        super().__init__(f"Unparseable migration tag '{name}'{detail}")


class PartialWriteInconsistency(SchemaShiftError):
    """
    Raised when the unit store holds half-written units.

    Covers leftover staging directories and unit directories missing either
    the snapshot or the statement file. The paths are never removed
    automatically; an operator has to inspect and resolve them.
    """

    def __init__(self, paths: Iterable[Path]):
        self.paths = sorted(Path(p) for p in paths)
        listed = ", ".join(str(p) for p in self.paths)
        super().__init__(
            f"Inconsistent migration units found (resolve manually): {listed}"
        )


class TagCollision(SchemaShiftError):
    """Raised when an explicitly named unit would overwrite an existing one."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Migration unit '{tag}' already exists.")


class IOFailure(SchemaShiftError):
    """Raised when creating or writing unit files fails."""
