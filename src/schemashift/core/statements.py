"""Statement generator interface.

Turning a classified diff into dialect-specific statements is delegated to a
pluggable generator, referenced as `package.module:attribute`. The attribute
must be a callable (a function or an instance with `__call__`).
"""

from __future__ import annotations

import importlib
from typing import Protocol

from schemashift.core.resolver import SnapshotDiff
from schemashift.core.snapshot import SchemaSnapshot


class StatementGenerator(Protocol):
    """Interface for producing ordered statements from a classified diff."""

    def __call__(
        self, diff: SnapshotDiff, prev: SchemaSnapshot, cur: SchemaSnapshot
    ) -> list[str]:
        """Return the statements migrating `prev` to `cur`."""
        ...


def load_generator(ref: str) -> StatementGenerator:
    """
    Import a statement generator from a `module:attribute` reference.

    Raises:
        ValueError: If the reference is malformed, cannot be imported,
            or does not point to a callable.
    """
    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(
            f"Invalid generator reference '{ref}' (expected module:attribute)."
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import generator module '{module_name}': {exc}") from exc

    target = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ValueError(f"'{module_name}' has no attribute '{attr}'.") from exc

    if not callable(target):
        raise ValueError(f"Generator '{ref}' is not callable.")
    return target
