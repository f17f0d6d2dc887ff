"""Configuration for migration generation.

Values come from CLI options, each of which falls back to a `SCHEMASHIFT_*`
environment variable (see schemashift.cli.common.options).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from schemashift.core.writer import UnitKind, WriteOptions

DEFAULT_OUT_DIR = Path("migrations")


@dataclass(frozen=True)
class GenerateConfig:
    """
    Settings of one generate/introspect invocation.

    Attributes:
        out: Unit store directory.
        schema: JSON snapshot of the current schema.
        name: Explicit tag suffix for the new unit.
        breakpoints: Join statements with breakpoint markers.
        bundle: Regenerate the manifest after writing.
        custom: Write an empty, hand-editable unit instead of a diff.
        generator: `module:attribute` reference of the statement generator.
        renames: JSON file with pre-answered rename decisions.
        manifest_format: Manifest flavour written when bundling.
        dialect: Dialect the stored units must belong to; None accepts the
            dialect of the latest unit.
    """

    out: Path = DEFAULT_OUT_DIR
    schema: Path | None = None
    name: str | None = None
    breakpoints: bool = True
    bundle: bool = False
    custom: bool = False
    generator: str | None = None
    renames: Path | None = None
    dialect: str | None = None
    manifest_format: str = "js"

    def write_options(self, kind: UnitKind | None = None) -> WriteOptions:
        """Return writer options for this configuration."""
        if kind is None:
            kind = UnitKind.CUSTOM_EMPTY if self.custom else UnitKind.NORMAL
        return WriteOptions(
            name=self.name,
            breakpoints=self.breakpoints,
            bundle=self.bundle,
            kind=kind,
            manifest_format=self.manifest_format,
        )
