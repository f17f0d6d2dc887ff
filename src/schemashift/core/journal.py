"""Journal / manifest building.

Some runtimes (bundled mobile apps, edge workers) cannot list a directory
when they apply migrations. For them the store is compiled into a manifest:
an ordered list of `{idx, when}` entries plus static references to every
unit's statement file. The manifest is derived data and can always be
rebuilt from the unit directories.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from schemashift.core.errors import IOFailure
from schemashift.core.store import STATEMENTS_FILE, scan_units

logger = logging.getLogger(__name__)

MANIFEST_FILES = {
    "js": "migrations.js",
    "json": "journal.json",
}


@dataclass(frozen=True)
class JournalEntry:
    """Position and logical timestamp of one unit."""

    index: int
    when_millis: int
    tag: str

    @property
    def import_name(self) -> str:
        return f"m{self.index:04d}"


@dataclass
class Manifest:
    """Ordered journal over all units of a store."""

    entries: list[JournalEntry] = field(default_factory=list)


def build_journal(out_dir: Path) -> Manifest:
    """
    Build the manifest of a unit store.

    Units are ordered by tag, which sorts chronologically by construction.

    Raises:
        UnparseableUnitTag: If a directory is not named by a valid tag.
        PartialWriteInconsistency: If half-written units are present.
    """
    units = scan_units(Path(out_dir))
    return Manifest(
        entries=[
            JournalEntry(index=idx, when_millis=unit.tag.when_millis, tag=unit.name)
            for idx, unit in enumerate(units)
        ]
    )


def render_manifest_module(manifest: Manifest) -> str:
    """Render the manifest as a JavaScript module importing every unit."""
    lines = [
        "// This file is generated by schemashift, do not edit it by hand.",
        "// It lets bundled runtimes apply migrations without reading the folder.",
        "",
    ]
    lines += [
        f"import {e.import_name} from './{e.tag}/{STATEMENTS_FILE}';"
        for e in manifest.entries
    ]
    entries = "\n".join(
        f"      {{ idx: {e.index}, when: {e.when_millis}, tag: '{e.tag}' }},"
        for e in manifest.entries
    )
    migrations = "\n".join(f"    {e.import_name}," for e in manifest.entries)
    lines += [
        "",
        "export default {",
        "  journal: {",
        "    entries: [",
        entries,
        "    ],",
        "  },",
        "  migrations: {",
        migrations,
        "  },",
        "};",
        "",
    ]
    return "\n".join(lines)


def render_manifest_json(manifest: Manifest) -> str:
    """Render the manifest as a JSON journal."""
    payload = {
        "version": "1",
        "entries": [
            {"idx": e.index, "when": e.when_millis, "tag": e.tag}
            for e in manifest.entries
        ],
    }
    return json.dumps(payload, indent=2) + "\n"


def write_manifest(out_dir: Path, fmt: str = "js") -> Path:
    """
    Rebuild the manifest of a store and write it next to the units.

    Returns:
        Path of the written manifest file.
    """
    if fmt not in MANIFEST_FILES:
        raise ValueError(f"Unknown manifest format '{fmt}' (use js or json).")

    out_dir = Path(out_dir)
    manifest = build_journal(out_dir)
    content = (
        render_manifest_module(manifest) if fmt == "js" else render_manifest_json(manifest)
    )
    path = out_dir / MANIFEST_FILES[fmt]
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise IOFailure(f"Cannot write manifest {path}: {exc}") from exc

    logger.info("Manifest with %d unit(s) written to %s", len(manifest.entries), path)
    return path
