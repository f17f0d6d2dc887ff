"""Commands that inspect the migration folder."""

from pathlib import Path

import typer

from schemashift.cli.common.exits import die, exit_from_exc, ok_exit
from schemashift.cli.common.options import FormatOpt, OutOpt, resolve_path
from schemashift.cli.common.output import out
from schemashift.core.errors import SchemaShiftError
from schemashift.core.journal import MANIFEST_FILES, build_journal, write_manifest
from schemashift.core.store import check_store


def journal(out_dir: Path = OutOpt, fmt: str = FormatOpt):
    """
    Rebuild the migration manifest for bundled runtimes.
    """
    if fmt not in MANIFEST_FILES:
        die(f"Unknown format '{fmt}' (use {' or '.join(MANIFEST_FILES)}).", code=2)

    try:
        with out.status("Building manifest..."):
            path = write_manifest(resolve_path(out_dir), fmt)
    except SchemaShiftError as exc:
        exit_from_exc(exc, code=1)

    out.success(f"{path} file updated")


def list_units(out_dir: Path = OutOpt):
    """
    List migration units in apply order.
    """
    try:
        manifest = build_journal(resolve_path(out_dir))
    except SchemaShiftError as exc:
        exit_from_exc(exc, code=1)

    if not manifest.entries:
        ok_exit("No migrations found")

    out.units_table(manifest.entries)


def check(out_dir: Path = OutOpt):
    """
    Check the migration folder for broken or inconsistent units.
    """
    try:
        report = check_store(resolve_path(out_dir))
    except SchemaShiftError as exc:
        exit_from_exc(exc, code=1)

    out.kv({"Folder": out_dir, "Units": len(report.units)})

    if report.ok:
        out.success("Everything's fine")
        return

    for problem in report.problems:
        out.error(problem)
    raise typer.Exit(1)
