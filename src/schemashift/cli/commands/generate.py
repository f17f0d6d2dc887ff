"""Commands that write migration units."""

from pathlib import Path

from schemashift.cli.common.context import build_generate_context
from schemashift.cli.common.exits import die, exit_from_exc, ok_exit
from schemashift.cli.common.options import (
    BreakpointsOpt,
    BundleOpt,
    CustomOpt,
    DialectOpt,
    FormatOpt,
    GeneratorOpt,
    InteractiveOpt,
    NameOpt,
    OutOpt,
    RenamesOpt,
    SchemaOpt,
    resolve_path,
)
from schemashift.cli.common.output import out
from schemashift.core.config import GenerateConfig
from schemashift.core.errors import ResolutionAborted, SchemaShiftError
from schemashift.core.journal import MANIFEST_FILES
from schemashift.core.migrate import (
    GenerationResult,
    generate_migration,
    introspect_migration,
)
from schemashift.core.writer import UnitKind


def _check_format(fmt: str) -> None:
    if fmt not in MANIFEST_FILES:
        die(f"Unknown format '{fmt}' (use {' or '.join(MANIFEST_FILES)}).", code=2)


def _report(result: GenerationResult) -> None:
    """Print what was resolved and written."""
    outcome = result.outcome

    if result.diff is not None and not result.diff.is_empty:
        out.diff_table(result.diff)

    if outcome.manifest_path is not None:
        out.success(f"{outcome.manifest_path} file updated")

    if not outcome.written:
        ok_exit("No schema changes, nothing to migrate")

    unit = outcome.unit
    if unit.kind == UnitKind.CUSTOM_EMPTY:
        out.info("Prepared empty file for your custom SQL migration!")
    elif unit.kind == UnitKind.INTROSPECTED:
        out.warn("Baseline statements are commented out; the database already has them.")
    out.success(f"Your SQL migration file ➜ [bold underline]{unit.statements_path}[/]")


def generate(
    out_dir: Path = OutOpt,
    schema: Path | None = SchemaOpt,
    name: str | None = NameOpt,
    breakpoints: bool = BreakpointsOpt,
    bundle: bool = BundleOpt,
    custom: bool = CustomOpt,
    generator: str | None = GeneratorOpt,
    renames: Path | None = RenamesOpt,
    interactive: bool = InteractiveOpt,
    dialect: str | None = DialectOpt,
    fmt: str = FormatOpt,
):
    """
    Diff the schema snapshot against the latest migration and write a new one.
    """
    _check_format(fmt)
    config = GenerateConfig(
        out=resolve_path(out_dir),
        schema=resolve_path(schema),
        name=name,
        breakpoints=breakpoints,
        bundle=bundle,
        custom=custom,
        generator=generator,
        renames=resolve_path(renames),
        dialect=dialect,
        manifest_format=fmt,
    )
    appctx = build_generate_context(config, interactive=interactive)

    try:
        result = generate_migration(config, appctx.oracle, appctx.generator)
    except ResolutionAborted as exc:
        exit_from_exc(exc, message="Resolution aborted, no migration was written.", code=1)
    except (SchemaShiftError, ValueError) as exc:
        exit_from_exc(exc, code=1)

    _report(result)


def introspect(
    out_dir: Path = OutOpt,
    schema: Path | None = SchemaOpt,
    name: str | None = NameOpt,
    breakpoints: bool = BreakpointsOpt,
    bundle: bool = BundleOpt,
    generator: str | None = GeneratorOpt,
    fmt: str = FormatOpt,
):
    """
    Write a commented-out baseline migration for an existing database.
    """
    _check_format(fmt)
    config = GenerateConfig(
        out=resolve_path(out_dir),
        schema=resolve_path(schema),
        name=name,
        breakpoints=breakpoints,
        bundle=bundle,
        generator=generator,
        manifest_format=fmt,
    )
    appctx = build_generate_context(config, interactive=False)

    try:
        result = introspect_migration(config, appctx.generator)
    except (SchemaShiftError, ValueError) as exc:
        exit_from_exc(exc, code=1)

    _report(result)
