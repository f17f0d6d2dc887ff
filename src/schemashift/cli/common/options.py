"""Common CLI options for the CLI."""

from pathlib import Path

import typer

from schemashift.core.config import DEFAULT_OUT_DIR

OutOpt = typer.Option(
    DEFAULT_OUT_DIR,
    "--out",
    "-o",
    envvar="SCHEMASHIFT_OUT",
    help="Migration folder holding one directory per unit",
)

SchemaOpt = typer.Option(
    None,
    "--schema",
    "-s",
    envvar="SCHEMASHIFT_SCHEMA",
    exists=True,
    dir_okay=False,
    help="JSON snapshot of the current schema",
)

NameOpt = typer.Option(
    None,
    "--name",
    help="Migration name used instead of a generated suffix",
)

BreakpointsOpt = typer.Option(
    True,
    "--breakpoints/--no-breakpoints",
    envvar="SCHEMASHIFT_BREAKPOINTS",
    help="Separate statements with '--> statement-breakpoint' markers",
)

BundleOpt = typer.Option(
    False,
    "--bundle",
    envvar="SCHEMASHIFT_BUNDLE",
    help="Regenerate migrations.js for runtimes that cannot read the folder",
)

CustomOpt = typer.Option(
    False,
    "--custom",
    help="Write an empty migration for hand-written SQL",
)

GeneratorOpt = typer.Option(
    None,
    "--generator",
    "-g",
    envvar="SCHEMASHIFT_GENERATOR",
    help="Statement generator as module:callable",
)

RenamesOpt = typer.Option(
    None,
    "--renames",
    envvar="SCHEMASHIFT_RENAMES",
    exists=True,
    dir_okay=False,
    help="JSON file with pre-answered rename decisions",
)

InteractiveOpt = typer.Option(
    True,
    "--interactive/--no-interactive",
    help="Prompt for undecided renames (abort instead when disabled)",
)

FormatOpt = typer.Option(
    "js",
    "--format",
    "-f",
    help="Manifest format: js (migrations.js) or json (journal.json)",
)

DialectOpt = typer.Option(
    None,
    "--dialect",
    envvar="SCHEMASHIFT_DIALECT",
    help="Dialect the migration folder must belong to (default: the folder's own)",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    envvar="SCHEMASHIFT_VERBOSE",
    help="Show debug logging",
)


def resolve_path(value: Path | None) -> Path | None:
    """Expand `~` in optional path options."""
    return value.expanduser() if value is not None else None
