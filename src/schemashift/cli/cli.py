"""CLI application for schema migration generation."""

import typer

from schemashift.cli.commands.generate import generate, introspect
from schemashift.cli.commands.journal import check, journal, list_units
from schemashift.cli.common.logs import setup_logging
from schemashift.cli.common.options import VerboseOpt

app = typer.Typer(
    help="schemashift - resolve schema changes into ordered migration units",
    no_args_is_help=True,
)


@app.callback()
def _init(verbose: bool = VerboseOpt):
    """Configure logging for every command."""
    setup_logging(verbose)


app.command(help="Generate the next migration from a schema snapshot.")(generate)
app.command(help="Write a baseline migration for an existing database.")(introspect)
app.command(help="Rebuild the manifest (migrations.js / journal.json).")(journal)
app.command("list", help="List migration units in apply order.")(list_units)
app.command(help="Check the migration folder for inconsistencies.")(check)


if __name__ == "__main__":
    app()
