"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

import questionary
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from schemashift.cli.common.tui_style import QUESTIONARY_STYLE_SELECT

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)
err_console = Console(theme=_THEME, stderr=True)


def _display(entity: Any) -> str:
    """Render an entity as `schema.name` (or just `name` for flat ones)."""
    table = getattr(entity, "table", None)
    if table:
        return f"{table}.{entity.name}"
    schema = getattr(entity, "schema", None)
    return f"{schema}.{entity.name}" if schema else entity.name


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer", "instruction"):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to keep them recognizable."""
        return f"[schemashift] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        err_console.print(f"[err]✗[/] {escape(msg)}")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def select_one(
        self, message: str, choices: Sequence[str | questionary.Choice]
    ) -> Any | None:
        """
        Prompt the user to select a single item from a list (radio list).

        Choices may be plain strings or questionary.Choice objects carrying
        a value.

        Returns:
            The selected value, or None if cancelled.
        """
        if not choices:
            return None

        prompt = self._q_try(
            questionary.select,
            self._q(message),
            choices=list(choices),
            style=QUESTIONARY_STYLE_SELECT,
            qmark="✦",
            instruction="Use ↑/↓ then Enter",
            pointer="❯",
        )
        return prompt.ask()

    def decision(self, symbol: str, subject: str, note: str) -> None:
        """Echo one resolution decision, e.g. `~ old › new table will be renamed`."""
        style = "ok" if symbol == "+" else "warn"
        console.print(f"[{style}]{symbol}[/] {escape(subject)} [meta]{escape(note)}[/]")

    def diff_table(self, diff: Any, title: str = "Resolved changes") -> None:
        """
        Render a SnapshotDiff as one row per classified entity.

        Expects an object with `.schemas`, `.enums`, `.sequences`, `.tables`
        (deltas) and `.columns` (mapping of table key to delta).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Change", no_wrap=True)
        t.add_column("Kind", style="meta")
        t.add_column("Entity")

        def rows(kind: str, delta: Any) -> Iterable[tuple[str, str, str]]:
            for e in delta.created:
                yield "[ok]create[/]", kind, _display(e)
            for r in delta.renamed:
                yield "[warn]rename[/]", kind, f"{_display(r.source)} › {_display(r.target)}"
            for m in delta.moved:
                yield "[warn]move[/]", kind, f"{m.name}: {m.schema_from} › {m.schema_to}"
            for e in delta.deleted:
                yield "[err]delete[/]", kind, _display(e)

        sections = [
            ("schema", diff.schemas),
            ("enum", diff.enums),
            ("sequence", diff.sequences),
            ("table", diff.tables),
        ]
        sections += [("column", delta) for delta in diff.columns.values()]
        for kind, delta in sections:
            for change, k, entity in rows(kind, delta):
                t.add_row(change, k, escape(entity))

        console.print(t)

    def units_table(self, entries: Iterable[Any], title: str = "Migration units") -> None:
        """
        Expects objects with .index .tag .when_millis (like JournalEntry)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("#", style="ok", no_wrap=True)
        t.add_column("Tag")
        t.add_column("When (ms)", style="meta")

        for e in entries:
            t.add_row(str(e.index), e.tag, str(e.when_millis))

        console.print(t)


out = Out()
