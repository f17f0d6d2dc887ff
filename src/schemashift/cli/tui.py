"""Terminal UI for resolving rename/create ambiguities."""

from __future__ import annotations

from typing import Any, Callable, Sequence

import questionary

from schemashift.cli.common.output import out
from schemashift.core.entities import (
    DEFAULT_SCHEMA,
    ColumnEntity,
    NamedEntity,
    NamespacedEntity,
)
from schemashift.core.oracle import Abort, Create, Decision, Rename

_MAX_NAME_WIDTH = 64

SelectFn = Callable[[str, Sequence[questionary.Choice]], Any]


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _entity_label(entity: NamedEntity) -> str:
    """Name an entity, prefixing non-default namespaces as `schema.name`."""
    if isinstance(entity, NamespacedEntity) and entity.schema != DEFAULT_SCHEMA:
        return _truncate(f"{entity.schema}.{entity.name}", _MAX_NAME_WIDTH)
    return _truncate(entity.name, _MAX_NAME_WIDTH)


def _question(candidate: NamedEntity) -> str:
    kind = candidate.kind.value
    label = _entity_label(candidate)
    if isinstance(candidate, ColumnEntity):
        return (
            f"Is {label} column in {candidate.table} table created "
            "or renamed from another column?"
        )
    verb = "renamed/moved" if isinstance(candidate, NamespacedEntity) else "renamed"
    return f"Is {label} {kind} created or {verb} from another {kind}?"


def _choices(
    candidate: NamedEntity, options: Sequence[NamedEntity]
) -> list[questionary.Choice]:
    """Build the create choice followed by one rename choice per option, in order."""
    kind = candidate.kind.value
    target = _entity_label(candidate)
    verb = "rename/move" if isinstance(candidate, NamespacedEntity) else "rename"
    labels = [_entity_label(option) for option in options]
    width = max((len(label) for label in [target, *labels]), default=0)

    choices = [
        questionary.Choice(
            title=f"+ {target.ljust(width)}    create {kind}",
            value=Create(),
        )
    ]
    choices += [
        questionary.Choice(
            title=f"~ {label} › {target}    {verb} {kind}",
            value=Rename(option),
        )
        for label, option in zip(labels, options)
    ]
    return choices


class InteractiveOracle:
    """Oracle that asks the user through a questionary select prompt."""

    def __init__(self, select: SelectFn | None = None):
        self._select = select or out.select_one

    def choose(self, candidate: NamedEntity, options: Sequence[NamedEntity]) -> Decision:
        picked = self._select(_question(candidate), _choices(candidate, options))
        if picked is None:
            return Abort()

        kind = candidate.kind.value
        if isinstance(picked, Rename):
            verb = "renamed/moved" if isinstance(candidate, NamespacedEntity) else "renamed"
            out.decision(
                "~",
                f"{_entity_label(picked.source)} › {_entity_label(candidate)}",
                f"{kind} will be {verb}",
            )
        else:
            out.decision("+", _entity_label(candidate), f"{kind} will be created")
        return picked
