"""Application context management for the CLI."""

from dataclasses import dataclass

from schemashift.cli.common.exits import die, exit_from_exc
from schemashift.cli.tui import InteractiveOracle
from schemashift.core.config import GenerateConfig
from schemashift.core.errors import ValidationError
from schemashift.core.oracle import MappingOracle, ResolutionOracle
from schemashift.core.statements import StatementGenerator, load_generator


@dataclass
class GenerateAppContext:
    """Application context holding configuration, oracle and statement generator."""

    config: GenerateConfig
    oracle: ResolutionOracle
    generator: StatementGenerator | None


def build_oracle(config: GenerateConfig, *, interactive: bool) -> ResolutionOracle:
    """
    Build the resolution oracle for an invocation.

    Recorded decisions from `--renames` win; anything they do not cover is
    asked interactively, or aborts the run with `--no-interactive`.
    """
    fallback = InteractiveOracle() if interactive else None
    if config.renames is None:
        return fallback or MappingOracle({})
    try:
        return MappingOracle.from_file(config.renames, fallback=fallback)
    except ValidationError as exc:
        exit_from_exc(exc, code=2)


def build_generate_context(
    config: GenerateConfig, *, interactive: bool = True
) -> GenerateAppContext:
    """Build and return the context for generate/introspect commands.

    Args:
        config: Settings collected from CLI options and environment.
        interactive: Whether undecided renames may be prompted for.

    Returns:
        GenerateAppContext: Context with configured oracle and generator.
    """
    generator = None
    if config.generator:
        try:
            generator = load_generator(config.generator)
        except ValueError as exc:
            exit_from_exc(exc, code=2)
    elif not config.custom:
        die(
            "No statement generator configured. "
            "Pass --generator module:callable or set SCHEMASHIFT_GENERATOR.",
            code=2,
        )

    oracle = build_oracle(config, interactive=interactive)
    return GenerateAppContext(config=config, oracle=oracle, generator=generator)
