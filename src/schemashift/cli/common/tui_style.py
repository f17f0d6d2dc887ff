"""Questionary / prompt_toolkit theme for schemashift prompts.

Questionary uses prompt_toolkit under the hood; every rename prompt uses this
style so decisions look the same across categories.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

QUESTIONARY_STYLE_SELECT = Style.from_dict(
    {
        "qmark": "bold ansicyan",
        "question": "bold",
        "answer": "bold ansigreen",
        "pointer": "bold ansicyan",
        "highlighted": "bold ansicyan",
        "selected": "ansigreen",
        "separator": "ansibrightblack",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
        "disabled": "ansibrightblack",
    }
)
