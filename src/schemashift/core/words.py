"""Human-readable suffixes for generated migration tags."""

from __future__ import annotations

import random

ADJECTIVES = (
    "amber", "ancient", "bitter", "bold", "brave", "brief", "calm", "clever",
    "cold", "crisp", "curly", "daily", "dark", "eager", "early", "easy",
    "fancy", "fast", "fine", "flat", "fresh", "gentle", "giant", "glossy",
    "golden", "grey", "happy", "heavy", "hot", "huge", "icy", "keen",
    "late", "lazy", "little", "loud", "lucky", "mighty", "misty", "modern",
    "narrow", "neat", "nervous", "noisy", "odd", "old", "plain", "polite",
    "proud", "quick", "quiet", "rapid", "rare", "rich", "round", "rusty",
    "salty", "sharp", "shiny", "silent", "silly", "slim", "slow", "smart",
    "soft", "solid", "sour", "steady", "stiff", "strong", "sturdy", "sunny",
    "sweet", "swift", "tall", "tame", "tan", "thick", "tidy", "tiny",
    "tough", "vast", "warm", "wary", "wet", "wide", "wild", "wise",
    "yellow", "young", "zany", "zealous",
)

NOUNS = (
    "albatross", "anchor", "badger", "banjo", "beacon", "bison", "boulder",
    "bridge", "cactus", "canyon", "cargo", "cobra", "comet", "compass",
    "coyote", "crane", "crystal", "dingo", "dolphin", "dragon", "eagle",
    "ember", "falcon", "ferret", "fjord", "galaxy", "gecko", "glacier",
    "goblin", "harbor", "hawk", "heron", "iguana", "island", "jackal",
    "jaguar", "kestrel", "koala", "lantern", "lemur", "lynx", "magnet",
    "mantis", "marble", "meadow", "meteor", "monsoon", "moose", "nebula",
    "ocelot", "orbit", "otter", "panther", "pebble", "pelican", "phoenix",
    "pilgrim", "piranha", "prism", "puma", "quasar", "raven", "reef",
    "rocket", "saber", "salmon", "satellite", "scorpion", "sentinel",
    "sparrow", "sphinx", "squid", "storm", "summit", "tempest", "thunder",
    "tiger", "titan", "toucan", "tundra", "turtle", "vampire", "viper",
    "volcano", "vulture", "walrus", "wasp", "whirlwind", "wolf", "wombat",
    "yeti", "zebra", "zephyr",
)


def generate_suffix(rng: random.Random | None = None) -> str:
    """Return a random `adjective_noun` pair such as `brave_falcon`."""
    rng = rng or random.Random()
    return f"{rng.choice(ADJECTIVES)}_{rng.choice(NOUNS)}"
