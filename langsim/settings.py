from __future__ import annotations
import json
import logging
import os
from typing import Any, Dict, Optional

from .phonology import CONSONANTS, VOWELS


logger = logging.getLogger(__name__)

MAX_GRID_DIM = 500
SEEDING_POLICIES = ("random", "none")


class ConfigError(ValueError):
    """Raised when a settings dictionary cannot drive a simulation."""


DEFAULTS: Dict[str, Any] = {
    "world": {
        "width": 60,
        "height": 40,
        "land_probability": 0.12,     # base chance a cell starts as land
        "island_bias": 0.55,          # extra land chance at the grid center, fading to 0 at the corners
        "smoothing_passes": 3,        # cellular-automaton passes after the random draw
        "edge_is_land": False         # how out-of-grid neighbors count while smoothing
    },
    "seeding": {
        "initial_languages": 3,       # root languages created with the world
        "policy": "random",           # "random": leftover communities get a random seeded language; "none": they start mute
        "population_min": 20,
        "population_max": 99,
        "prestige_min": 0.2,          # community prestige draw range
        "prestige_max": 0.8
    },
    "dynamics": {
        "spread_probability": 0.22,   # per community per tick
        "borrow_probability": 0.12,
        "mutation_probability": 0.05, # per language per tick
        "split_probability": 0.002,
        "acquisition_probability": 0.5,
        "spread_scale": 0.5,          # success = prestige(lang) * prestige(community) * scale
        "borrow_scale": 0.3,          # success = donor prestige * scale
        "acquisition_scale": 0.5,     # success = neighbor prestige * scale
        "probability_cap": 0.95,      # ceiling for all prestige-derived success chances
        "min_split_speakers": 6,
        "max_split_communities": 3,
        "contact_top_n": 5,
        "contact_influence": 0.3
    },
    "phonology": {
        "min_phonemes": 12,
        "max_phonemes": 40,
        "min_vowels": 3,
        "vowel_share": 0.4,           # chance each inventory slot is filled from the vowel pool
        "inventory_mutation_probability": 0.4
    },
    "sound_change": {
        "rule_probability": 0.3,      # scaled down by conservatism
        "conservatism_factor": 0.5,
        "max_rules": 8,
        "max_changes_per_word": 3
    },
    "lexicon": {
        "initial_vocab_min": 50,
        "initial_vocab_max": 100,
        "max_vocab": 150,
        "inheritance_probability": 0.8,
        "words_per_evolution": 3,
        "word_mutation_probability": 0.2,
        "new_word_probability": 0.1
    },
    "language": {
        "prestige_min": 0.3,
        "prestige_max": 0.9,
        "conservatism_max": 0.8,
        "prestige_drift": 0.025,
        "prestige_floor": 0.05,
        "prestige_ceiling": 1.0,
        "evolve_interval": 5,         # minimum ticks between two evolutions of one language
        "name_mutation_probability": 0.05,
        "history_limit": 12
    },
    "stats": {
        "top_k": 5,
        "lexicon_sample": 10,
        "print_interval": 50
    }
}

_PROBABILITIES = {
    "world": ("land_probability", "island_bias"),
    "seeding": ("prestige_min", "prestige_max"),
    "dynamics": ("spread_probability", "borrow_probability", "mutation_probability",
                 "split_probability", "acquisition_probability", "probability_cap",
                 "contact_influence"),
    "phonology": ("vowel_share", "inventory_mutation_probability"),
    "sound_change": ("rule_probability", "conservatism_factor"),
    "lexicon": ("inheritance_probability", "word_mutation_probability", "new_word_probability"),
    "language": ("prestige_min", "prestige_max", "conservatism_max", "prestige_drift",
                 "prestige_floor", "prestige_ceiling", "name_mutation_probability"),
}

_RANGES = (
    ("seeding", "population_min", "population_max"),
    ("seeding", "prestige_min", "prestige_max"),
    ("phonology", "min_phonemes", "max_phonemes"),
    ("lexicon", "initial_vocab_min", "initial_vocab_max"),
    ("language", "prestige_min", "prestige_max"),
    ("language", "prestige_floor", "prestige_ceiling"),
)


def settings_path() -> str:
    return os.path.join(os.getcwd(), "langsim_settings.json")


def defaults() -> Dict[str, Any]:
    return json.loads(json.dumps(DEFAULTS))


def merge_settings(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Deep-merge overrides into a fresh copy of DEFAULTS and validate the result."""
    merged = defaults()
    if overrides:
        if not isinstance(overrides, dict):
            raise ConfigError(f"settings must be a mapping, got {type(overrides).__name__}")
        _deep_update(merged, json.loads(json.dumps(overrides)))
    validate_settings(merged)
    return merged


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    path = path or settings_path()
    if not os.path.exists(path):
        return merge_settings()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read settings from %s (%s); using defaults", path, exc)
        return merge_settings()
    return merge_settings(data)


def save_settings(data: Dict[str, Any], path: Optional[str] = None) -> None:
    # Validate before anything is written
    merged = merge_settings(data)
    path = path or settings_path()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(merged, f, indent=2)


def reset_to_defaults(path: Optional[str] = None) -> Dict[str, Any]:
    save_settings(DEFAULTS, path)
    return defaults()


def validate_settings(settings: Dict[str, Any]) -> None:
    """Raise ConfigError if any section or value is unusable."""
    for section, values in settings.items():
        if section not in DEFAULTS:
            raise ConfigError(f"unknown settings section '{section}'")
        if not isinstance(values, dict):
            raise ConfigError(f"section '{section}' must be a mapping")
        for key, value in values.items():
            if key not in DEFAULTS[section]:
                raise ConfigError(f"unknown setting '{section}.{key}'")
            _check_type(section, key, value, DEFAULTS[section][key])
    for section in DEFAULTS:
        if section not in settings:
            raise ConfigError(f"missing settings section '{section}'")
        for key in DEFAULTS[section]:
            if key not in settings[section]:
                raise ConfigError(f"missing setting '{section}.{key}'")

    world = settings["world"]
    for dim in ("width", "height"):
        if not 1 <= world[dim] <= MAX_GRID_DIM:
            raise ConfigError(f"world.{dim} must be between 1 and {MAX_GRID_DIM}, got {world[dim]}")
    if world["smoothing_passes"] < 0:
        raise ConfigError("world.smoothing_passes must be >= 0")

    for section, keys in _PROBABILITIES.items():
        for key in keys:
            value = settings[section][key]
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{section}.{key} must be in [0, 1], got {value}")

    for section, lo, hi in _RANGES:
        if settings[section][lo] > settings[section][hi]:
            raise ConfigError(f"{section}.{lo} must not exceed {section}.{hi}")

    seeding = settings["seeding"]
    if seeding["policy"] not in SEEDING_POLICIES:
        raise ConfigError(f"seeding.policy must be one of {SEEDING_POLICIES}, got '{seeding['policy']}'")
    if seeding["initial_languages"] < 1:
        raise ConfigError("seeding.initial_languages must be >= 1")
    if seeding["population_min"] < 1:
        raise ConfigError("seeding.population_min must be >= 1")

    dyn = settings["dynamics"]
    for key in ("spread_scale", "borrow_scale", "acquisition_scale"):
        if dyn[key] < 0:
            raise ConfigError(f"dynamics.{key} must be >= 0")
    if dyn["min_split_speakers"] < 2:
        raise ConfigError("dynamics.min_split_speakers must be >= 2")
    if dyn["max_split_communities"] < 1:
        raise ConfigError("dynamics.max_split_communities must be >= 1")
    if dyn["contact_top_n"] < 0:
        raise ConfigError("dynamics.contact_top_n must be >= 0")
    if dyn["probability_cap"] >= 1.0:
        raise ConfigError(f"dynamics.probability_cap must be below 1, got {dyn['probability_cap']}")

    phon = settings["phonology"]
    if not 1 <= phon["min_vowels"] <= len(VOWELS):
        raise ConfigError(f"phonology.min_vowels must be between 1 and {len(VOWELS)}")
    if phon["min_phonemes"] < phon["min_vowels"]:
        raise ConfigError("phonology.min_phonemes must be >= phonology.min_vowels")
    if phon["max_phonemes"] > len(VOWELS) + len(CONSONANTS):
        raise ConfigError(f"phonology.max_phonemes cannot exceed the catalog size {len(VOWELS) + len(CONSONANTS)}")

    sc = settings["sound_change"]
    if sc["max_rules"] < 1 or sc["max_changes_per_word"] < 1:
        raise ConfigError("sound_change.max_rules and max_changes_per_word must be >= 1")

    lex = settings["lexicon"]
    if lex["initial_vocab_min"] < 1:
        raise ConfigError("lexicon.initial_vocab_min must be >= 1")
    if lex["max_vocab"] < lex["initial_vocab_max"]:
        raise ConfigError("lexicon.max_vocab must be >= lexicon.initial_vocab_max")
    if lex["words_per_evolution"] < 0:
        raise ConfigError("lexicon.words_per_evolution must be >= 0")

    lang = settings["language"]
    if lang["evolve_interval"] < 1:
        raise ConfigError("language.evolve_interval must be >= 1")
    if lang["history_limit"] < 1:
        raise ConfigError("language.history_limit must be >= 1")

    stats = settings["stats"]
    if stats["top_k"] < 1 or stats["lexicon_sample"] < 0 or stats["print_interval"] < 1:
        raise ConfigError("stats.top_k and stats.print_interval must be >= 1, stats.lexicon_sample >= 0")


def _check_type(section: str, key: str, value: Any, default: Any) -> None:
    if isinstance(default, bool):
        ok = isinstance(value, bool)
    elif isinstance(default, int):
        ok = isinstance(value, int) and not isinstance(value, bool)
    elif isinstance(default, float):
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    else:
        ok = isinstance(value, type(default))
    if not ok:
        raise ConfigError(f"{section}.{key} must be of type {type(default).__name__}, got {value!r}")


def _deep_update(base: Dict[str, Any], updates: Dict[str, Any]) -> None:
    for k, v in updates.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_update(base[k], v)
        else:
            base[k] = v
