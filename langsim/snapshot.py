"""Immutable, display-ready projection of a simulation.

Everything here is a copy: tuples instead of lists, read-only mappings
instead of dicts, and no references back into the engine's objects.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple


class LeaderboardEntry(NamedTuple):
    id: int
    name: str
    speakers: int


@dataclass(frozen=True)
class CommunityView:
    id: int
    x: int
    y: int
    population: int
    prestige: float
    language_id: Optional[int]


@dataclass(frozen=True)
class LanguageView:
    id: int
    name: str
    family_id: int
    generation: int
    parent_id: Optional[int]
    prestige: float
    conservatism: float
    speakers: int
    phonemes: Tuple[str, ...]
    phoneme_count: int
    vocab_size: int
    sample_word: str
    creation_tick: int
    last_evolved: int


@dataclass(frozen=True)
class StatsView:
    tick: int
    total_communities: int
    speaking_communities: int
    total_languages: int
    extinct_languages: int
    new_languages_this_tick: int
    borrowings_this_tick: int
    acquisitions_this_tick: int
    largest_language: Optional[LeaderboardEntry]
    speaker_counts: Mapping[int, int]
    top_languages: Tuple[LeaderboardEntry, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "total_communities": self.total_communities,
            "speaking_communities": self.speaking_communities,
            "total_languages": self.total_languages,
            "extinct_languages": self.extinct_languages,
            "new_languages_this_tick": self.new_languages_this_tick,
            "borrowings_this_tick": self.borrowings_this_tick,
            "acquisitions_this_tick": self.acquisitions_this_tick,
            "largest_language": self.largest_language._asdict() if self.largest_language else None,
            "speaker_counts": dict(self.speaker_counts),
            "top_languages": [entry._asdict() for entry in self.top_languages],
        }


@dataclass(frozen=True)
class Snapshot:
    width: int
    height: int
    cells: Tuple[Tuple[Optional[int], ...], ...]  # community id per cell, None for water
    communities: Tuple[CommunityView, ...]
    languages: Mapping[int, LanguageView]
    stats: StatsView

    @property
    def tick(self) -> int:
        return self.stats.tick

    def is_land(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height and self.cells[y][x] is not None

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-compatible structure (lists and dicts only)."""
        return {
            "width": self.width,
            "height": self.height,
            "cells": [list(row) for row in self.cells],
            "communities": [asdict(c) for c in self.communities],
            "languages": {lid: _language_dict(view) for lid, view in self.languages.items()},
            "stats": self.stats.to_dict(),
        }


def _language_dict(view: LanguageView) -> Dict[str, Any]:
    data = asdict(view)
    data["phonemes"] = list(view.phonemes)
    return data


def _entry(record: Optional[Dict[str, Any]]) -> Optional[LeaderboardEntry]:
    if record is None:
        return None
    return LeaderboardEntry(record["id"], record["name"], record["speakers"])


def build_snapshot(sim) -> Snapshot:
    """Project a Simulation into a Snapshot."""
    stats = sim.get_stats()
    communities = tuple(
        CommunityView(c.id, c.x, c.y, c.population, c.prestige, c.language_id)
        for c in sim.communities.values()
    )
    languages = {}
    for lang_id in sorted(sim.languages):
        language = sim.languages[lang_id]
        languages[lang_id] = LanguageView(
            id=language.id,
            name=language.name,
            family_id=language.family_id,
            generation=language.generation,
            parent_id=language.parent_id,
            prestige=language.prestige,
            conservatism=language.conservatism,
            speakers=sim.speaker_count(lang_id),
            phonemes=tuple(language.phonemes),
            phoneme_count=len(language.phonemes),
            vocab_size=len(language.lexicon),
            sample_word=language.sample_word(),
            creation_tick=language.created_tick,
            last_evolved=language.last_evolved,
        )
    stats_view = StatsView(
        tick=stats["tick"],
        total_communities=stats["total_communities"],
        speaking_communities=stats["speaking_communities"],
        total_languages=stats["total_languages"],
        extinct_languages=stats["extinct_languages"],
        new_languages_this_tick=stats["new_languages_this_tick"],
        borrowings_this_tick=stats["borrowings_this_tick"],
        acquisitions_this_tick=stats["acquisitions_this_tick"],
        largest_language=_entry(stats["largest_language"]),
        speaker_counts=MappingProxyType(dict(stats["speaker_counts"])),
        top_languages=tuple(_entry(r) for r in stats["top_languages"]),
    )
    return Snapshot(
        width=sim.world.width,
        height=sim.world.height,
        cells=tuple(tuple(row) for row in sim.world.cells),
        communities=communities,
        languages=MappingProxyType(languages),
        stats=stats_view,
    )
