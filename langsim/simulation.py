import copy
import logging
import random
from typing import Any, Dict, List, Optional, Set

from .language import Language
from .models import Community, World
from .settings import merge_settings
from .terrain import generate_terrain


logger = logging.getLogger(__name__)


class InvariantError(RuntimeError):
    """Raised when the community table and the language table disagree."""


class Simulation:
    """Owns the world, its communities and languages, and advances them one tick at a time."""
    def __init__(self, settings: Optional[Dict[str, Any]] = None, seed: Optional[int] = None,
                 rng: Optional[random.Random] = None):
        self.settings = merge_settings(settings)
        self.seed = seed
        self.rng = rng if rng is not None else random.Random(seed)
        self._initial_rng_state = self.rng.getstate()
        self._journal: Dict[int, Language] = {}
        self._build()

    # --- World construction ---
    def _build(self):
        world_cfg = self.settings["world"]
        seeding = self.settings["seeding"]
        terrain = generate_terrain(world_cfg["width"], world_cfg["height"], world_cfg["land_probability"],
                                   world_cfg["island_bias"], world_cfg["smoothing_passes"], self.rng,
                                   edge_is_land=world_cfg["edge_is_land"])
        self.world = World.from_terrain(terrain)
        self.communities: Dict[int, Community] = {}
        for x, y, cid in self.world.land_cells():
            self.communities[cid] = Community(
                cid, x, y,
                population=self.rng.randint(seeding["population_min"], seeding["population_max"]),
                prestige=self.rng.uniform(seeding["prestige_min"], seeding["prestige_max"]),
            )
        self._neighbors = {cid: self.world.neighbors(c.x, c.y) for cid, c in self.communities.items()}

        self.languages: Dict[int, Language] = {}
        self._speakers: Dict[int, Set[int]] = {}
        self.tick = 0
        self.extinct_count = 0
        self.new_languages_this_tick = 0
        self.borrowings_this_tick = 0
        self.acquisitions_this_tick = 0
        self._next_language_id = 1
        self._next_family_id = 1
        self._seed_languages()
        logger.info("Generated %dx%d world: %d communities, %d languages",
                    self.world.width, self.world.height, len(self.communities), len(self.languages))

    def _seed_languages(self):
        seeding = self.settings["seeding"]
        order = list(self.communities)
        requested = seeding["initial_languages"]
        count = min(requested, len(order))
        if count < requested:
            logger.warning("Only %d communities for %d initial languages; seeding %d",
                           len(order), requested, count)
        seeded = []
        for cid in self.rng.sample(order, count):
            language = self._create_root()
            self._assign(self.communities[cid], language.id)
            seeded.append(language.id)
        # Leftover communities
        if seeding["policy"] == "random" and seeded:
            for cid in order:
                community = self.communities[cid]
                if not community.has_language():
                    self._assign(community, self.rng.choice(seeded))

    def _create_root(self) -> Language:
        language = Language.create_root(self._next_language_id, self._next_family_id, self.tick,
                                        self.rng, self.settings)
        self._next_language_id += 1
        self._next_family_id += 1
        self.languages[language.id] = language
        self._speakers[language.id] = set()
        return language

    def reset(self):
        """Rebuild the current world from its settings and the random state it was generated from."""
        self.rng.setstate(self._initial_rng_state)
        self._build()
        logger.info("Simulation reset")

    def new_world(self, settings: Optional[Dict[str, Any]] = None):
        """Replace the whole world. New settings are validated before anything is discarded."""
        if settings is not None:
            self.settings = merge_settings(settings)
        self._initial_rng_state = self.rng.getstate()
        self._build()

    # --- Tick ---
    def step(self) -> Dict[str, Any]:
        """Advance one tick. On an InvariantError the prior tick's state is restored and the error re-raised."""
        checkpoint = self._checkpoint()
        try:
            self._run_tick()
        except InvariantError:
            self._restore(checkpoint)
            logger.error("Tick %d aborted, state restored to tick %d", checkpoint["tick"] + 1, self.tick)
            raise
        finally:
            self._journal = {}
        return self.get_stats()

    def _run_tick(self):
        self.tick += 1
        self.new_languages_this_tick = 0
        self.borrowings_this_tick = 0
        self.acquisitions_this_tick = 0
        self._evolution_pass()
        self._community_pass()
        self._cleanup_extinct()
        self._verify_invariants()
        logger.debug("Tick %d: %d languages, %d new, %d extinct so far",
                     self.tick, len(self.languages), self.new_languages_this_tick, self.extinct_count)

    def _evolution_pass(self):
        dyn = self.settings["dynamics"]
        for lang_id in sorted(self.languages):
            if self.rng.random() >= dyn["mutation_probability"]:
                continue
            language = self.languages[lang_id]
            if not language.can_evolve(self.tick, self.settings):
                continue
            contacts = self._contact_languages(language)
            self._touch(language)
            language.evolve(self.tick, self.rng, self.settings, contacts)

    def _community_pass(self):
        dyn = self.settings["dynamics"]
        order = list(self.communities)
        self.rng.shuffle(order)
        for cid in order:
            community = self.communities[cid]
            if not community.has_language():
                if self.rng.random() < dyn["acquisition_probability"]:
                    self._try_acquisition(community)
                continue
            language = self._require_language(community.language_id)
            if self.rng.random() < dyn["spread_probability"]:
                self._try_spread(community, language)
            if self.rng.random() < dyn["borrow_probability"]:
                self._try_borrow(community, language)
            if self.rng.random() < dyn["split_probability"]:
                self._try_split(language)

    def _try_acquisition(self, community: Community) -> bool:
        speaking = [n for n in self._neighbor_communities(community) if n.has_language()]
        if not speaking:
            return False
        # Highest prestige, lowest id on ties
        best = max(speaking, key=lambda n: (n.prestige, -n.id))
        if self.rng.random() >= self._chance(best.prestige * self.settings["dynamics"]["acquisition_scale"]):
            return False
        self._assign(community, best.language_id)
        self.acquisitions_this_tick += 1
        return True

    def _try_spread(self, community: Community, language: Language) -> bool:
        targets = [n for n in self._neighbor_communities(community) if n.language_id != language.id]
        if not targets:
            return False
        self.rng.shuffle(targets)
        chance = self._chance(language.prestige * community.prestige * self.settings["dynamics"]["spread_scale"])
        for target in targets:
            if self.rng.random() >= chance:
                continue
            old = self._assign(target, language.id)
            target.prestige = (target.prestige + community.prestige) / 2.0
            if old is not None and not self._speakers[old]:
                self._retire(old)
            return True
        return False

    def _try_borrow(self, community: Community, language: Language) -> bool:
        donors = [n for n in self._neighbor_communities(community)
                  if n.has_language() and n.language_id != language.id]
        if not donors:
            return False
        donor = max(donors, key=lambda n: (n.prestige, -n.id))
        source = self._require_language(donor.language_id)
        if not source.lexicon:
            return False
        meaning = self.rng.choice(list(source.lexicon))
        if self.rng.random() >= self._chance(donor.prestige * self.settings["dynamics"]["borrow_scale"]):
            return False
        self._touch(language)
        if language.borrow_word(source, meaning, self.tick, self.rng):
            self.borrowings_this_tick += 1
            return True
        return False

    def _try_split(self, language: Language) -> Optional[Language]:
        dyn = self.settings["dynamics"]
        speakers = self._speakers[language.id]
        if len(speakers) < dyn["min_split_speakers"]:
            return None
        child = language.split(self._next_language_id, self.tick, self.rng, self.settings)
        self._next_language_id += 1
        self.languages[child.id] = child
        self._speakers[child.id] = set()
        count = min(dyn["max_split_communities"], len(speakers) // 2)
        for cid in self.rng.sample(sorted(speakers), count):
            self._assign(self.communities[cid], child.id)
        self.new_languages_this_tick += 1
        logger.debug("Tick %d: %s (#%d) split from %s (#%d) with %d communities",
                     self.tick, child.name, child.id, language.name, language.id, count)
        return child

    def _cleanup_extinct(self):
        referenced = {c.language_id for c in self.communities.values() if c.has_language()}
        for lang_id in sorted(set(self.languages) - referenced):
            self._retire(lang_id)

    def _verify_invariants(self):
        speakers: Dict[int, Set[int]] = {}
        for community in self.communities.values():
            if not community.has_language():
                continue
            if community.language_id not in self.languages:
                raise InvariantError(
                    f"community {community.id} references unknown language {community.language_id}")
            speakers.setdefault(community.language_id, set()).add(community.id)
        for lang_id in self.languages:
            if lang_id not in speakers:
                raise InvariantError(f"language {lang_id} is tracked but has no speakers")
        if speakers != self._speakers:
            raise InvariantError("speaker index is out of sync with the community table")

    # --- Helpers ---
    def _assign(self, community: Community, lang_id: Optional[int]) -> Optional[int]:
        """Point community at lang_id, keeping the speaker index in step. Returns the old id."""
        old = community.language_id
        if old == lang_id:
            return old
        for ref in (old, lang_id):
            if ref is not None and ref not in self._speakers:
                raise InvariantError(f"community {community.id} assignment touches untracked language {ref}")
        if old is not None:
            self._speakers[old].discard(community.id)
        community.language_id = lang_id
        if lang_id is not None:
            self._speakers[lang_id].add(community.id)
        return old

    def _retire(self, lang_id: int):
        language = self.languages.pop(lang_id)
        del self._speakers[lang_id]
        self.extinct_count += 1
        logger.debug("Tick %d: %s (#%d) went extinct", self.tick, language.name, lang_id)

    def _require_language(self, lang_id: int) -> Language:
        language = self.languages.get(lang_id)
        if language is None:
            raise InvariantError(f"language {lang_id} is referenced but not tracked")
        return language

    def _neighbor_communities(self, community: Community) -> List[Community]:
        return [self.communities[n] for n in self._neighbors[community.id]]

    def _contact_languages(self, language: Language) -> List[Language]:
        """Languages spoken next to this one's speakers, most prestigious first."""
        ids = set()
        for cid in self._speakers.get(language.id, ()):
            for nid in self._neighbors[cid]:
                other = self.communities[nid].language_id
                if other is not None and other != language.id:
                    ids.add(other)
        contacts = [self._require_language(i) for i in ids]
        contacts.sort(key=lambda l: (-l.prestige, l.id))
        return contacts[:self.settings["dynamics"]["contact_top_n"]]

    def _chance(self, p: float) -> float:
        return min(self.settings["dynamics"]["probability_cap"], p)

    def speaker_count(self, lang_id: int) -> int:
        return len(self._speakers.get(lang_id, ()))

    # --- Rollback ---
    def _checkpoint(self) -> Dict[str, Any]:
        self._journal = {}
        return {
            "tick": self.tick,
            "languages": dict(self.languages),
            "speakers": {lid: set(cids) for lid, cids in self._speakers.items()},
            "communities": [(c.language_id, c.prestige) for c in self.communities.values()],
            "counters": (self.extinct_count, self.new_languages_this_tick, self.borrowings_this_tick,
                         self.acquisitions_this_tick, self._next_language_id, self._next_family_id),
            "rng": self.rng.getstate(),
        }

    def _touch(self, language: Language):
        # Keep the pre-tick copy of any language mutated in place this tick
        if language.id not in self._journal:
            self._journal[language.id] = copy.deepcopy(language)

    def _restore(self, checkpoint: Dict[str, Any]):
        languages = checkpoint["languages"]
        for lang_id, original in self._journal.items():
            if lang_id in languages:
                languages[lang_id] = original
        self.languages = languages
        self._speakers = checkpoint["speakers"]
        for community, (lang_id, prestige) in zip(self.communities.values(), checkpoint["communities"]):
            community.language_id = lang_id
            community.prestige = prestige
        (self.extinct_count, self.new_languages_this_tick, self.borrowings_this_tick,
         self.acquisitions_this_tick, self._next_language_id, self._next_family_id) = checkpoint["counters"]
        self.rng.setstate(checkpoint["rng"])
        self.tick = checkpoint["tick"]

    # --- Read access ---
    def get_stats(self) -> Dict[str, Any]:
        """Returns a dictionary with current simulation statistics."""
        speaker_counts = {lid: len(cids) for lid, cids in sorted(self._speakers.items())}
        ranked = sorted(speaker_counts.items(), key=lambda kv: (-kv[1], kv[0]))
        top = [{"id": lid, "name": self.languages[lid].name, "speakers": n}
               for lid, n in ranked[:self.settings["stats"]["top_k"]]]
        return {
            "tick": self.tick,
            "total_communities": len(self.communities),
            "speaking_communities": sum(speaker_counts.values()),
            "total_languages": len(self.languages),
            "extinct_languages": self.extinct_count,
            "new_languages_this_tick": self.new_languages_this_tick,
            "borrowings_this_tick": self.borrowings_this_tick,
            "acquisitions_this_tick": self.acquisitions_this_tick,
            "largest_language": dict(top[0]) if top else None,
            "speaker_counts": speaker_counts,
            "top_languages": top,
        }

    def inspect(self, x: int, y: int) -> Optional[Dict[str, Any]]:
        """Community and language detail for a tile, or None for out-of-bounds, water or mute tiles."""
        cid = self.world.community_at(x, y)
        if cid is None:
            return None
        community = self.communities[cid]
        if not community.has_language():
            return None
        language = self.languages.get(community.language_id)
        if language is None:
            return None
        return {
            "community": {
                "id": community.id,
                "x": community.x,
                "y": community.y,
                "population": community.population,
                "prestige": community.prestige,
            },
            "language": {
                "id": language.id,
                "name": language.name,
                "family_id": language.family_id,
                "generation": language.generation,
                "parent_id": language.parent_id,
                "prestige": language.prestige,
                "conservatism": language.conservatism,
                "speakers": self.speaker_count(language.id),
                "phonemes": list(language.phonemes),
                "vocab_size": len(language.lexicon),
                "rules": [rule.describe() for rule in language.rules],
                "created_tick": language.created_tick,
                "last_evolved": language.last_evolved,
            },
            "lexicon_sample": [
                {"meaning": w.meaning, "form": w.form, "borrowed_from": w.borrowed_from,
                 "changed_tick": w.changed_tick}
                for w in language.lexicon_sample(self.settings["stats"]["lexicon_sample"])
            ],
            "contacts": [c.name for c in self._contact_languages(language)],
            "history": list(language.history),
        }
