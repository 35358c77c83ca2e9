from __future__ import annotations
import random
from collections import deque
from typing import Any, Dict, List, Optional, Sequence

from .phonology import (adapt_form, ensure_vowel, generate_inventory, generate_word,
                        mutate_inventory, split_inventory, substitute_random)
from .sound_change import SoundChangeRules
from .vocabulary import CORE_VOCABULARY


NAME_SYLLABLES = ("ka", "ti", "ra", "po", "mi", "su", "no", "ze", "li", "va",
                  "do", "gu", "hi", "jo", "qe", "to")
_NAME_SHIFT = {"a": "e", "i": "e", "o": "u", "u": "o"}


def make_name(rng: random.Random) -> str:
    return "".join(rng.choice(NAME_SYLLABLES) for _ in range(rng.randint(2, 3))).capitalize()


def evolve_name(name: str) -> str:
    """Fixed sound-symbolic shift applied to every vowel of a name."""
    return "".join(_NAME_SHIFT.get(ch, ch) for ch in name.lower()).capitalize()


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


class Word:
    """A lexicon entry. Owned by exactly one language; copied, never shared."""
    def __init__(self, form: str, meaning: str, created_tick: int,
                 borrowed_from: Optional[int] = None, changed_tick: Optional[int] = None):
        self.form = form
        self.meaning = meaning
        self.borrowed_from = borrowed_from
        self.created_tick = created_tick
        self.changed_tick = created_tick if changed_tick is None else changed_tick

    @property
    def borrowed(self) -> bool:
        return self.borrowed_from is not None

    def copy(self) -> "Word":
        return Word(self.form, self.meaning, self.created_tick, self.borrowed_from, self.changed_tick)

    def __repr__(self):
        return f"Word({self.meaning!r}: {self.form!r})"


class Language:
    """Represents a language: phoneme inventory, lexicon, sound-change rules, prestige and lineage."""
    def __init__(self, lang_id: int, family_id: int, name: str, phonemes: Sequence[str],
                 prestige: float, conservatism: float, rules: SoundChangeRules, created_tick: int,
                 generation: int = 0, parent_id: Optional[int] = None, history_limit: int = 12):
        self.id = lang_id
        self.family_id = family_id
        self.generation = generation
        self.parent_id = parent_id
        self.name = name
        self.phonemes = list(phonemes)
        self.prestige = prestige
        self.conservatism = conservatism
        self.rules = rules
        self.lexicon: Dict[str, Word] = {}
        self.created_tick = created_tick
        self.last_evolved = created_tick
        self.history = deque(maxlen=history_limit)

    # --- Creation ---
    @classmethod
    def create_root(cls, lang_id: int, family_id: int, tick: int, rng: random.Random,
                    settings: Dict[str, Any]) -> "Language":
        """A brand-new language with its own family, inventory and lexicon."""
        phon = settings["phonology"]
        lang_cfg = settings["language"]
        sc = settings["sound_change"]
        phonemes = generate_inventory(rng, phon["min_phonemes"], phon["max_phonemes"],
                                      phon["min_vowels"], phon["vowel_share"])
        language = cls(
            lang_id, family_id, make_name(rng), phonemes,
            prestige=rng.uniform(lang_cfg["prestige_min"], lang_cfg["prestige_max"]),
            conservatism=rng.uniform(0.0, lang_cfg["conservatism_max"]),
            rules=SoundChangeRules(sc["max_rules"], sc["max_changes_per_word"]),
            created_tick=tick,
            history_limit=lang_cfg["history_limit"],
        )
        language._fill_lexicon(tick, rng, settings["lexicon"])
        language._note(tick, f"emerged with {len(phonemes)} phonemes and {len(language.lexicon)} words")
        return language

    def split(self, lang_id: int, tick: int, rng: random.Random, settings: Dict[str, Any]) -> "Language":
        """Create a descendant. Reassigning speakers is the caller's job."""
        phon = settings["phonology"]
        lang_cfg = settings["language"]
        lex = settings["lexicon"]
        phonemes, _ = mutate_inventory(self.phonemes, rng, phon["min_phonemes"], phon["max_phonemes"],
                                       phon["min_vowels"])
        name = evolve_name(self.name)
        if name == self.name:
            name += rng.choice(NAME_SYLLABLES)
        child = Language(
            lang_id, self.family_id, name, phonemes,
            prestige=_clamp(self.prestige + rng.uniform(-0.05, 0.05),
                            lang_cfg["prestige_floor"], lang_cfg["prestige_ceiling"]),
            conservatism=_clamp(self.conservatism + rng.uniform(-0.1, 0.1), 0.0, 1.0),
            rules=self.rules.copy(),
            created_tick=tick,
            generation=self.generation + 1,
            parent_id=self.id,
            history_limit=lang_cfg["history_limit"],
        )
        # The founder rule is the one transformation every inherited word goes through
        founder = child.rules.synthesize(tick, rng, child.phonemes)
        for meaning, word in self.lexicon.items():
            if rng.random() >= lex["inheritance_probability"]:
                continue
            inherited = word.copy()
            if founder is not None:
                inherited.form = child.rules.apply(word.form, tick, rng, child.phonemes, only=(founder,))
            else:
                inherited.form = ensure_vowel(word.form, rng, child.phonemes)
            inherited.created_tick = tick
            inherited.changed_tick = tick
            child.lexicon[meaning] = inherited
        inherited_count = len(child.lexicon)
        child._fill_lexicon(tick, rng, lex)
        child._note(tick, f"split from {self.name} (#{self.id}), kept {inherited_count} words")
        if founder is not None:
            child._note(tick, f"founder rule {founder.describe()}")
        return child

    def _fill_lexicon(self, tick: int, rng: random.Random, lex: Dict[str, Any]) -> None:
        target = rng.randint(lex["initial_vocab_min"], lex["initial_vocab_max"])
        unused = self.unused_meanings()
        count = min(target - len(self.lexicon), len(unused))
        if count <= 0:
            return
        for meaning in rng.sample(unused, count):
            self.lexicon[meaning] = Word(generate_word(self.phonemes, rng), meaning, tick)

    # --- Evolution ---
    def can_evolve(self, tick: int, settings: Dict[str, Any]) -> bool:
        return tick - self.last_evolved >= settings["language"]["evolve_interval"]

    def evolve(self, tick: int, rng: random.Random, settings: Dict[str, Any],
               contacts: Sequence["Language"] = ()) -> bool:
        """Run one round of internal change. Returns False if the language evolved too recently."""
        if not self.can_evolve(tick, settings):
            return False
        self.last_evolved = tick
        lang_cfg = settings["language"]
        phon = settings["phonology"]
        sc = settings["sound_change"]
        lex = settings["lexicon"]
        influence = settings["dynamics"]["contact_influence"]

        if rng.random() < phon["inventory_mutation_probability"]:
            pool = None
            if contacts and rng.random() < influence:
                pool = [p for c in contacts for p in c.phonemes]
            self.phonemes, change = mutate_inventory(self.phonemes, rng, phon["min_phonemes"],
                                                     phon["max_phonemes"], phon["min_vowels"], pool)
            if change:
                self._note(tick, f"inventory {change}")

        rule_probability = sc["rule_probability"] * (1.0 - sc["conservatism_factor"] * self.conservatism)
        rule = self.rules.maybe_synthesize(tick, rng, self.phonemes, rule_probability)
        if rule is not None:
            self._note(tick, f"rule {rule.describe()}")

        count = min(lex["words_per_evolution"], len(self.lexicon))
        for meaning in rng.sample(list(self.lexicon), count):
            word = self.lexicon[meaning]
            form = self.rules.apply(word.form, tick, rng, self.phonemes)
            if rng.random() < lex["word_mutation_probability"]:
                form = ensure_vowel(substitute_random(form, self.phonemes, rng), rng, self.phonemes)
            if form != word.form:
                word.form = form
                word.changed_tick = tick

        drift = rng.uniform(-lang_cfg["prestige_drift"], lang_cfg["prestige_drift"])
        if contacts:
            mean = sum(c.prestige for c in contacts) / len(contacts)
            drift += lang_cfg["prestige_drift"] * influence * (mean - self.prestige)
        self.prestige = _clamp(self.prestige + drift, lang_cfg["prestige_floor"], lang_cfg["prestige_ceiling"])

        if rng.random() < lang_cfg["name_mutation_probability"]:
            old = self.name
            self.name = evolve_name(self.name)
            if self.name != old:
                self._note(tick, f"renamed from {old}")

        if len(self.lexicon) < lex["max_vocab"] and rng.random() < lex["new_word_probability"]:
            meaning = self.add_word(tick, rng)
            if meaning is not None:
                self._note(tick, f"coined '{meaning}'")
        return True

    def add_word(self, tick: int, rng: random.Random) -> Optional[str]:
        unused = self.unused_meanings()
        if not unused:
            return None
        meaning = rng.choice(unused)
        self.lexicon[meaning] = Word(generate_word(self.phonemes, rng), meaning, tick)
        return meaning

    def borrow_word(self, source: "Language", meaning: str, tick: int, rng: random.Random) -> bool:
        """Copy and nativize source's word for meaning. False if the source has no such word."""
        original = source.lexicon.get(meaning)
        if original is None:
            return False
        form = adapt_form(original.form, self.phonemes, rng)
        self.lexicon[meaning] = Word(form, meaning, tick, borrowed_from=source.id)
        self._note(tick, f"borrowed '{meaning}' from {source.name}")
        return True

    # --- Queries ---
    @property
    def vowels(self) -> List[str]:
        return split_inventory(self.phonemes)[0]

    @property
    def consonants(self) -> List[str]:
        return split_inventory(self.phonemes)[1]

    def unused_meanings(self) -> List[str]:
        return [m for m in CORE_VOCABULARY if m not in self.lexicon]

    def sample_word(self) -> str:
        for meaning in CORE_VOCABULARY:
            if meaning in self.lexicon:
                return self.lexicon[meaning].form
        return ""

    def lexicon_sample(self, size: int) -> List[Word]:
        """Most recently changed words first."""
        words = sorted(self.lexicon.values(), key=lambda w: (-w.changed_tick, w.meaning))
        return words[:size]

    def _note(self, tick: int, text: str) -> None:
        self.history.append(f"t{tick}: {text}")

    def __repr__(self):
        return f"Language(#{self.id} {self.name}, family={self.family_id}, gen={self.generation})"
