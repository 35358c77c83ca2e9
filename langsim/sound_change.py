"""Per-language sound-change rules.

A rule rewrites one source phoneme to a target phoneme (or deletes it) when
its left/right neighbors match the rule's context. Contexts are VOWEL, CONSONANT,
an exact phoneme symbol, or None for "no constraint". A word edge only
satisfies a None context.
"""
from __future__ import annotations
import random
from typing import Iterable, List, NamedTuple, Optional, Sequence

from .phonology import (ALL_PHONEMES, ensure_vowel, is_consonant, is_vowel,
                        nearest_phoneme)


DELETE = ""
VOWEL = "V"
CONSONANT = "C"

# (source, target, left context, right context)
TEMPLATES = (
    ("p", "f", VOWEL, VOWEL),
    ("b", "v", VOWEL, VOWEL),
    ("t", "d", VOWEL, VOWEL),
    ("k", "x", VOWEL, VOWEL),
    ("g", "ɣ", VOWEL, VOWEL),
    ("s", "h", VOWEL, VOWEL),
    ("k", "ʧ", None, "i"),
    ("t", "ʦ", None, "i"),
    ("s", "ʃ", None, "i"),
    ("n", "ŋ", None, "k"),
    ("m", "n", None, "t"),
    ("h", DELETE, None, CONSONANT),
    ("ʔ", DELETE, VOWEL, None),
    ("ə", DELETE, CONSONANT, CONSONANT),
    ("a", "ə", CONSONANT, CONSONANT),
    ("o", "u", None, None),
    ("e", "i", CONSONANT, None),
    ("u", "o", CONSONANT, None),
    ("r", "l", None, None),
    ("i", "e", None, CONSONANT),
)


def _context_matches(context: Optional[str], neighbor: Optional[str]) -> bool:
    if context is None:
        return True
    if neighbor is None:
        return False
    if context == VOWEL:
        return is_vowel(neighbor)
    if context == CONSONANT:
        return is_consonant(neighbor)
    return neighbor == context


class SoundChangeRule(NamedTuple):
    source: str
    target: str
    left: Optional[str] = None
    right: Optional[str] = None
    probability: float = 1.0
    strength: float = 1.0
    start_tick: int = 0

    def matches(self, phonemes: Sequence[str], i: int) -> bool:
        if phonemes[i] != self.source:
            return False
        left = phonemes[i - 1] if i > 0 else None
        right = phonemes[i + 1] if i + 1 < len(phonemes) else None
        return _context_matches(self.left, left) and _context_matches(self.right, right)

    def describe(self) -> str:
        change = f"{self.source}>{self.target or '∅'}"
        if self.left is None and self.right is None:
            return change
        return f"{change} / {self.left or ''}_{self.right or ''}"


class SoundChangeRules:
    """Ordered, size-capped rule set owned by one language."""

    def __init__(self, max_rules: int = 8, max_changes: int = 3, rules: Optional[Iterable[SoundChangeRule]] = None):
        self.max_rules = max_rules
        self.max_changes = max_changes
        self.rules: List[SoundChangeRule] = []
        for rule in rules or ():
            self.add(rule)

    def __len__(self):
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)

    def copy(self) -> "SoundChangeRules":
        return SoundChangeRules(self.max_rules, self.max_changes, self.rules)

    def add(self, rule: SoundChangeRule) -> None:
        self.rules.append(rule)
        # Oldest rules are evicted first
        while len(self.rules) > self.max_rules:
            self.rules.pop(0)

    def synthesize(self, tick: int, rng: random.Random, inventory: Sequence[str]) -> Optional[SoundChangeRule]:
        """Build a rule that fits the inventory, append it, and return it.

        Templates whose source is in the inventory and whose target is either
        in the inventory or a deletion are preferred. Otherwise an inventory
        phoneme merges into its nearest same-class inventory neighbor under a
        random context.
        """
        present = set(inventory)
        candidates = [t for t in TEMPLATES if t[0] in present and (t[1] == DELETE or t[1] in present)]
        if candidates:
            source, target, left, right = rng.choice(candidates)
        else:
            source = rng.choice(list(inventory))
            same_class = [p for p in inventory if is_vowel(p) == is_vowel(source)]
            target = nearest_phoneme(source, same_class)
            if target is None:
                return None
            left = rng.choice((VOWEL, CONSONANT, None))
            right = rng.choice((VOWEL, CONSONANT, None))
        rule = SoundChangeRule(
            source=source,
            target=target,
            left=left,
            right=right,
            probability=round(rng.uniform(0.3, 0.9), 4),
            strength=round(rng.uniform(0.5, 1.0), 4),
            start_tick=tick,
        )
        self.add(rule)
        return rule

    def maybe_synthesize(self, tick: int, rng: random.Random, inventory: Sequence[str],
                         probability: float) -> Optional[SoundChangeRule]:
        if rng.random() >= probability:
            return None
        return self.synthesize(tick, rng, inventory)

    def apply(self, form: str, tick: int, rng: random.Random, inventory: Sequence[str] = (),
              only: Optional[Iterable[SoundChangeRule]] = None) -> str:
        """Run the rules in insertion order over a word form.

        Each rule reads the form as the previous rule left it. The total number
        of rewritten positions per call is capped at max_changes, and the
        result always keeps at least one vowel.
        """
        changes = 0
        for rule in (self.rules if only is None else only):
            if changes >= self.max_changes:
                break
            if tick < rule.start_tick:
                continue
            if rng.random() >= rule.probability:
                continue
            phonemes = list(form)
            out = []
            for i, ch in enumerate(phonemes):
                if changes < self.max_changes and rule.matches(phonemes, i) and rng.random() < rule.strength:
                    changes += 1
                    if rule.target != DELETE:
                        out.append(rule.target)
                else:
                    out.append(ch)
            form = "".join(out)
        return ensure_vowel(form, rng, inventory or ALL_PHONEMES)
