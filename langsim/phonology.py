"""Phoneme catalog and the phoneme-level helpers languages are built from.

Every symbol is a single code point, so a word form can be indexed phoneme by
phoneme. Each phoneme carries a binary distinctive-feature vector; the
"syllabic" feature is what separates vowels from consonants.
"""
from __future__ import annotations
import random
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple


FEATURES = (
    "syllabic", "consonantal", "sonorant", "voiced", "continuant", "nasal",
    "strident", "lateral", "labial", "coronal", "dorsal", "high", "low",
    "back", "round", "tense",
)


class Phoneme(NamedTuple):
    symbol: str
    features: Tuple[int, ...]

    @property
    def syllabic(self) -> bool:
        return bool(self.features[0])


def _p(symbol: str, *positive: str) -> Phoneme:
    unknown = set(positive) - set(FEATURES)
    if unknown:
        raise ValueError(f"unknown features for {symbol}: {sorted(unknown)}")
    return Phoneme(symbol, tuple(int(f in positive) for f in FEATURES))


_VOWEL = ("syllabic", "sonorant", "voiced", "continuant")

_CATALOG = (
    # Vowels
    _p("i", *_VOWEL, "high", "tense"),
    _p("y", *_VOWEL, "high", "round", "tense"),
    _p("ɪ", *_VOWEL, "high"),
    _p("e", *_VOWEL, "tense"),
    _p("ɛ", *_VOWEL),
    _p("a", *_VOWEL, "low"),
    _p("ɑ", *_VOWEL, "low", "back"),
    _p("ɔ", *_VOWEL, "back", "round"),
    _p("o", *_VOWEL, "back", "round", "tense"),
    _p("u", *_VOWEL, "high", "back", "round", "tense"),
    _p("ʊ", *_VOWEL, "high", "back", "round"),
    _p("ə", *_VOWEL, "back"),
    # Stops
    _p("p", "consonantal", "labial"),
    _p("b", "consonantal", "voiced", "labial"),
    _p("t", "consonantal", "coronal"),
    _p("d", "consonantal", "voiced", "coronal"),
    _p("k", "consonantal", "dorsal", "high", "back"),
    _p("g", "consonantal", "voiced", "dorsal", "high", "back"),
    _p("q", "consonantal", "dorsal", "back"),
    _p("ʔ", "consonantal"),
    # Fricatives and affricates
    _p("f", "consonantal", "continuant", "labial"),
    _p("v", "consonantal", "voiced", "continuant", "labial"),
    _p("θ", "consonantal", "continuant", "coronal"),
    _p("s", "consonantal", "continuant", "strident", "coronal"),
    _p("z", "consonantal", "voiced", "continuant", "strident", "coronal"),
    _p("ʃ", "consonantal", "continuant", "strident", "coronal", "high"),
    _p("ʒ", "consonantal", "voiced", "continuant", "strident", "coronal", "high"),
    _p("x", "consonantal", "continuant", "dorsal", "high", "back"),
    _p("ɣ", "consonantal", "voiced", "continuant", "dorsal", "high", "back"),
    _p("h", "consonantal", "continuant"),
    _p("ʦ", "consonantal", "strident", "coronal"),
    _p("ʧ", "consonantal", "strident", "coronal", "high"),
    # Sonorants
    _p("m", "consonantal", "sonorant", "voiced", "nasal", "labial"),
    _p("n", "consonantal", "sonorant", "voiced", "nasal", "coronal"),
    _p("ɲ", "consonantal", "sonorant", "voiced", "nasal", "coronal", "high"),
    _p("ŋ", "consonantal", "sonorant", "voiced", "nasal", "dorsal", "high", "back"),
    _p("l", "consonantal", "sonorant", "voiced", "continuant", "lateral", "coronal"),
    _p("r", "consonantal", "sonorant", "voiced", "continuant", "coronal"),
    _p("j", "sonorant", "voiced", "continuant", "high"),
    _p("w", "sonorant", "voiced", "continuant", "labial", "high", "back", "round"),
)

PHONEMES: Dict[str, Phoneme] = {p.symbol: p for p in _CATALOG}
VOWELS: Tuple[str, ...] = tuple(p.symbol for p in _CATALOG if p.syllabic)
CONSONANTS: Tuple[str, ...] = tuple(p.symbol for p in _CATALOG if not p.syllabic)
ALL_PHONEMES: Tuple[str, ...] = VOWELS + CONSONANTS


def is_vowel(symbol: str) -> bool:
    phoneme = PHONEMES.get(symbol)
    return phoneme is not None and phoneme.syllabic


def is_consonant(symbol: str) -> bool:
    phoneme = PHONEMES.get(symbol)
    return phoneme is not None and not phoneme.syllabic


def feature_distance(a: str, b: str) -> int:
    """Number of distinctive features on which two phonemes disagree."""
    try:
        fa, fb = PHONEMES[a].features, PHONEMES[b].features
    except KeyError as exc:
        raise ValueError(f"unknown phoneme {exc.args[0]!r}") from None
    return sum(x != y for x, y in zip(fa, fb))


def nearest_phoneme(symbol: str, candidates: Iterable[str]) -> Optional[str]:
    """Closest other phoneme by feature distance; ties go to catalog order."""
    options = [c for c in candidates if c != symbol and c in PHONEMES]
    if not options:
        return None
    order = {s: i for i, s in enumerate(ALL_PHONEMES)}
    return min(options, key=lambda c: (feature_distance(symbol, c), order[c]))


def split_inventory(inventory: Iterable[str]) -> Tuple[List[str], List[str]]:
    vowels, consonants = [], []
    for p in inventory:
        (vowels if is_vowel(p) else consonants).append(p)
    return vowels, consonants


def has_vowel(form: str) -> bool:
    return any(is_vowel(ch) for ch in form)


def ensure_vowel(form: str, rng: random.Random, inventory: Optional[Sequence[str]] = None) -> str:
    """Return form unchanged if it has a syllabic phoneme, else insert one at the midpoint."""
    if has_vowel(form):
        return form
    vowels = [p for p in (inventory or ()) if is_vowel(p)]
    vowel = rng.choice(vowels) if vowels else "a"
    mid = len(form) // 2
    return form[:mid] + vowel + form[mid:]


def generate_inventory(rng: random.Random, min_size: int, max_size: int,
                       min_vowels: int, vowel_share: float) -> List[str]:
    """Fresh inventory: min_vowels distinct vowels, then a vowel/consonant mix up to a random target size."""
    target = rng.randint(min_size, min(max_size, len(ALL_PHONEMES)))
    chosen = rng.sample(VOWELS, min_vowels)
    while len(chosen) < target:
        pool = VOWELS if rng.random() < vowel_share else CONSONANTS
        free = [p for p in pool if p not in chosen]
        if not free:
            free = [p for p in ALL_PHONEMES if p not in chosen]
        chosen.append(rng.choice(free))
    return chosen


def mutate_inventory(inventory: Sequence[str], rng: random.Random, min_size: int, max_size: int,
                     min_vowels: int, pool: Optional[Iterable[str]] = None) -> Tuple[List[str], Optional[str]]:
    """Add, remove or swap one phoneme while staying within [min_size, max_size].

    Vowels are never removed below min_vowels. When pool is given, additions
    prefer phonemes from it (contact influence). Returns the new inventory and
    a short description of the change, or None when nothing changed.
    """
    inv = list(inventory)
    vowels, _ = split_inventory(inv)
    missing = [p for p in ALL_PHONEMES if p not in inv]
    removable = [p for p in inv if not is_vowel(p) or len(vowels) > min_vowels]

    ops = ["swap"]
    if len(inv) < max_size and missing:
        ops.append("add")
    if len(inv) > min_size and removable:
        ops.append("remove")
    op = rng.choice(ops)

    if op == "add":
        preferred = [p for p in (pool or ()) if p in missing]
        added = rng.choice(preferred or missing)
        inv.append(added)
        return inv, f"+{added}"
    if op == "remove":
        removed = rng.choice(removable)
        inv.remove(removed)
        return inv, f"-{removed}"

    old = rng.choice(inv)
    same_class = [p for p in missing if is_vowel(p) == is_vowel(old)]
    if not same_class:
        return inv, None
    new = rng.choice(same_class)
    inv[inv.index(old)] = new
    return inv, f"{old}>{new}"


def generate_word(inventory: Sequence[str], rng: random.Random) -> str:
    """One or two (C)V(C) syllables drawn from the inventory."""
    vowels, consonants = split_inventory(inventory)
    if not vowels:
        vowels = ["a"]
    word = ""
    syllables = 2 if rng.random() < 0.4 else 1
    for _ in range(syllables):
        if consonants and rng.random() < 0.8:
            word += rng.choice(consonants)
        word += rng.choice(vowels)
        if consonants and rng.random() < 0.3:
            word += rng.choice(consonants)
    return word


def substitute_random(form: str, inventory: Sequence[str], rng: random.Random) -> str:
    """Replace one random phoneme with another inventory phoneme of the same class."""
    if not form:
        return form
    i = rng.randrange(len(form))
    vowels, consonants = split_inventory(inventory)
    pool = vowels if is_vowel(form[i]) else consonants
    options = [p for p in pool if p != form[i]]
    if not options:
        return form
    return form[:i] + rng.choice(options) + form[i + 1:]


def adapt_form(form: str, inventory: Sequence[str], rng: random.Random) -> str:
    """Nativize a foreign form: every phoneme outside the inventory becomes a random native one of its class."""
    present = set(inventory)
    vowels, consonants = split_inventory(inventory)
    out = []
    for ch in form:
        if ch in present:
            out.append(ch)
        elif is_vowel(ch) and vowels:
            out.append(rng.choice(vowels))
        elif not is_vowel(ch) and consonants:
            out.append(rng.choice(consonants))
        else:
            out.append(rng.choice(list(inventory)))
    return ensure_vowel("".join(out), rng, inventory)
