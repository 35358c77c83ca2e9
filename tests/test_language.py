"""
test_language.py: pytest suite for langsim.language
=====================================================
Covers: root creation, splitting, evolution, borrowing and naming.
"""

import random

import pytest

from langsim.language import Language, Word, evolve_name, make_name
from langsim.phonology import has_vowel, split_inventory
from langsim.settings import merge_settings
from langsim.vocabulary import CORE_VOCABULARY


@pytest.fixture
def settings():
    return merge_settings()


def make_root(settings, lang_id=1, seed=0, tick=0):
    return Language.create_root(lang_id, lang_id, tick, random.Random(seed), settings)


def assert_well_formed(language, settings):
    phon = settings["phonology"]
    vowels, _ = split_inventory(language.phonemes)
    assert phon["min_phonemes"] <= len(language.phonemes) <= phon["max_phonemes"]
    assert len(vowels) >= phon["min_vowels"]
    for meaning, word in language.lexicon.items():
        assert word.meaning == meaning
        assert has_vowel(word.form), (meaning, word.form)


# ─────────────────────────────────────────────────────
# Vocabulary catalog
# ─────────────────────────────────────────────────────

class TestVocabulary:
    def test_meanings_are_unique(self):
        assert len(set(CORE_VOCABULARY)) == len(CORE_VOCABULARY)

    def test_catalog_covers_max_vocab(self, settings):
        assert len(CORE_VOCABULARY) >= settings["lexicon"]["max_vocab"]


# ─────────────────────────────────────────────────────
# Root creation
# ─────────────────────────────────────────────────────

class TestCreateRoot:
    def test_root_lineage(self, settings):
        lang = make_root(settings, lang_id=4)
        assert lang.id == 4
        assert lang.family_id == 4
        assert lang.generation == 0
        assert lang.parent_id is None
        assert lang.created_tick == lang.last_evolved == 0

    def test_root_is_well_formed(self, settings):
        for seed in range(10):
            lang = make_root(settings, seed=seed)
            lex = settings["lexicon"]
            assert lex["initial_vocab_min"] <= len(lang.lexicon) <= lex["initial_vocab_max"]
            assert set(lang.lexicon) <= set(CORE_VOCABULARY)
            assert settings["language"]["prestige_min"] <= lang.prestige <= settings["language"]["prestige_max"]
            assert 0.0 <= lang.conservatism <= settings["language"]["conservatism_max"]
            assert all(not w.borrowed for w in lang.lexicon.values())
            assert_well_formed(lang, settings)

    def test_vocabulary_target_limited_by_catalog(self):
        settings = merge_settings({"lexicon": {"initial_vocab_min": 500, "initial_vocab_max": 600,
                                               "max_vocab": 600}})
        lang = make_root(settings)
        assert len(lang.lexicon) == len(CORE_VOCABULARY)

    def test_same_seed_same_language(self, settings):
        a, b = make_root(settings, seed=11), make_root(settings, seed=11)
        assert a.name == b.name
        assert a.phonemes == b.phonemes
        assert {m: w.form for m, w in a.lexicon.items()} == {m: w.form for m, w in b.lexicon.items()}

    def test_sample_word_is_first_core_meaning(self, settings):
        lang = make_root(settings)
        first = next(m for m in CORE_VOCABULARY if m in lang.lexicon)
        assert lang.sample_word() == lang.lexicon[first].form


# ─────────────────────────────────────────────────────
# Splitting
# ─────────────────────────────────────────────────────

class TestSplit:
    def test_descendant_lineage(self, settings):
        parent = make_root(settings, lang_id=1)
        parent.generation = 2
        child = parent.split(9, 30, random.Random(3), settings)
        assert child.id == 9
        assert child.family_id == parent.family_id
        assert child.generation == 3
        assert child.parent_id == parent.id
        assert child.created_tick == 30
        assert child.name != parent.name

    def test_descendant_does_not_alias_parent(self, settings):
        parent = make_root(settings)
        before = {m: w.form for m, w in parent.lexicon.items()}
        child = parent.split(2, 10, random.Random(5), settings)
        parent_words = {id(w) for w in parent.lexicon.values()}
        assert not parent_words & {id(w) for w in child.lexicon.values()}
        assert child.phonemes is not parent.phonemes
        assert child.rules is not parent.rules
        assert {m: w.form for m, w in parent.lexicon.items()} == before

    def test_descendant_inherits_rules_plus_founder(self, settings):
        parent = make_root(settings)
        rng = random.Random(2)
        parent.rules.synthesize(0, rng, parent.phonemes)
        child = parent.split(2, 10, rng, settings)
        assert list(child.rules)[:len(parent.rules)] == list(parent.rules)
        assert len(child.rules) == len(parent.rules) + 1
        assert list(child.rules)[-1].start_tick == 10

    def test_descendant_is_well_formed(self, settings):
        parent = make_root(settings)
        for seed in range(10):
            child = parent.split(2, 10, random.Random(seed), settings)
            assert len(child.lexicon) >= settings["lexicon"]["initial_vocab_min"]
            assert_well_formed(child, settings)

    def test_nothing_inherited_at_zero_probability(self):
        settings = merge_settings({"lexicon": {"inheritance_probability": 0.0}})
        parent = make_root(settings)
        child = parent.split(2, 10, random.Random(0), settings)
        assert all(w.created_tick == 10 for w in child.lexicon.values())
        assert len(child.lexicon) >= settings["lexicon"]["initial_vocab_min"]


# ─────────────────────────────────────────────────────
# Evolution
# ─────────────────────────────────────────────────────

class TestEvolve:
    def test_gated_by_interval(self, settings):
        lang = make_root(settings)
        rng = random.Random(0)
        interval = settings["language"]["evolve_interval"]
        assert lang.evolve(interval - 1, rng, settings) is False
        assert lang.evolve(interval, rng, settings) is True
        assert lang.last_evolved == interval
        assert lang.evolve(interval + 1, rng, settings) is False

    def test_can_evolve_matches_gate(self, settings):
        lang = make_root(settings)
        interval = settings["language"]["evolve_interval"]
        assert not lang.can_evolve(interval - 1, settings)
        assert lang.can_evolve(interval, settings)
        lang.evolve(interval, random.Random(0), settings)
        assert not lang.can_evolve(interval, settings)
        assert lang.can_evolve(2 * interval, settings)

    def test_aggressive_evolution_keeps_invariants(self):
        settings = merge_settings({
            "phonology": {"inventory_mutation_probability": 1.0},
            "sound_change": {"rule_probability": 1.0},
            "lexicon": {"word_mutation_probability": 1.0, "new_word_probability": 1.0,
                        "words_per_evolution": 20},
            "language": {"evolve_interval": 1, "name_mutation_probability": 0.5},
        })
        rng = random.Random(7)
        lang = make_root(settings)
        contact = make_root(settings, lang_id=2, seed=1)
        lang_cfg = settings["language"]
        for tick in range(1, 201):
            assert lang.evolve(tick, rng, settings, [contact])
            assert_well_formed(lang, settings)
            assert lang_cfg["prestige_floor"] <= lang.prestige <= lang_cfg["prestige_ceiling"]
            assert len(lang.rules) <= settings["sound_change"]["max_rules"]
            assert len(lang.lexicon) <= settings["lexicon"]["max_vocab"]
        assert len(lang.history) == lang_cfg["history_limit"]
        assert all(entry.startswith("t") for entry in lang.history)

    def test_changed_words_are_stamped(self):
        settings = merge_settings({"lexicon": {"word_mutation_probability": 1.0, "words_per_evolution": 5}})
        lang = make_root(settings)
        before = {m: w.form for m, w in lang.lexicon.items()}
        lang.evolve(5, random.Random(1), settings)
        for meaning, word in lang.lexicon.items():
            if meaning in before and word.form != before[meaning]:
                assert word.changed_tick == 5

    def test_lexicon_sample_most_recent_first(self, settings):
        lang = make_root(settings)
        words = list(lang.lexicon.values())
        words[3].changed_tick = 50
        words[7].changed_tick = 40
        sample = lang.lexicon_sample(3)
        assert sample[0] is words[3]
        assert sample[1] is words[7]
        assert len(sample) == 3


# ─────────────────────────────────────────────────────
# Borrowing
# ─────────────────────────────────────────────────────

class TestBorrow:
    def test_missing_meaning_fails_without_change(self, settings):
        target, source = make_root(settings, 1, seed=1), make_root(settings, 2, seed=2)
        meaning = next(m for m in CORE_VOCABULARY if m in target.lexicon)
        source.lexicon.pop(meaning, None)
        before = target.lexicon[meaning]
        form = before.form
        assert target.borrow_word(source, meaning, 5, random.Random(0)) is False
        assert target.lexicon[meaning] is before
        assert before.form == form
        assert not before.borrowed

    def test_missing_meaning_absent_from_target_stays_absent(self, settings):
        target, source = make_root(settings, 1, seed=1), make_root(settings, 2, seed=2)
        meaning = next(m for m in CORE_VOCABULARY if m not in target.lexicon)
        source.lexicon.pop(meaning, None)
        assert target.borrow_word(source, meaning, 5, random.Random(0)) is False
        assert meaning not in target.lexicon

    def test_borrowed_word_is_adapted_copy(self, settings):
        target, source = make_root(settings, 1, seed=1), make_root(settings, 2, seed=2)
        meaning = next(iter(source.lexicon))
        assert target.borrow_word(source, meaning, 5, random.Random(0)) is True
        word = target.lexicon[meaning]
        assert word.borrowed
        assert word.borrowed_from == source.id
        assert word.created_tick == 5
        assert word is not source.lexicon[meaning]
        assert set(word.form) <= set(target.phonemes)
        assert has_vowel(word.form)


# ─────────────────────────────────────────────────────
# Names and words
# ─────────────────────────────────────────────────────

class TestNames:
    def test_evolve_name(self):
        assert evolve_name("Kato") == "Ketu"
        assert evolve_name("Mu") == "Mo"

    def test_make_name_capitalized(self):
        rng = random.Random(0)
        for _ in range(20):
            name = make_name(rng)
            assert name[0].isupper()
            assert 4 <= len(name) <= 6


class TestWord:
    def test_copy_is_independent(self):
        word = Word("kata", "stone", 3, borrowed_from=2)
        clone = word.copy()
        clone.form = "kada"
        assert word.form == "kata"
        assert clone.borrowed_from == 2
        assert clone.changed_tick == 3
