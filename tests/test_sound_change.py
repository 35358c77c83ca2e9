"""
test_sound_change.py: pytest suite for langsim.sound_change
=============================================================
Covers: context matching, rule descriptions, rule-set application order,
deletion, caps, eviction and synthesis.
"""

import random

from langsim.phonology import has_vowel, is_vowel
from langsim.sound_change import (CONSONANT, DELETE, VOWEL, SoundChangeRule,
                                  SoundChangeRules)


def certain(source, target, left=None, right=None, start_tick=0):
    """A rule that always fires when its context matches."""
    return SoundChangeRule(source, target, left, right, probability=1.0, strength=1.0, start_tick=start_tick)


# ─────────────────────────────────────────────────────
# SoundChangeRule
# ─────────────────────────────────────────────────────

class TestRule:
    def test_intervocalic_context(self):
        rule = certain("t", "d", VOWEL, VOWEL)
        assert rule.matches("ata", 1)
        assert not rule.matches("ta", 0)
        assert not rule.matches("atk", 1)

    def test_exact_phoneme_context(self):
        rule = certain("k", "ʧ", None, "i")
        assert rule.matches("aki", 1)
        assert not rule.matches("aka", 1)

    def test_word_edge_only_satisfies_no_constraint(self):
        rule = certain("t", "d", None, CONSONANT)
        assert not rule.matches("at", 1)

    def test_describe(self):
        assert certain("t", "d", VOWEL, VOWEL).describe() == "t>d / V_V"
        assert certain("h", DELETE, None, CONSONANT).describe() == "h>∅ / _C"
        assert certain("o", "u").describe() == "o>u"


# ─────────────────────────────────────────────────────
# SoundChangeRules.apply
# ─────────────────────────────────────────────────────

class TestApply:
    def test_substitution_in_context(self):
        rules = SoundChangeRules(rules=[certain("t", "d", VOWEL, VOWEL)], max_changes=5)
        assert rules.apply("atata", 0, random.Random(0)) == "adada"

    def test_inactive_before_start_tick(self):
        rules = SoundChangeRules(rules=[certain("t", "d", VOWEL, VOWEL, start_tick=10)])
        assert rules.apply("ata", 5, random.Random(0)) == "ata"
        assert rules.apply("ata", 10, random.Random(0)) == "ada"

    def test_deletion(self):
        rules = SoundChangeRules(rules=[certain("h", DELETE, None, CONSONANT)])
        assert rules.apply("ahta", 0, random.Random(0)) == "ata"

    def test_deleting_last_vowel_restores_one(self):
        rules = SoundChangeRules(rules=[certain("a", DELETE)])
        out = rules.apply("ta", 0, random.Random(0), ["t", "e"])
        assert has_vowel(out)
        assert out == "et"

    def test_change_cap(self):
        rules = SoundChangeRules(rules=[certain("o", "u")], max_changes=2)
        assert rules.apply("ooooo", 0, random.Random(0)) == "uuooo"

    def test_rules_apply_in_insertion_order(self):
        # The first rule feeds the second
        rules = SoundChangeRules(rules=[certain("t", "d", VOWEL, VOWEL), certain("d", "n")])
        assert rules.apply("ata", 0, random.Random(0)) == "ana"
        reversed_rules = SoundChangeRules(rules=[certain("d", "n"), certain("t", "d", VOWEL, VOWEL)])
        assert reversed_rules.apply("ata", 0, random.Random(0)) == "ada"

    def test_only_restricts_rules(self):
        first, second = certain("t", "d"), certain("a", "e")
        rules = SoundChangeRules(rules=[first, second])
        assert rules.apply("ta", 0, random.Random(0), only=[second]) == "te"

    def test_zero_probability_never_fires(self):
        rule = SoundChangeRule("t", "d", probability=0.0, strength=1.0)
        rules = SoundChangeRules(rules=[rule])
        rng = random.Random(4)
        assert all(rules.apply("tat", 0, rng) == "tat" for _ in range(50))


# ─────────────────────────────────────────────────────
# Rule set management
# ─────────────────────────────────────────────────────

class TestRuleSet:
    def test_oldest_rules_evicted(self):
        rules = SoundChangeRules(max_rules=3)
        added = [certain(src, "a") for src in "ptkbd"]
        for rule in added:
            rules.add(rule)
        assert len(rules) == 3
        assert list(rules) == added[2:]

    def test_copy_is_independent(self):
        rules = SoundChangeRules(rules=[certain("t", "d")])
        clone = rules.copy()
        clone.add(certain("k", "g"))
        assert len(rules) == 1
        assert len(clone) == 2

    def test_synthesize_prefers_fitting_template(self):
        rules = SoundChangeRules()
        rule = rules.synthesize(7, random.Random(0), ["p", "f", "a"])
        assert (rule.source, rule.target, rule.left, rule.right) == ("p", "f", VOWEL, VOWEL)
        assert rule.start_tick == 7
        assert 0.3 <= rule.probability <= 0.9
        assert 0.5 <= rule.strength <= 1.0
        assert list(rules) == [rule]

    def test_synthesize_falls_back_to_merger(self):
        inventory = ["ɪ", "ɛ", "ʊ"]
        for seed in range(20):
            rule = SoundChangeRules().synthesize(0, random.Random(seed), inventory)
            assert rule.source in inventory
            assert rule.target in inventory
            assert rule.target != rule.source
            assert is_vowel(rule.target)

    def test_maybe_synthesize_respects_probability(self):
        rules = SoundChangeRules()
        rng = random.Random(1)
        assert all(rules.maybe_synthesize(0, rng, ["p", "f", "a"], 0.0) is None for _ in range(20))
        assert rules.maybe_synthesize(0, rng, ["p", "f", "a"], 1.0) is not None
