"""Tests for idea fingerprinting."""

import json

from tilehub.core.fingerprint import FINGERPRINT_LENGTH, fingerprint, normalize_idea


class TestNormalizeIdea:
    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_idea("  AI   Scheduling\tAssistant \n") == "ai scheduling assistant"

    def test_compatibility_characters_fold(self):
        """Full-width letters normalize to ASCII."""
        assert normalize_idea("ＡＩ tutor") == "ai tutor"

    def test_none_is_empty(self):
        assert normalize_idea(None) == ""


class TestFingerprint:
    def test_stable_across_case_and_spacing(self):
        a = fingerprint("AI scheduling assistant for clinics")
        b = fingerprint("  ai  SCHEDULING assistant   for clinics ")
        assert a == b

    def test_different_ideas_differ(self):
        assert fingerprint("meal planner") != fingerprint("meal planners")

    def test_length_and_hex(self):
        value = fingerprint("anything at all")
        assert len(value) == FINGERPRINT_LENGTH
        int(value, 16)

    def test_custom_length(self):
        assert len(fingerprint("idea text", length=12)) == 12

    def test_lone_surrogate_from_json_hashes(self):
        idea = json.loads('"AI scheduling \\ud800 assistant"')
        value = fingerprint(idea)
        assert len(value) == FINGERPRINT_LENGTH
        int(value, 16)
        assert fingerprint(idea) == value
