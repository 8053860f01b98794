"""Tests for boss_ai.decision – sanitising untrusted model output."""

import json

import pytest

from boss_ai.decision import (
    clamp_speed, extract_decision_from_text, parse_decision, strip_code_fence,
    validate_decision,
)
from boss_ai.prompts import build_situation_prompt, personality_prompt
from tests.conftest import make_context

LEGAL = ("straight", "spread", "spiral")


class TestValidation:
    """Every field is coerced into something safe."""

    def test_illegal_pattern_becomes_first_legal(self):
        decision = validate_decision({"attackPattern": "ultimate"}, LEGAL)
        assert decision.attack_pattern == "straight"

    def test_legal_pattern_kept(self):
        decision = validate_decision({"attackPattern": "spiral", "reasoning": "why not"}, LEGAL)
        assert decision.attack_pattern == "spiral"
        assert decision.reasoning == "why not"
        assert decision.source == "llm"

    @pytest.mark.parametrize("raw, expected", [
        (5.0, 2.0), (0.1, 0.5), (1.3, 1.3), ("fast", 1.0), (None, 1.0),
        (float("nan"), 1.0), (True, 1.0), (0, 1.0),
    ])
    def test_speed_clamp(self, raw, expected):
        assert clamp_speed(raw) == pytest.approx(expected)

    def test_movement(self):
        decision = validate_decision(
            {"attackPattern": "spread", "movement": {"target": "orbit", "speed": 5.0}}, LEGAL)
        assert decision.movement.target == "center"
        assert decision.movement.speed == 2.0

    def test_unknown_special_action_dropped(self):
        decision = validate_decision(
            {"attackPattern": "spread", "specialAction": {"type": "explode"}}, LEGAL)
        assert decision.special_action is None

    def test_special_action_parameters(self):
        decision = validate_decision(
            {"specialAction": {"type": "shield", "parameters": {"duration": 2000}}}, LEGAL)
        assert decision.special_action.type == "shield"
        assert decision.special_action.params == {"duration": 2000}

        decision = validate_decision(
            {"specialAction": {"type": "heal", "parameters": "lots"}}, LEGAL)
        assert decision.special_action.params == {}

    def test_adapt_flags_coerced(self):
        decision = validate_decision(
            {"adaptDifficulty": {"increase": "true", "decrease": 0}}, LEGAL)
        assert decision.adapt_difficulty.increase is True
        assert decision.adapt_difficulty.decrease is False


class TestParsing:
    """JSON, fenced JSON and free text."""

    def test_fenced_json(self):
        body = json.dumps({"attackPattern": "spread", "movement": {"target": "left"}})
        decision = parse_decision(f"```json\n{body}\n```", LEGAL)
        assert decision.attack_pattern == "spread"
        assert decision.movement.target == "left"

    def test_strip_code_fence_without_language(self):
        assert strip_code_fence("```\n{}\n```") == "{}"
        assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'

    def test_malformed_fence_degrades_to_keywords(self):
        decision = parse_decision("```json\n{ attackPattern: spiral, chase!", LEGAL)
        assert decision.attack_pattern == "spiral"
        assert decision.movement.target == "player"
        assert decision.source == "extracted"

    def test_non_object_json(self):
        decision = parse_decision("[1, 2, 3]", LEGAL)
        assert decision.attack_pattern in LEGAL
        assert decision.source == "extracted"

    def test_keyword_extraction_defaults(self):
        decision = extract_decision_from_text("I have no idea", LEGAL)
        assert decision.attack_pattern == "straight"
        assert decision.movement.target == "center"
        assert decision.reasoning == "Extracted from text response"

    def test_keyword_extraction_is_case_insensitive(self):
        decision = extract_decision_from_text("Use SPREAD and RETREAT", LEGAL)
        assert decision.attack_pattern == "spread"
        assert decision.movement.target == "left"

    def test_empty_legal_set(self):
        decision = parse_decision("nonsense", ())
        assert decision.attack_pattern == "straight"


class TestPrompts:
    """Situation prompt rendering."""

    def test_situation_prompt(self):
        text = build_situation_prompt(make_context(health_ratio=0.2, phase=3, enraged=True,
                                                   distance=123.4))
        assert text.startswith("Current Situation:")
        assert "Health: 20%, Phase: 3) [ENRAGED]" in text
        assert "Distance 123px, Moving horizontal" in text
        assert "Time 42s" in text
        assert "Available attack patterns: straight, spread, spiral" in text
        assert "Current pattern: straight (2s active)" in text
        assert '"attackPattern": "pattern_name"' in text

    def test_unknown_personality_uses_aggressive(self):
        assert personality_prompt("sleepy") == personality_prompt("aggressive")
