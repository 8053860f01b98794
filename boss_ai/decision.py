"""
decision.py – Boss decisions and sanitising of untrusted model output.

The remote service answers with free text that *should* be this JSON
(optionally wrapped in a markdown code fence):

    {
      "attackPattern": "spiral",
      "movement": {"target": "left", "speed": 1.2},
      "specialAction": {"type": "shield", "parameters": {"duration": 2000}},
      "adaptDifficulty": {"increase": false, "decrease": true},
      "reasoning": "player is camping the left edge"
    }

Nothing from the service is trusted.  Every decision goes through
``validate_decision``:

  - attackPattern not in the legal set  → first legal pattern
  - movement.speed                      → clamped to [0.5, 2.0]
  - movement.target not a known target  → "center"
  - specialAction.type not whitelisted  → field dropped
  - adaptDifficulty flags               → coerced to bool

Text that is not valid JSON degrades to keyword extraction instead of
failing.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Sequence

from boss_ai.pattern_library import DEFAULT_PATTERN

logger = logging.getLogger(__name__)


MOVEMENT_TARGETS = ("left", "right", "center", "player", "random")
SPECIAL_ACTIONS = ("teleport", "shield", "heal", "summon", "rage")
SPEED_MIN = 0.5
SPEED_MAX = 2.0
DEFAULT_SPEED = 1.0

# First match wins, so order matters.
MOVEMENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "left": ("left", "retreat", "back"),
    "right": ("right", "advance", "forward"),
    "player": ("chase", "follow", "target"),
    "center": ("center", "middle", "central"),
}

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*(```)?\s*$", re.DOTALL)


# ══════════════════════════════════════════════════════════
#  Decision types
# ══════════════════════════════════════════════════════════

@dataclass
class Movement:
    # A named target ("left", "player", ...) or an explicit arena point.
    target: str | tuple[float, float] = "center"
    speed: float = DEFAULT_SPEED


@dataclass
class SpecialAction:
    type: str
    params: dict = field(default_factory=dict)


@dataclass
class DifficultyAdjustment:
    increase: bool = False
    decrease: bool = False


@dataclass
class Decision:
    """One scheduling cycle's worth of boss intent."""
    attack_pattern: str
    movement: Movement | None = None
    special_action: SpecialAction | None = None
    adapt_difficulty: DifficultyAdjustment | None = None
    reasoning: str = ""
    source: str = "fallback"        # llm | extracted | fallback (diagnostic)


class MalformedDecisionJson(ValueError):
    """Model output could not be read as a decision object."""


# ══════════════════════════════════════════════════════════
#  Parsing
# ══════════════════════════════════════════════════════════

def strip_code_fence(content: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    text = content.strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def load_decision_json(content: str) -> dict:
    try:
        raw = json.loads(strip_code_fence(content))
    except (json.JSONDecodeError, TypeError) as exc:
        raise MalformedDecisionJson(str(exc)) from exc
    if not isinstance(raw, dict):
        raise MalformedDecisionJson(f"expected an object, got {type(raw).__name__}")
    return raw


def parse_decision(content: str, legal_patterns: Sequence[str]) -> Decision:
    """Parse + validate model output, degrading to keyword extraction."""
    try:
        raw = load_decision_json(content)
    except MalformedDecisionJson as exc:
        logger.warning("Failed to parse model decision (%s) – extracting keywords", exc)
        return extract_decision_from_text(content, legal_patterns)
    return validate_decision(raw, legal_patterns)


# ══════════════════════════════════════════════════════════
#  Validation
# ══════════════════════════════════════════════════════════

def _first_legal(legal_patterns: Sequence[str]) -> str:
    return legal_patterns[0] if legal_patterns else DEFAULT_PATTERN.value


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def clamp_speed(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_SPEED
    if not math.isfinite(value) or value == 0:
        return DEFAULT_SPEED
    return max(SPEED_MIN, min(SPEED_MAX, float(value)))


def validate_movement_target(target) -> str:
    return target if target in MOVEMENT_TARGETS else "center"


def validate_decision(raw: dict, legal_patterns: Sequence[str],
                      source: str = "llm") -> Decision:
    """Turn an untrusted dict into a safe ``Decision``."""
    pattern = raw.get("attackPattern")
    if not isinstance(pattern, str) or pattern not in legal_patterns:
        pattern = _first_legal(legal_patterns)

    decision = Decision(
        attack_pattern=pattern,
        reasoning=str(raw.get("reasoning") or "AI decision"),
        source=source,
    )

    movement = raw.get("movement")
    if isinstance(movement, dict):
        decision.movement = Movement(
            target=validate_movement_target(movement.get("target")),
            speed=clamp_speed(movement.get("speed")),
        )

    special = raw.get("specialAction")
    if isinstance(special, dict) and special.get("type") in SPECIAL_ACTIONS:
        params = special.get("parameters")
        decision.special_action = SpecialAction(
            type=special["type"],
            params=dict(params) if isinstance(params, dict) else {},
        )

    adapt = raw.get("adaptDifficulty")
    if isinstance(adapt, dict):
        decision.adapt_difficulty = DifficultyAdjustment(
            increase=_as_bool(adapt.get("increase")),
            decrease=_as_bool(adapt.get("decrease")),
        )

    return decision


def extract_decision_from_text(content: str,
                               legal_patterns: Sequence[str]) -> Decision:
    """Best-effort decision from free text (case-insensitive keyword scan)."""
    text = (content or "").lower()
    decision = Decision(
        attack_pattern=_first_legal(legal_patterns),
        movement=Movement(),
        reasoning="Extracted from text response",
        source="extracted",
    )

    for pattern in legal_patterns:
        if pattern.lower() in text:
            decision.attack_pattern = pattern
            break

    for target, keywords in MOVEMENT_KEYWORDS.items():
        if any(word in text for word in keywords):
            decision.movement.target = target
            break

    return decision
