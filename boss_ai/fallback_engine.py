"""
fallback_engine.py – Deterministic rule-based boss decisions.

Used whenever the remote decision service is unavailable or fails.
``decide()`` is a pure function of its ``DecisionContext``: the same
context always yields the same decision, and nothing is mutated.

Rule chain (later rules override earlier ones):

  1. health ratio < 0.25        → DESPERATE
  2. else health ratio < 0.50   → AGGRESSIVE
  3. player distance < 100      → CLOSE_RANGE
  4. player distance > 300      → LONG_RANGE
  5. phase 3                    → FINAL       (overrides everything)

No rule fired → OPENING.

The winning class is then resolved through one rule table keyed by
boss personality.  The first candidate that is legal for this boss
wins; otherwise the default table's candidates; otherwise the boss's
first legal pattern.
"""

from __future__ import annotations

from enum import Enum

from boss_ai.context import DecisionContext
from boss_ai.decision import Decision, Movement


class PatternClass(str, Enum):
    OPENING = "opening"
    AGGRESSIVE = "aggressive"
    DESPERATE = "desperate"
    CLOSE_RANGE = "close_range"
    LONG_RANGE = "long_range"
    FINAL = "final"


# ── Rule thresholds ───────────────────────────────────────
DESPERATE_RATIO = 0.25
AGGRESSIVE_RATIO = 0.50
CLOSE_RANGE_DISTANCE = 100.0
LONG_RANGE_DISTANCE = 300.0
FINAL_PHASE = 3

# ── Movement shaping ──────────────────────────────────────
FAR_SIDE_X = 0.8             # fraction of arena width
NEAR_SIDE_X = 0.2
MIN_Y = 50.0
UPPER_THIRD = 0.3            # fraction of arena height
ABOVE_PLAYER = 100.0
HEALTH_SPEED_BONUS = 0.5

DEFAULT_PERSONALITY = "default"

# ══════════════════════════════════════════════════════════
#  Rule table: personality → pattern class → candidates
# ══════════════════════════════════════════════════════════

FALLBACK_RULES: dict[str, dict[PatternClass, tuple[str, ...]]] = {
    DEFAULT_PERSONALITY: {
        PatternClass.OPENING:     ("straight",),
        PatternClass.AGGRESSIVE:  ("spread",),
        PatternClass.DESPERATE:   ("spiral",),
        PatternClass.CLOSE_RANGE: ("mines",),
        PatternClass.LONG_RANGE:  ("homing",),
        PatternClass.FINAL:       ("storm",),
    },
    "aggressive": {
        PatternClass.OPENING:     ("straight", "spread"),
        PatternClass.AGGRESSIVE:  ("spread", "spiral"),
        PatternClass.DESPERATE:   ("storm", "spiral"),
        PatternClass.CLOSE_RANGE: ("spread", "mines"),
        PatternClass.LONG_RANGE:  ("straight", "homing"),
        PatternClass.FINAL:       ("storm", "spiral"),
    },
    "tactical": {
        PatternClass.OPENING:     ("laser", "spread"),
        PatternClass.AGGRESSIVE:  ("mines", "laser"),
        PatternClass.DESPERATE:   ("mines", "teleport"),
        PatternClass.CLOSE_RANGE: ("mines", "teleport"),
        PatternClass.LONG_RANGE:  ("homing", "laser"),
        PatternClass.FINAL:       ("teleport", "mines"),
    },
    "adaptive": {
        PatternClass.OPENING:     ("spread", "spiral", "homing", "laser"),
        PatternClass.AGGRESSIVE:  ("storm", "spiral"),
        PatternClass.DESPERATE:   ("ultimate", "storm"),
        PatternClass.CLOSE_RANGE: ("mines", "spread"),
        PatternClass.LONG_RANGE:  ("homing", "laser"),
        PatternClass.FINAL:       ("ultimate", "storm"),
    },
    "unpredictable": {
        PatternClass.OPENING:     ("teleport", "clone"),
        PatternClass.AGGRESSIVE:  ("clone", "storm"),
        PatternClass.DESPERATE:   ("storm", "ultimate"),
        PatternClass.CLOSE_RANGE: ("teleport", "mines"),
        PatternClass.LONG_RANGE:  ("clone", "homing"),
        PatternClass.FINAL:       ("ultimate", "storm"),
    },
    "supreme": {
        PatternClass.OPENING:     ("spiral", "homing", "laser"),
        PatternClass.AGGRESSIVE:  ("storm", "clone", "teleport", "mines"),
        PatternClass.DESPERATE:   ("ultimate",),
        PatternClass.CLOSE_RANGE: ("mines", "teleport"),
        PatternClass.LONG_RANGE:  ("homing", "laser"),
        PatternClass.FINAL:       ("ultimate",),
    },
}


def classify_situation(ctx: DecisionContext) -> PatternClass:
    """Apply the priority-ordered rule chain."""
    chosen = PatternClass.OPENING
    ratio = ctx.boss.health_ratio
    distance = ctx.player.distance

    if ratio < DESPERATE_RATIO:
        chosen = PatternClass.DESPERATE
    elif ratio < AGGRESSIVE_RATIO:
        chosen = PatternClass.AGGRESSIVE

    if distance < CLOSE_RANGE_DISTANCE:
        chosen = PatternClass.CLOSE_RANGE
    elif distance > LONG_RANGE_DISTANCE:
        chosen = PatternClass.LONG_RANGE

    if ctx.boss.phase == FINAL_PHASE:
        chosen = PatternClass.FINAL

    return chosen


def resolve_pattern(pattern_class: PatternClass, personality: str,
                    legal: tuple[str, ...]) -> str:
    """Pick a concrete pattern id for a class, honouring the legal set."""
    table = FALLBACK_RULES.get(personality, FALLBACK_RULES[DEFAULT_PERSONALITY])
    candidates = table[pattern_class] + FALLBACK_RULES[DEFAULT_PERSONALITY][pattern_class]
    if not legal:
        return candidates[0]
    for pattern in candidates:
        if pattern in legal:
            return pattern
    return legal[0]


def optimal_position(ctx: DecisionContext) -> tuple[float, float]:
    """Far side of the arena from the player, kept in the upper third."""
    width, height = ctx.arena
    player = ctx.player.position
    x = width * FAR_SIDE_X if player.x < width / 2 else width * NEAR_SIDE_X
    y = max(MIN_Y, min(height * UPPER_THIRD, player.y - ABOVE_PLAYER))
    return (x, y)


class FallbackDecisionEngine:
    """Stateless rule engine.  ``decide`` has no side effects."""

    def decide(self, ctx: DecisionContext) -> Decision:
        pattern_class = classify_situation(ctx)
        pattern = resolve_pattern(pattern_class, ctx.boss.personality,
                                  tuple(ctx.available_patterns))
        # factor on the boss's own base speed, same scale as remote decisions
        speed = 1 + ctx.boss.health_ratio * HEALTH_SPEED_BONUS
        return Decision(
            attack_pattern=pattern,
            movement=Movement(target=optimal_position(ctx), speed=speed),
            reasoning=f"Fallback rule: {pattern_class.value}",
            source="fallback",
        )
