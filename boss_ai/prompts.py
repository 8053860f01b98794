"""
prompts.py – Text sent to the remote decision service.

The system instruction is fixed.  The situation prompt is rendered
fresh for every request from a ``DecisionContext`` and ends with the
JSON template the service is asked to answer in.
"""

from __future__ import annotations

from boss_ai.context import DecisionContext
from settings import AI_PERSONALITY_PROMPTS

SYSTEM_INSTRUCTION = (
    "You are an AI controlling a space boss enemy in a retro-style game.\n"
    "Your goal is to provide challenging but fair gameplay.\n"
    "Always respond with valid JSON containing your decision.\n"
    "Be creative but stay within the game's mechanics."
)

PROBE_PROMPT = "Respond with 'OK' if you can hear me."

PERSONALITY_PROMPTS: dict[str, str] = dict(AI_PERSONALITY_PROMPTS)
DEFAULT_PERSONALITY_PROMPT = "aggressive"

RESPONSE_TEMPLATE = """\
Respond in this JSON format:
{
  "attackPattern": "pattern_name",
  "movement": {"target": "left/right/center/player", "speed": 1.0},
  "specialAction": {"type": "action_type", "parameters": {}},
  "adaptDifficulty": {"increase": false, "decrease": false},
  "reasoning": "brief explanation"
}"""


def personality_prompt(personality: str) -> str:
    return PERSONALITY_PROMPTS.get(personality,
                                   PERSONALITY_PROMPTS[DEFAULT_PERSONALITY_PROMPT])


def build_situation_prompt(ctx: DecisionContext) -> str:
    """Render boss / player / game state plus the legal pattern ids."""
    boss, player, game = ctx.boss, ctx.player, ctx.game
    enraged = " [ENRAGED]" if boss.enraged else ""
    movement = getattr(player.movement_pattern, "value", player.movement_pattern)

    lines = [
        "Current Situation:",
        f"- Boss: {boss.name} (Health: {round(boss.health_ratio * 100)}%, "
        f"Phase: {boss.phase}){enraged}",
        f"- Player: Distance {round(player.distance)}px, Moving {movement}, "
        f"Accuracy {round(player.accuracy * 100)}%",
        f"- Game: Level {game.level}, Difficulty {game.difficulty}, "
        f"Time {round(game.time_elapsed / 1000)}s",
        "",
        f"Available attack patterns: {', '.join(ctx.available_patterns)}",
        f"Current pattern: {ctx.current_pattern or 'None'} "
        f"({round(ctx.pattern_timer / 1000)}s active)",
        "",
        personality_prompt(boss.personality),
        "",
        "Based on this situation, what should be your next action? Consider:",
        "1. Which attack pattern to use",
        "2. Where to move (relative to player position)",
        "3. Any special actions needed",
        "4. Whether to adapt difficulty based on player performance",
        "",
        RESPONSE_TEMPLATE,
    ]
    return "\n".join(lines)
