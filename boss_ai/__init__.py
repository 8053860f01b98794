"""
boss_ai package – Adaptive decision-making for arcade shooter bosses.

Modules:
    boss_controller    – BossAIController, the per-boss orchestrator
    boss_state         – Health phases (1 → 2 → 3) and the enraged flag
    player_tracker     – Player movement / accuracy / aggressiveness model
    pattern_library    – The 10 attack patterns and their fire schedules
    context            – Decision context snapshot and game state provider
    decision           – Decision types, JSON parsing and validation
    prompts            – Prompt text for the remote decision service
    llm_client         – Async httpx client for the remote decision service
    fallback_engine    – Deterministic rule-based decisions
    stats              – Per-encounter statistics and timeline chart
    simulation_runner  – Headless encounters driven by scripted pilots
"""

from boss_ai.boss_controller import BossAIController, ControllerConfig, ControllerMode
from boss_ai.decision import Decision, Movement, SpecialAction
from boss_ai.fallback_engine import FallbackDecisionEngine
from boss_ai.llm_client import DecisionClient, LLMConfig

__all__ = [
    "BossAIController", "ControllerConfig", "ControllerMode",
    "Decision", "Movement", "SpecialAction",
    "FallbackDecisionEngine",
    "DecisionClient", "LLMConfig",
]
