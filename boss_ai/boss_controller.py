"""
boss_controller.py – Per-tick orchestrator for one boss.

Ties the player tracker, boss state monitor, pattern library, rule
engine and (optionally) the remote decision client together.

Per tick (``update``):

  1. advance pattern timer / decision cooldown
  2. feed the player position + combat events to the tracker
  3. update the boss state monitor; on a phase change zero the
     cooldown and activate the boss's phase ability
  4. apply a remote decision that resolved since the last tick
  5. decide now iff cooldown <= 0 AND (health changed since the last
     decision OR the pattern outlived its duration OR the player moved
     more than 100 px since the last decision).  A finished pattern is
     replaced even when the decision names the same pattern.
  6. run the active pattern; retire it once it is complete and zero
     the cooldown so the next tick picks a successor
  7. remember the decision + player position (step 5 heuristics)

Remote decisions run as an asyncio task so the tick never blocks.
Each request gets a sequence number; a result whose number is no
longer current (or that lands after ``destroy()``) is discarded.
At most one request is in flight; the predicate is suppressed while
one is outstanding.  Any failure on the remote path is swallowed and
the rule engine decides instead.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable

from pygame.math import Vector2

from boss_ai.boss_state import BossStateMonitor
from boss_ai.context import BossSnapshot, DecisionContext, GameState, PlayerSnapshot
from boss_ai.decision import Decision, DifficultyAdjustment, SpecialAction
from boss_ai.fallback_engine import FallbackDecisionEngine, optimal_position
from boss_ai.llm_client import DecisionClient
from boss_ai.pattern_library import (
    DEFAULT_PATTERN, PatternInstance, PatternLibrary, expand_pattern_list,
)
from boss_ai.player_tracker import PlayerBehaviorTracker, TickEvents
from settings import (
    AI_UPDATE_INTERVAL_MS, AI_DEFAULT_PATTERN_DURATION_MS,
    AI_PLAYER_MOVE_THRESHOLD, AI_MAJOR_DAMAGE_FRACTION,
    AI_ADAPT_INCREASE_ACCURACY, AI_ADAPT_DECREASE_ACCURACY,
    BOSS_SHIELD_DEFAULT_MS, BOSS_HEAL_DEFAULT_FRACTION,
    BOSS_SUMMON_DEFAULT_COUNT, BOSS_RAGE_DEFAULT_MULT, BOSS_MAX_MINIONS,
    SCREEN_WIDTH, SCREEN_HEIGHT,
)

logger = logging.getLogger(__name__)


class ControllerMode(str, Enum):
    INITIALIZING = "initializing"
    LLM_BACKED = "llm_backed"
    FALLBACK_ONLY = "fallback_only"


@dataclass
class ControllerConfig:
    """Scheduling and adaptation tunables."""
    update_interval: float = AI_UPDATE_INTERVAL_MS              # ms
    default_pattern_duration: float = AI_DEFAULT_PATTERN_DURATION_MS  # ms, no active pattern
    move_threshold: float = AI_PLAYER_MOVE_THRESHOLD           # px
    major_damage_fraction: float = AI_MAJOR_DAMAGE_FRACTION

    adapt_increase_accuracy: float = AI_ADAPT_INCREASE_ACCURACY
    adapt_decrease_accuracy: float = AI_ADAPT_DECREASE_ACCURACY
    increase_damage_factor: float = 1.1
    increase_speed_factor: float = 1.05
    decrease_damage_factor: float = 0.95
    decrease_speed_factor: float = 0.98

    arena: tuple[int, int] = (SCREEN_WIDTH, SCREEN_HEIGHT)


@dataclass
class _Resolved:
    """A finished remote request waiting to be applied on the next tick."""
    seq: int
    decision: Decision | None
    error: BaseException | None
    player_position: Vector2


def _positive_number(value, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return float(value)


def _point(value) -> Vector2 | None:
    """Accept {"x":..,"y":..} or [x, y] from untrusted parameters."""
    if isinstance(value, dict):
        value = (value.get("x"), value.get("y"))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        x, y = value
        if all(isinstance(v, (int, float)) and not isinstance(v, bool)
               and math.isfinite(v) for v in (x, y)):
            return Vector2(x, y)
    return None


class BossAIController:
    """Adaptive decision loop for a single boss.

    Usage:
        controller = BossAIController(boss, game_state, client=client)
        await controller.init()
        # every frame, inside the running event loop:
        controller.update(delta_ms, player_pos, TickEvents(fired, hit))
        # when the player damages the boss:
        controller.on_damage_taken(amount)
        # when the fight ends:
        controller.destroy()
    """

    def __init__(self, boss, game_state: GameState,
                 client: DecisionClient | None = None,
                 library: PatternLibrary | None = None,
                 fallback: FallbackDecisionEngine | None = None,
                 tracker: PlayerBehaviorTracker | None = None,
                 config: ControllerConfig | None = None,
                 clock: Callable[[], float] | None = None):
        self.boss = boss
        self.game_state = game_state
        self.client = client
        self.cfg = config or ControllerConfig()
        self.library = library or PatternLibrary(arena=self.cfg.arena)
        self.fallback = fallback or FallbackDecisionEngine()
        self.tracker = tracker or PlayerBehaviorTracker()
        self._clock = clock or time.monotonic
        self.monitor = BossStateMonitor(boss.health, boss.max_health, clock=self._clock)

        self.legal_patterns: tuple[str, ...] = (
            tuple(expand_pattern_list(boss.attack_patterns)) or (DEFAULT_PATTERN.value,)
        )

        self.mode = ControllerMode.INITIALIZING
        self.current_pattern: PatternInstance | None = None
        self.pattern_timer: float = 0.0       # ms since the last assignment
        self.pattern_duration: float | None = None  # ms, last assigned pattern
        self.decision_cooldown: float = 0.0   # ms

        self.last_decision: Decision | None = None
        self.decision_count = 0
        self.phase_transitions = 0
        self._health_at_last_decision: float = boss.health
        self._position_at_last_decision: Vector2 | None = None

        self._request_seq = 0
        self._pending: asyncio.Task | None = None
        self._resolved: _Resolved | None = None
        self._destroyed = False

        # Optional observers (stats, overlays).
        self.on_decision: Callable[[Decision], None] | None = None
        self.on_phase_change: Callable[[int, int], None] | None = None

    # ── Lifecycle ─────────────────────────────────────────

    async def init(self):
        """Probe the remote client (if any) and pick the operating mode."""
        if self.client is not None:
            await self.client.init()
        if self.client is not None and self.client.available:
            self.mode = ControllerMode.LLM_BACKED
        else:
            self.mode = ControllerMode.FALLBACK_ONLY

        self._assign_pattern(self.legal_patterns[0])
        logger.info("Boss AI ready for %s (mode=%s, patterns=%s)",
                    self.boss.name, self.mode.value, ", ".join(self.legal_patterns))

    def destroy(self):
        """Tear down: any in-flight result will be discarded."""
        self._destroyed = True
        self._request_seq += 1
        self._pending = None
        self._resolved = None
        self.current_pattern = None
        self.pattern_duration = None
        logger.debug("Boss AI for %s destroyed", self.boss.name)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def request_in_flight(self) -> bool:
        return self._pending is not None

    # ── Tick ──────────────────────────────────────────────

    def update(self, delta_ms: float, player_position,
               events: TickEvents | None = None):
        if self._destroyed:
            return
        player_position = Vector2(player_position)

        # 1. timers
        self.pattern_timer += delta_ms
        self.decision_cooldown = max(0.0, self.decision_cooldown - delta_ms)

        # 2. player tracking
        self.tracker.record(player_position, self._clock())
        if events is not None:
            self.tracker.observe(events)

        # 3. boss state / phase edge
        self.monitor.update(self.boss.health, self.boss.max_health)
        if self.monitor.phase_changed:
            self._on_phase_transition(self.monitor.previous_phase, self.monitor.phase)

        # 4. remote result from an earlier tick
        self._apply_resolved()

        # 5. scheduling predicate
        if self.should_decide(player_position):
            self._decide(player_position)

        # 6. active pattern
        if self.current_pattern is not None:
            self.library.tick(self.current_pattern, delta_ms, player_position)
            if self.current_pattern.complete:
                logger.debug("Pattern %s complete", self.current_pattern.id.value)
                self.current_pattern = None
                self.decision_cooldown = 0.0

    def should_decide(self, player_position) -> bool:
        if self.decision_cooldown > 0 or self._pending is not None:
            return False

        health_changed = self.boss.health != self._health_at_last_decision

        if self.current_pattern is not None:
            duration = self.current_pattern.duration
        elif self.pattern_duration is not None:
            duration = self.pattern_duration          # just retired
        else:
            duration = self.cfg.default_pattern_duration
        pattern_expired = self.pattern_timer > duration

        player_moved = False
        if self._position_at_last_decision is not None:
            moved = Vector2(player_position).distance_to(self._position_at_last_decision)
            player_moved = moved > self.cfg.move_threshold

        return health_changed or pattern_expired or player_moved

    def on_damage_taken(self, amount: float):
        """External hit notification; big hits force a reactive decision."""
        self.monitor.mark_damage()
        if amount > self.boss.max_health * self.cfg.major_damage_fraction:
            self.decision_cooldown = 0.0

    # ── Context ───────────────────────────────────────────

    def build_context(self) -> DecisionContext:
        boss = self.boss
        state = self.monitor.state
        boss_pos = Vector2(boss.position)
        player_pos = Vector2(self.tracker.position)
        return DecisionContext(
            boss=BossSnapshot(
                name=boss.name,
                health=boss.health,
                max_health=boss.max_health,
                health_ratio=state.ratio,
                position=boss_pos,
                phase=state.phase,
                enraged=state.enraged,
                personality=boss.ai_personality,
                base_speed=boss.base_speed,
            ),
            player=PlayerSnapshot(
                position=player_pos,
                movement_pattern=self.tracker.movement_pattern.value,
                accuracy=self.tracker.accuracy,
                aggressiveness=self.tracker.aggressiveness,
                distance=player_pos.distance_to(boss_pos),
            ),
            game=GameState(
                difficulty=self.game_state.difficulty,
                level=self.game_state.level,
                score=self.game_state.score,
                time_elapsed=self.game_state.time_elapsed,
            ),
            available_patterns=self.legal_patterns,
            current_pattern=(self.current_pattern.id.value
                             if self.current_pattern is not None else None),
            pattern_timer=self.pattern_timer,
            arena=self.cfg.arena,
        )

    # ── Decision making ───────────────────────────────────

    def _decide(self, player_position: Vector2):
        self.decision_cooldown = self.cfg.update_interval
        ctx = self.build_context()

        if (self.mode is ControllerMode.LLM_BACKED and self.client is not None
                and self.client.available and self._launch_request(ctx, player_position)):
            return

        self._apply(self.fallback.decide(ctx), player_position)

    def _launch_request(self, ctx: DecisionContext, player_position: Vector2) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop – deciding with fallback rules")
            return False

        self._request_seq += 1
        seq = self._request_seq
        task = loop.create_task(self.client.request_decision(ctx))
        task.add_done_callback(partial(self._on_request_done, seq, Vector2(player_position)))
        self._pending = task
        return True

    def _on_request_done(self, seq: int, player_position: Vector2, task: asyncio.Task):
        if task.cancelled():
            error: BaseException | None = asyncio.CancelledError()
            decision = None
        else:
            error = task.exception()
            decision = None if error is not None else task.result()

        if self._destroyed or seq != self._request_seq:
            logger.debug("Discarding stale decision #%d", seq)
            return

        self._pending = None
        self._resolved = _Resolved(seq, decision, error, player_position)

    def _apply_resolved(self):
        resolved, self._resolved = self._resolved, None
        if resolved is None:
            return
        if resolved.error is not None:
            logger.warning("Remote decision failed (%s) – using fallback rules",
                           resolved.error)
            decision = self.fallback.decide(self.build_context())
        else:
            decision = resolved.decision
        self._apply(decision, resolved.player_position)

    def _apply(self, decision: Decision, player_position: Vector2):
        boss = self.boss

        active = self.current_pattern
        if (active is None or active.complete or self.pattern_timer >= active.duration
                or active.id.value != decision.attack_pattern):
            self._assign_pattern(decision.attack_pattern)

        if decision.movement is not None:
            boss.set_movement_target(decision.movement.target)
            boss.set_speed(decision.movement.speed)

        if decision.special_action is not None:
            self._execute_special_action(decision.special_action)

        if decision.adapt_difficulty is not None:
            self._adapt_difficulty(decision.adapt_difficulty)

        # 7. remember what we decided and where the player was
        self.last_decision = decision
        self.decision_count += 1
        self._health_at_last_decision = boss.health
        self._position_at_last_decision = Vector2(player_position)

        logger.info("Boss decision #%d [%s]: %s – %s", self.decision_count,
                    decision.source, decision.attack_pattern, decision.reasoning)
        if self.on_decision is not None:
            self.on_decision(decision)

    def _assign_pattern(self, pattern_id: str):
        self.current_pattern = self.library.instantiate(pattern_id, self.boss)
        self.pattern_timer = 0.0
        self.pattern_duration = self.current_pattern.duration

    # ── Special actions / difficulty ──────────────────────

    def _execute_special_action(self, action: SpecialAction):
        boss, params = self.boss, action.params
        if action.type == "teleport":
            target = _point(params.get("position"))
            if target is None:
                target = Vector2(optimal_position(self.build_context()))
            width, height = self.cfg.arena
            target.x = max(0.0, min(width - boss.width, target.x))
            target.y = max(0.0, min(height * 0.5, target.y))
            boss.teleport(target)
        elif action.type == "shield":
            boss.activate_shield(_positive_number(params.get("duration"), BOSS_SHIELD_DEFAULT_MS))
        elif action.type == "heal":
            default = boss.max_health * BOSS_HEAL_DEFAULT_FRACTION
            boss.heal(_positive_number(params.get("amount"), default))
        elif action.type == "summon":
            count = int(_positive_number(params.get("count"), BOSS_SUMMON_DEFAULT_COUNT))
            boss.summon_minions(max(1, min(BOSS_MAX_MINIONS, count)))
        elif action.type == "rage":
            boss.activate_rage(_positive_number(params.get("multiplier"), BOSS_RAGE_DEFAULT_MULT))
        logger.info("Boss special action: %s", action.type)

    def _adapt_difficulty(self, adapt: DifficultyAdjustment):
        cfg, boss = self.cfg, self.boss
        accuracy = self.tracker.accuracy
        if adapt.increase and accuracy > cfg.adapt_increase_accuracy:
            boss.damage_multiplier *= cfg.increase_damage_factor
            boss.speed_multiplier *= cfg.increase_speed_factor
            logger.info("Difficulty up (accuracy=%.2f)", accuracy)
        elif adapt.decrease and accuracy < cfg.adapt_decrease_accuracy:
            boss.damage_multiplier *= cfg.decrease_damage_factor
            boss.speed_multiplier *= cfg.decrease_speed_factor
            logger.info("Difficulty down (accuracy=%.2f)", accuracy)

    # ── Phase transitions ─────────────────────────────────

    def _on_phase_transition(self, old_phase: int, new_phase: int):
        self.decision_cooldown = 0.0
        self.phase_transitions += 1
        if new_phase == 2:
            self.boss.activate_phase2()
        elif new_phase == 3:
            self.boss.activate_phase3()
        logger.info("%s entered phase %d (from %d)", self.boss.name, new_phase, old_phase)
        if self.on_phase_change is not None:
            self.on_phase_change(old_phase, new_phase)

    # ── Diagnostics ───────────────────────────────────────

    def debug_info(self) -> dict:
        state = self.monitor.state
        last = self.last_decision
        info = {
            "mode": self.mode.value,
            "phase": state.phase,
            "enraged": state.enraged,
            "health_ratio": round(state.ratio, 3),
            "pattern": self.current_pattern.display_name if self.current_pattern else "None",
            "pattern_timer": round(self.pattern_timer),
            "cooldown": round(self.decision_cooldown),
            "player_movement": self.tracker.movement_pattern.value,
            "player_accuracy": round(self.tracker.accuracy, 2),
            "player_aggressiveness": round(self.tracker.aggressiveness, 2),
            "decisions": self.decision_count,
            "in_flight": self.request_in_flight,
            "last_source": last.source if last else "-",
            "last_reasoning": last.reasoning if last else "-",
        }
        if self.client is not None:
            info["client"] = self.client.usage_stats()
        return info
