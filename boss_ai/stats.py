"""
stats.py  –  Per-encounter statistics for the boss AI.

EncounterStats collects what the boss AI did during a single fight:
every decision (pattern, source), phase changes, boss health over
time and the hits traded.  At encounter end it prints a formatted
summary and saves a health / decision timeline via matplotlib.

All timestamps are game time in milliseconds, so headless runs are
reproducible.
"""

import logging
from collections import Counter

import numpy as np

logger = logging.getLogger(__name__)

import matplotlib
matplotlib.use("Agg")  # non-interactive backend so the plot doesn't block pygame
import matplotlib.pyplot as plt

# Health sampling interval (ms of game time)
_SAMPLE_INTERVAL = 250.0


class EncounterStats:
    """Tracks one boss encounter and produces end-of-encounter reports.

    Attributes tracked:
        boss_name         – str
        personality       – str
        decisions         – list[(t_ms, pattern, source)]
        phase_changes     – list[(t_ms, old_phase, new_phase)]
        health_samples    – list[(t_ms, ratio)]
        boss_damage_taken – float (damage the player dealt to the boss)
        player_hits       – int   (lives the boss took)
        duration_ms       – float (set at end_encounter)
    """

    def __init__(self, boss_name: str, personality: str):
        self.boss_name = boss_name
        self.personality = personality

        self.decisions: list[tuple[float, str, str]] = []
        self.phase_changes: list[tuple[float, int, int]] = []
        self.health_samples: list[tuple[float, float]] = []
        self.boss_damage_taken: float = 0.0
        self.player_hits: int = 0
        self.duration_ms: float = 0.0
        self.result: str = ""

        self._last_sample_time: float | None = None

    # ===========================================================
    #  Recorders
    # ===========================================================

    def record_decision(self, now_ms: float, decision):
        self.decisions.append((now_ms, decision.attack_pattern, decision.source))

    def record_phase_change(self, now_ms: float, old_phase: int, new_phase: int):
        self.phase_changes.append((now_ms, old_phase, new_phase))

    def record_boss_damage(self, amount: float):
        self.boss_damage_taken += amount

    def record_player_hit(self):
        self.player_hits += 1

    def sample(self, now_ms: float, health_ratio: float):
        """Call once per frame; keeps one health sample per interval."""
        if (self._last_sample_time is None
                or now_ms - self._last_sample_time >= _SAMPLE_INTERVAL):
            self.health_samples.append((now_ms, health_ratio))
            self._last_sample_time = now_ms

    # ===========================================================
    #  Derived
    # ===========================================================

    def pattern_usage(self) -> dict[str, int]:
        return dict(Counter(pattern for _, pattern, _ in self.decisions))

    def source_usage(self) -> dict[str, int]:
        return dict(Counter(source for _, _, source in self.decisions))

    def mean_decision_interval(self) -> float:
        """Average ms between decisions (0 with fewer than two)."""
        if len(self.decisions) < 2:
            return 0.0
        times = np.array([t for t, _, _ in self.decisions], dtype=float)
        return float(np.diff(times).mean())

    # ===========================================================
    #  End-of-encounter
    # ===========================================================

    def end_encounter(self, result: str, now_ms: float, plot: bool = False,
                      filename: str = "boss_encounter.png"):
        """Finalise stats, print summary and optionally save the chart.

        Parameters
        ----------
        result : "victory" (player won), "defeat" or "timeout"
        """
        self.result = result
        self.duration_ms = now_ms
        self._print_summary()
        if plot:
            self.plot_timeline(filename)

    def _print_summary(self):
        """Print a clean formatted encounter summary to stdout."""
        print("\n" + "=" * 52)
        print("  ENCOUNTER SUMMARY")
        print("=" * 52)
        print(f"  Result           : {self.result}")
        print(f"  Boss             : {self.boss_name} ({self.personality})")
        print(f"  Duration         : {self.duration_ms / 1000:.1f}s")
        print("-" * 52)
        print(f"  Damage to boss   : {self.boss_damage_taken:.0f}")
        print(f"  Player hits taken: {self.player_hits}")
        print(f"  Decisions        : {len(self.decisions)}  "
              f"(avg every {self.mean_decision_interval() / 1000:.1f}s)")
        print(f"  By source        : {self.source_usage()}")
        print(f"  Phase changes    : {[f'{a}→{b}' for _, a, b in self.phase_changes]}")
        print("-" * 52)
        for pattern, count in sorted(self.pattern_usage().items(),
                                     key=lambda kv: kv[1], reverse=True):
            print(f"    {pattern:<10s} {count:>4d}")
        print("=" * 52 + "\n")

    def plot_timeline(self, filename: str = "boss_encounter.png"):
        """Save boss health over time with phase changes and decisions marked."""
        if not self.health_samples:
            return

        samples = np.array(self.health_samples, dtype=float)
        t = samples[:, 0] / 1000.0
        health = samples[:, 1] * 100.0

        fig, ax = plt.subplots(figsize=(9, 4))
        ax.plot(t, health, label="Boss health %")
        for ratio in (66, 33):
            ax.axhline(ratio, color="gray", linestyle=":", linewidth=0.8)
        for when, _, new_phase in self.phase_changes:
            ax.axvline(when / 1000.0, color="red", linestyle="--", linewidth=0.8)
            ax.text(when / 1000.0, 102, f"P{new_phase}", color="red", fontsize=8)

        if self.decisions:
            d_times = np.array([d[0] for d in self.decisions], dtype=float) / 1000.0
            d_health = np.interp(d_times, t, health)
            ax.scatter(d_times, d_health, marker="x", color="black", label="decision")

        ax.set_xlabel("Time (seconds)")
        ax.set_ylabel("Health (%)")
        ax.set_ylim(0, 110)
        ax.set_title(f"{self.boss_name}  –  {self.result or 'in progress'}")
        ax.legend(loc="upper right")
        ax.grid(True)

        fig.savefig(filename, dpi=100, bbox_inches="tight")
        plt.close(fig)
        logger.info("Encounter chart saved to %s", filename)

    # ===========================================================
    #  Data accessors
    # ===========================================================

    def as_dict(self) -> dict:
        """Return a plain dict snapshot (useful for JSON serialisation)."""
        return {
            "boss_name":         self.boss_name,
            "personality":       self.personality,
            "result":            self.result,
            "duration_ms":       round(self.duration_ms, 1),
            "boss_damage_taken": round(self.boss_damage_taken, 1),
            "player_hits":       self.player_hits,
            "decisions":         len(self.decisions),
            "pattern_usage":     self.pattern_usage(),
            "source_usage":      self.source_usage(),
            "phase_changes":     [(a, b) for _, a, b in self.phase_changes],
        }
