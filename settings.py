"""
settings.py - Game constants for the Adaptive Boss AI.

All configurable values live here so they're easy to tweak
and easy to reference from any module.
"""

# ── Screen ────────────────────────────────────────────────
SCREEN_WIDTH = 1024
SCREEN_HEIGHT = 576
FPS = 60
TITLE = "Adaptive Boss AI – Arcade Shooter"
BG_COLOR = (8, 8, 20)

# ── Colors (R, G, B) ─────────────────────────────────────
WHITE = (255, 255, 255)
RED = (220, 50, 50)
GRAY = (60, 60, 60)
CYAN = (0, 255, 255)
ORANGE = (255, 160, 40)
PURPLE = (180, 80, 255)

# ── Font ──────────────────────────────────────────────────
FONT_SIZE = 22
SMALL_FONT_SIZE = 18

# ── Player ship ───────────────────────────────────────────
PLAYER_WIDTH = 36
PLAYER_HEIGHT = 24
PLAYER_SPEED = 420.0           # pixels/sec
PLAYER_MAX_LIVES = 3
PLAYER_INVULN_MS = 2000
PLAYER_FIRE_COOLDOWN_MS = 220
PLAYER_SHOT_SPEED = 600.0      # pixels/sec
PLAYER_SHOT_DAMAGE = 25
PLAYER_SHOT_COLOR = CYAN

# ── Boss projectiles ──────────────────────────────────────
PROJECTILE_RADIUS = 6
PROJECTILE_LIFETIME_MS = 6000
PROJECTILE_HOMING_TURN_RATE = 2.5    # radians/sec
MINE_BLAST_MS = 250                  # blast window after the fuse runs out
LASER_SEGMENT_LIFETIME_MS = 120
PROJECTILE_DAMAGE_SCALE = 10         # pattern damage units → player damage

# ── Boss roster (level → boss definition) ────────────────
# ``attack_patterns`` may contain the sentinel "all" to allow every pattern.
BOSSES = {
    1: {
        "name": "Guardian Sentinel",
        "health": 500,
        "speed": 2.0,
        "score": 5000,
        "width": 80,
        "height": 80,
        "attack_patterns": ["straight", "spread", "spiral"],
        "ai_personality": "aggressive",
    },
    2: {
        "name": "Void Destroyer",
        "health": 750,
        "speed": 3.0,
        "score": 7500,
        "width": 90,
        "height": 90,
        "attack_patterns": ["homing", "laser", "mines"],
        "ai_personality": "tactical",
    },
    3: {
        "name": "Cosmic Overlord",
        "health": 1000,
        "speed": 2.5,
        "score": 10000,
        "width": 120,
        "height": 120,
        "attack_patterns": ["all"],
        "ai_personality": "adaptive",
    },
    4: {
        "name": "Quantum Annihilator",
        "health": 1500,
        "speed": 4.0,
        "score": 15000,
        "width": 100,
        "height": 100,
        "attack_patterns": ["teleport", "clone", "storm"],
        "ai_personality": "unpredictable",
    },
    5: {
        "name": "The Final Protocol",
        "health": 2500,
        "speed": 3.0,
        "score": 25000,
        "width": 150,
        "height": 150,
        "attack_patterns": ["ultimate"],
        "ai_personality": "supreme",
    },
}
BOSS_SPEED_SCALE = 60.0        # roster speed units → pixels/sec
BOSS_START_Y = 60

# ── Boss special actions ──────────────────────────────────
BOSS_SHIELD_DEFAULT_MS = 3000
BOSS_HEAL_DEFAULT_FRACTION = 0.05
BOSS_SUMMON_DEFAULT_COUNT = 2
BOSS_RAGE_DEFAULT_MULT = 1.5
BOSS_RAGE_DURATION_MS = 10000
BOSS_MINION_FIRE_INTERVAL_MS = 1500
BOSS_MAX_MINIONS = 6
BOSS_PHASE2_SPEED_MULT = 1.2
BOSS_PHASE3_SPEED_MULT = 1.5

# ── Difficulty presets ────────────────────────────────────
DIFFICULTY_LEVELS = ("easy", "normal", "hard", "insane")
DEFAULT_DIFFICULTY = "normal"

# ── AI decision scheduling ────────────────────────────────
AI_UPDATE_INTERVAL_MS = 3000        # cooldown between decisions
AI_DEFAULT_PATTERN_DURATION_MS = 5000
AI_PLAYER_MOVE_THRESHOLD = 100.0    # pixels moved since last decision
AI_PLAYER_HISTORY_LENGTH = 10       # tracked player positions
AI_MAJOR_DAMAGE_FRACTION = 0.10     # hit > 10% of max HP → react now
AI_ADAPT_INCREASE_ACCURACY = 0.8
AI_ADAPT_DECREASE_ACCURACY = 0.3

# ── Remote decision service (OpenAI-compatible chat API) ─
AI_API_URL = "https://api.groq.com/openai/v1/chat/completions"
AI_API_KEY_ENV = "GROQ_API_KEY"
AI_MODEL = "llama-3.3-70b-versatile"
AI_MAX_TOKENS = 150
AI_TEMPERATURE = 0.7
AI_REQUEST_TIMEOUT = 10.0           # seconds
AI_MIN_REQUEST_INTERVAL = 1.0       # seconds between requests
AI_MAX_HISTORY_LENGTH = 5           # exchanges kept for context
AI_HISTORY_IN_PROMPT = 4            # messages replayed per request

# ── Personality prompts ───────────────────────────────────
AI_PERSONALITY_PROMPTS = {
    "aggressive": (
        "You are an aggressive space boss. You favor direct attacks and "
        "overwhelming firepower. Respond with attack patterns that are "
        "relentless and straightforward."
    ),
    "tactical": (
        "You are a tactical space boss. You analyze the player's movements "
        "and adapt your strategy accordingly. Use calculated attacks and "
        "defensive maneuvers."
    ),
    "adaptive": (
        "You are an adaptive space boss that learns from the player's "
        "behavior. Change your attack patterns based on the player's "
        "performance and position."
    ),
    "unpredictable": (
        "You are an unpredictable space boss. Your attack patterns should be "
        "erratic and surprising, keeping the player guessing."
    ),
    "supreme": (
        "You are the ultimate space boss. Combine all strategies and use the "
        "most challenging attack patterns available."
    ),
}

# ── Boss health bar display ───────────────────────────────
BOSS_BAR_WIDTH = 420
BOSS_BAR_HEIGHT = 16
BOSS_BAR_X = (SCREEN_WIDTH - BOSS_BAR_WIDTH) // 2
BOSS_BAR_Y = 16
