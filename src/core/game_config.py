"""Game tuning knobs and difficulty presets (ConfigStore).

Formulas never read GameConfig fields directly; they go through the
ConfigStore accessors, which clamp every knob into its valid range so that
bad external input cannot produce negative or runaway effects.
"""

import math
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.core.errors import ConfigRangeError
from src.core.logging import get_logger

logger = get_logger(__name__)


class Difficulty(str, Enum):
    EASY = "Easy"
    NORMAL = "Normal"
    HARD = "Hard"
    CUSTOM = "Custom"


@dataclass
class GameConfig:
    """18 named knobs + difficulty tag. Defaults are the Normal preset."""

    # encounters
    encounter_chance: float = 40.0  # % per visit
    encounter_cooldown: int = 5  # days

    # player progression
    xp_multiplier: float = 1.0
    level_up_xp_multiplier: float = 1.0
    stat_points_per_level: int = 2
    skill_improvement_chance: float = 30.0  # %

    # npc progression
    npc_xp_multiplier: float = 1.0
    npc_level_up_xp_multiplier: float = 1.0
    npc_growth_rate: float = 50.0  # 50 = 10% flat growth roll

    # world progression
    world_event_chance: float = 20.0  # %
    world_event_interval: int = 10  # days
    season_length: int = 30  # days

    # actions
    action_success_bonus: float = 0.0
    action_reward_multiplier: float = 1.0

    # stamina
    base_stamina: int = 5
    stamina_regen_bonus: int = 1

    # relationships
    relationship_gain_multiplier: float = 1.0
    relationship_decay_rate: float = 0.0

    difficulty: Difficulty = Difficulty.NORMAL

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["difficulty"] = self.difficulty.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameConfig":
        config = cls()
        for name in KNOB_NAMES:
            if name in data:
                setattr(config, name, validate_knob(name, data[name]))
        raw = data.get("difficulty", Difficulty.NORMAL.value)
        try:
            config.difficulty = Difficulty(raw)
        except ValueError:
            config.difficulty = Difficulty.CUSTOM
        return config


KNOB_NAMES: Tuple[str, ...] = tuple(
    f.name for f in fields(GameConfig) if f.name != "difficulty"
)

_INT_KNOBS = {
    "encounter_cooldown",
    "stat_points_per_level",
    "world_event_interval",
    "season_length",
    "base_stamina",
    "stamina_regen_bonus",
}

MAX_MULTIPLIER = 10.0

# (min, max) applied on read
KNOB_RANGES: Dict[str, Tuple[float, float]] = {
    "encounter_chance": (0, 100),
    "encounter_cooldown": (0, 365),
    "xp_multiplier": (0.1, MAX_MULTIPLIER),
    "level_up_xp_multiplier": (0.1, MAX_MULTIPLIER),
    "stat_points_per_level": (0, 10),
    "skill_improvement_chance": (0, 100),
    "npc_xp_multiplier": (0.1, MAX_MULTIPLIER),
    "npc_level_up_xp_multiplier": (0.1, MAX_MULTIPLIER),
    "npc_growth_rate": (0, 100),
    "world_event_chance": (0, 100),
    "world_event_interval": (1, 365),
    "season_length": (1, 365),
    "action_success_bonus": (-100, 100),
    "action_reward_multiplier": (0.1, MAX_MULTIPLIER),
    "base_stamina": (1, 50),
    "stamina_regen_bonus": (0, 10),
    "relationship_gain_multiplier": (0.1, MAX_MULTIPLIER),
    "relationship_decay_rate": (0, 100),
}

PRESETS: Dict[Difficulty, Dict[str, Any]] = {
    Difficulty.EASY: {
        "xp_multiplier": 1.5,
        "level_up_xp_multiplier": 0.8,
        "action_success_bonus": 10,
        "action_reward_multiplier": 1.2,
        "base_stamina": 7,
        "encounter_chance": 50,
        "relationship_gain_multiplier": 1.3,
    },
    Difficulty.NORMAL: {},
    Difficulty.HARD: {
        "xp_multiplier": 0.7,
        "level_up_xp_multiplier": 1.3,
        "action_success_bonus": -5,
        "action_reward_multiplier": 0.8,
        "base_stamina": 4,
        "encounter_chance": 30,
        "relationship_gain_multiplier": 0.8,
    },
}


def validate_knob(name: str, value: Any) -> float:
    """Knob value → number. Raises ConfigRangeError for non-numeric or non-finite input."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ConfigRangeError(f"{name}: expected a number, got {value!r}")
    try:
        number = float(value)
    except (ValueError, OverflowError):
        raise ConfigRangeError(f"{name}: expected a number, got {value!r}")
    if not math.isfinite(number):
        raise ConfigRangeError(f"{name}: expected a finite number, got {value!r}")
    return int(number) if name in _INT_KNOBS else number


def clamp_knob(name: str, value: float) -> float:
    low, high = KNOB_RANGES[name]
    return max(low, min(high, value))


class ConfigStore:
    """Holds the active GameConfig for one session."""

    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self._config = config or GameConfig()

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def difficulty(self) -> Difficulty:
        return self._config.difficulty

    def snapshot(self) -> Dict[str, Any]:
        return self._config.to_dict()

    # ── mutation ─────────────────────────────────────────────

    def apply_preset(self, difficulty: Difficulty) -> None:
        """Replace the active config with a named preset bundle."""
        if difficulty == Difficulty.CUSTOM:
            raise ValueError("Custom is not a preset")
        config = GameConfig()
        for name, value in PRESETS[difficulty].items():
            setattr(config, name, validate_knob(name, value))
        config.difficulty = difficulty
        self._config = config
        logger.info(f"Difficulty preset applied: {difficulty.value}")

    def update(self, updates: Mapping[str, Any]) -> List[str]:
        """Merge a partial config. Returns the keys that were rejected.

        Unknown keys and non-numeric values are skipped with a warning.
        Any effective change tags the config as Custom.
        """
        rejected: List[str] = []
        changed = False
        for name, raw in updates.items():
            if name == "difficulty":
                continue
            if name not in KNOB_NAMES:
                logger.warning(f"Unknown config key ignored: {name}")
                rejected.append(name)
                continue
            try:
                value = validate_knob(name, raw)
            except ConfigRangeError as e:
                logger.warning(f"Config value rejected: {e.message}")
                rejected.append(name)
                continue
            if getattr(self._config, name) != value:
                setattr(self._config, name, value)
                changed = True

        if changed:
            self._config.difficulty = Difficulty.CUSTOM
            logger.info("Config updated; difficulty tagged Custom")
        return rejected

    # ── clamped accessors ────────────────────────────────────

    def _get(self, name: str) -> float:
        return clamp_knob(name, getattr(self._config, name))

    def get_encounter_chance(self) -> float:
        return self._get("encounter_chance")

    def get_encounter_cooldown(self) -> int:
        return int(self._get("encounter_cooldown"))

    def get_xp_multiplier(self) -> float:
        return self._get("xp_multiplier")

    def get_level_up_xp_multiplier(self) -> float:
        return self._get("level_up_xp_multiplier")

    def get_stat_points_per_level(self) -> int:
        return int(self._get("stat_points_per_level"))

    def get_skill_improvement_chance(self) -> float:
        return self._get("skill_improvement_chance")

    def get_npc_xp_multiplier(self) -> float:
        return self._get("npc_xp_multiplier")

    def get_npc_level_up_xp_multiplier(self) -> float:
        return self._get("npc_level_up_xp_multiplier")

    def get_npc_growth_rate(self) -> float:
        return self._get("npc_growth_rate")

    def get_world_event_chance(self) -> float:
        return self._get("world_event_chance")

    def get_world_event_interval(self) -> int:
        return int(self._get("world_event_interval"))

    def get_season_length(self) -> int:
        return int(self._get("season_length"))

    def get_action_success_bonus(self) -> float:
        return self._get("action_success_bonus")

    def get_action_reward_multiplier(self) -> float:
        return self._get("action_reward_multiplier")

    def get_base_stamina(self) -> int:
        return int(self._get("base_stamina"))

    def get_stamina_regen_bonus(self) -> int:
        return int(self._get("stamina_regen_bonus"))

    def get_relationship_gain_multiplier(self) -> float:
        return self._get("relationship_gain_multiplier")

    def get_relationship_decay_rate(self) -> float:
        return self._get("relationship_decay_rate")
