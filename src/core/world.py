"""WorldState: age, seasons, the world resource trio and major events."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from src.core.logging import get_logger
from src.core.rng import RandomSource

logger = get_logger(__name__)


class Season(str, Enum):
    SPRING = "Spring"
    SUMMER = "Summer"
    AUTUMN = "Autumn"
    WINTER = "Winter"


SEASON_ORDER = (Season.SPRING, Season.SUMMER, Season.AUTUMN, Season.WINTER)

# applied once when a season begins
SEASON_EFFECTS: Dict[Season, Dict[str, int]] = {
    Season.SPRING: {"prosperity": 2, "stability": 1, "tension": -1},
    Season.SUMMER: {"prosperity": 3, "stability": 0, "tension": 1},
    Season.AUTUMN: {"prosperity": 1, "stability": -1, "tension": 0},
    Season.WINTER: {"prosperity": -2, "stability": -2, "tension": 2},
}

MAJOR_EVENTS = (
    "A great harvest brings prosperity to all tribes",
    "A mysterious trader arrives with rare goods",
    "Ancient ruins are discovered in the valley",
    "A festival brings joy and unity",
    "A storm damages crops across the region",
    "A new trade route opens between tribes",
    "A wise elder shares ancient knowledge",
    "Wild beasts become more active",
    "A rare resource is found",
    "Diplomatic tensions rise between tribes",
)

# resource → substrings that bump it by MAJOR_EVENT_BUMP
EVENT_KEYWORDS: Dict[str, tuple] = {
    "prosperity": ("prosperity", "harvest", "trade"),
    "tension": ("tension", "beasts", "storm"),
    "stability": ("unity", "knowledge", "festival"),
}

MAJOR_EVENT_BUMP = 5
NATURAL_PROSPERITY_CHANCE = 0.1


def season_for_day(day: int, season_length: int) -> Season:
    """Four equal bands over a cycle of season_length × 4 days."""
    season_length = max(1, season_length)
    position = day % (season_length * 4)
    return SEASON_ORDER[position // season_length]


def _default_resources() -> Dict[str, int]:
    return {"stability": 70, "prosperity": 50, "tension": 30}


@dataclass
class WorldAdvance:
    season_changed: bool
    season: Season
    major_event: Optional[str] = None
    changes: Dict[str, int] = field(default_factory=dict)


@dataclass
class WorldState:
    age: int = 0
    season: Season = Season.SPRING
    resources: Dict[str, int] = field(default_factory=_default_resources)
    major_events: List[str] = field(default_factory=list)  # append-only
    last_major_event: int = 0
    npc_encounters: Dict[str, int] = field(default_factory=dict)

    def _bump(self, key: str, delta: int) -> None:
        self.resources[key] = max(0, min(100, self.resources[key] + delta))

    def advance_day(
        self,
        day: int,
        rng: RandomSource,
        season_length: int = 30,
        event_chance: float = 20,
        event_interval: int = 10,
    ) -> WorldAdvance:
        previous = self.season
        self.age = day
        self.season = season_for_day(day, season_length)
        result = WorldAdvance(season_changed=previous != self.season, season=self.season)

        if rng.random() < NATURAL_PROSPERITY_CHANCE:
            self._bump("prosperity", 1)
            result.changes["prosperity"] = 1

        if day - self.last_major_event >= event_interval and rng.random() < event_chance / 100:
            result.major_event = self._trigger_major_event(day, rng)

        if result.season_changed:
            for key, delta in SEASON_EFFECTS[self.season].items():
                self._bump(key, delta)
                result.changes[key] = result.changes.get(key, 0) + delta
            logger.info(f"Day {day}: the season turns to {self.season.value}")

        return result

    def _trigger_major_event(self, day: int, rng: RandomSource) -> str:
        text = rng.choice(MAJOR_EVENTS)
        self.major_events.append(f"{day}: {text}")
        self.last_major_event = day
        for key, words in EVENT_KEYWORDS.items():
            if any(word in text for word in words):
                self._bump(key, MAJOR_EVENT_BUMP)
        logger.info(f"World event on day {day}: {text}")
        return text

    def apply_effects(self, effects: Dict[str, int]) -> None:
        """Bump world resources by the given deltas (clamped to [0, 100])."""
        for key, delta in effects.items():
            if key in self.resources:
                self._bump(key, delta)

    # ── encounter bookkeeping ────────────────────────────────

    def record_encounter(self, npc_id: str, day: int) -> None:
        self.npc_encounters[npc_id] = day

    def days_since_encounter(self, npc_id: str, current_day: int) -> float:
        """math.inf when the NPC has never been encountered."""
        last = self.npc_encounters.get(npc_id)
        if last is None:
            return math.inf
        return current_day - last

    def to_dict(self) -> Dict[str, Any]:
        """Serialized without npc_encounters (saved alongside, at top level)."""
        return {
            "age": self.age,
            "season": self.season.value,
            "resources": dict(self.resources),
            "major_events": list(self.major_events),
            "last_major_event": self.last_major_event,
        }

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], npc_encounters: Optional[Dict[str, int]] = None
    ) -> "WorldState":
        world = cls(
            age=int(data.get("age", 0)),
            season=Season(data.get("season", Season.SPRING.value)),
            major_events=list(data.get("major_events", [])),
            last_major_event=int(data.get("last_major_event", 0)),
            npc_encounters=dict(npc_encounters or {}),
        )
        world.resources.update(data.get("resources", {}))
        return world
