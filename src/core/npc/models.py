"""NPC domain model.

DB-agnostic dataclasses. Growth paths are resolved once, at creation time,
into an explicit GrowthPath tag.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from src.core.item.models import STAT_KEYS


class Disposition(str, Enum):
    """Baseline alignment, independent of the numeric relationship"""

    FRIENDLY = "Friendly"
    NEUTRAL = "Neutral"
    HOSTILE = "Hostile"


class ReactionLevel(str, Enum):
    HOSTILE = "Hostile"
    NEUTRAL = "Neutral"
    FRIENDLY = "Friendly"
    ALLY = "Ally"


class GrowthPath(str, Enum):
    WARRIOR = "warrior"
    HUNTER = "hunter"
    SAGE = "sage"
    MERCHANT = "merchant"
    MYSTIC = "mystic"
    BALANCED = "balanced"


# ── growth path tables ───────────────────────────────────────

GROWTH_PATH_STATS: Dict[GrowthPath, Tuple[str, ...]] = {
    GrowthPath.WARRIOR: ("str", "dex"),
    GrowthPath.HUNTER: ("dex", "str", "luck"),
    GrowthPath.SAGE: ("wis", "cha"),
    GrowthPath.MERCHANT: ("cha", "luck"),
    GrowthPath.MYSTIC: ("wis", "luck"),
    GrowthPath.BALANCED: STAT_KEYS,
}

# free-form tag spellings seen in seed data
GROWTH_PATH_ALIASES: Dict[str, GrowthPath] = {
    "fighter": GrowthPath.WARRIOR,
    "guardian": GrowthPath.WARRIOR,
    "tracker": GrowthPath.HUNTER,
    "scholar": GrowthPath.SAGE,
    "wisdom": GrowthPath.SAGE,
    "elder": GrowthPath.SAGE,
    "trader": GrowthPath.MERCHANT,
    "shaman": GrowthPath.MYSTIC,
    "spiritual": GrowthPath.MYSTIC,
}

ROLE_GROWTH_PATH: Dict[str, GrowthPath] = {
    "warrior": GrowthPath.WARRIOR,
    "hunter": GrowthPath.HUNTER,
    "elder": GrowthPath.SAGE,
    "merchant": GrowthPath.MERCHANT,
    "shaman": GrowthPath.MYSTIC,
}

ROLE_DEFAULT_STATS: Dict[str, Dict[str, int]] = {
    "warrior": {"str": 6, "dex": 4, "wis": 2, "cha": 3, "luck": 3},
    "hunter": {"str": 4, "dex": 6, "wis": 3, "cha": 2, "luck": 4},
    "elder": {"str": 2, "dex": 2, "wis": 7, "cha": 5, "luck": 3},
    "merchant": {"str": 2, "dex": 3, "wis": 4, "cha": 6, "luck": 5},
    "shaman": {"str": 2, "dex": 3, "wis": 6, "cha": 4, "luck": 5},
    "farmer": {"str": 4, "dex": 3, "wis": 4, "cha": 3, "luck": 3},
    "chief": {"str": 5, "dex": 3, "wis": 5, "cha": 6, "luck": 3},
}


def resolve_growth_path(tag: Optional[str], role: str) -> GrowthPath:
    """Tag → GrowthPath. Exact match on value or alias, else the role's default."""
    if isinstance(tag, GrowthPath):
        return tag
    key = (tag or "").strip().lower()
    if key:
        try:
            return GrowthPath(key)
        except ValueError:
            if key in GROWTH_PATH_ALIASES:
                return GROWTH_PATH_ALIASES[key]
    return ROLE_GROWTH_PATH.get(role.strip().lower(), GrowthPath.BALANCED)


# shared by the NPC record and the player's relationship map
MIN_RELATIONSHIP = 1
MAX_RELATIONSHIP = 100


def clamp_relationship(value: int) -> int:
    return max(MIN_RELATIONSHIP, min(MAX_RELATIONSHIP, int(value)))


def default_stats_for_role(role: str) -> Dict[str, int]:
    return dict(ROLE_DEFAULT_STATS.get(role.strip().lower(), {k: 3 for k in STAT_KEYS}))


@dataclass
class NPC:
    """A named tribe member the player can visit."""

    id: str
    name: str
    role: str
    tribe: str = "Stonefang"
    disposition: Disposition = Disposition.NEUTRAL
    relationship: int = 50
    growth_path: GrowthPath = GrowthPath.BALANCED
    level: int = 1
    xp: int = 0
    stats: Dict[str, int] = field(default_factory=dict)
    location: Optional[Dict[str, Any]] = None
    encountered: bool = False
    flags: Dict[str, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.stats:
            self.stats = default_stats_for_role(self.role)
        for key in STAT_KEYS:
            self.stats[key] = max(1, int(self.stats.get(key, 3)))
        self.relationship = clamp_relationship(self.relationship)
        self.level = max(1, int(self.level))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "tribe": self.tribe,
            "disposition": self.disposition.value,
            "relationship": self.relationship,
            "growth_path": self.growth_path.value,
            "level": self.level,
            "xp": self.xp,
            "stats": dict(self.stats),
            "location": dict(self.location) if self.location else None,
            "encountered": self.encountered,
            "flags": dict(self.flags),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NPC":
        """Build from seed/save data. Raises KeyError/ValueError on malformed rows."""
        role = data["role"]
        return cls(
            id=data["id"],
            name=data["name"],
            role=role,
            tribe=data.get("tribe", "Stonefang"),
            disposition=Disposition(data.get("disposition", "Neutral")),
            relationship=data.get("relationship", 50),
            growth_path=resolve_growth_path(data.get("growth_path"), role),
            level=data.get("level", 1),
            xp=int(data.get("xp", 0)),
            stats=dict(data.get("stats") or {}),
            location=data.get("location"),
            encountered=bool(data.get("encountered", False)),
            flags=dict(data.get("flags", {})),
        )
