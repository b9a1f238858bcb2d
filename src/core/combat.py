"""CombatResolver: wild animal generation and fight/flee resolution."""

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from src.core.player import PlayerState
from src.core.rng import RandomSource

FLEE_DAMAGE_RATIO = 0.3
VICTORY_DAMAGE_RATIO = 0.5
MIN_VICTORY_CHANCE = 0.05
MAX_VICTORY_CHANCE = 0.95


@dataclass(frozen=True)
class AnimalTemplate:
    name: str
    base_level: int
    str: int
    dex: int
    health: int
    damage: int


BESTIARY = (
    AnimalTemplate("Wild Boar", 1, 4, 2, 15, 3),
    AnimalTemplate("Dire Wolf", 2, 5, 4, 20, 4),
    AnimalTemplate("Mountain Bear", 3, 7, 2, 30, 6),
    AnimalTemplate("Shadow Panther", 4, 6, 8, 25, 5),
    AnimalTemplate("Ancient Stag", 5, 8, 6, 40, 7),
)


@dataclass
class WildAnimal:
    id: str
    name: str
    level: int
    str: int
    dex: int
    health: int
    max_health: int
    damage: int
    rewards: Dict[str, int] = field(default_factory=dict)

    @property
    def attack(self) -> float:
        return self.str * 2 + self.dex + self.level * 2

    @property
    def defense(self) -> float:
        return self.str + self.dex * 0.5 + self.level

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "str": self.str,
            "dex": self.dex,
            "health": self.health,
            "max_health": self.max_health,
            "damage": self.damage,
            "rewards": dict(self.rewards),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WildAnimal":
        return cls(
            id=data["id"],
            name=data["name"],
            level=int(data["level"]),
            str=int(data["str"]),
            dex=int(data["dex"]),
            health=int(data["health"]),
            max_health=int(data["max_health"]),
            damage=int(data["damage"]),
            rewards={k: int(v) for k, v in data.get("rewards", {}).items()},
        )


@dataclass
class CombatResult:
    victory: bool
    damage_taken: int
    damage_dealt: int
    message: str
    rewards: Optional[Dict[str, int]] = None
    knocked_out: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "victory": self.victory,
            "damage_taken": self.damage_taken,
            "damage_dealt": self.damage_dealt,
            "message": self.message,
            "rewards": dict(self.rewards) if self.rewards else None,
            "knocked_out": self.knocked_out,
        }


def flee_damage(animal: WildAnimal) -> int:
    return math.floor(max(0, animal.damage) * FLEE_DAMAGE_RATIO)


class CombatResolver:
    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng

    def generate_wild_animal(self, player_level: int) -> WildAnimal:
        """Pick from the bestiary (base level ≤ player level + 2), jitter ±1 level."""
        candidates = [a for a in BESTIARY if a.base_level <= player_level + 2] or [BESTIARY[0]]
        template = self._rng.choice(candidates)
        level = max(1, template.base_level + self._rng.randint(-1, 1))
        scale = 1 + (level - 1) * 0.2
        health = math.floor(template.health * scale)
        return WildAnimal(
            id=f"animal_{uuid.uuid4().hex[:9]}",
            name=template.name,
            level=level,
            str=math.floor(template.str * scale),
            dex=math.floor(template.dex * scale),
            health=health,
            max_health=health,
            damage=math.floor(template.damage * scale),
            rewards={
                "xp": 5 * level,
                "food": 3 * level,
                "materials": 2 * level,
                "wealth": 2 * level,
            },
        )

    @staticmethod
    def player_attack(player: PlayerState) -> float:
        stats = player.effective_stats()
        return stats["str"] * 2 + stats["dex"] + player.level * 2 + player.equipment_bonus("damage")

    @staticmethod
    def player_defense(player: PlayerState) -> float:
        stats = player.effective_stats()
        return stats["str"] + stats["dex"] * 0.5 + player.level + player.equipment_bonus("defense")

    def victory_chance(self, player: PlayerState, animal: WildAnimal) -> float:
        stats = player.effective_stats()
        player_power = stats["str"] + stats["dex"] + stats["luck"] * 0.5
        animal_power = animal.str + animal.dex
        ratio = player_power / (player_power + animal_power)
        luck_bonus = (stats["luck"] / 100) * 0.2
        return min(MAX_VICTORY_CHANCE, max(MIN_VICTORY_CHANCE, ratio + luck_bonus))

    def resolve_combat(self, player: PlayerState, animal: WildAnimal) -> CombatResult:
        """Decide the fight. Does not mutate the player."""
        dealt = math.floor(max(1, self.player_attack(player) - animal.defense))
        raw_taken = math.floor(max(1, animal.attack - self.player_defense(player)))

        if self._rng.random() < self.victory_chance(player, animal):
            taken = math.floor(raw_taken * VICTORY_DAMAGE_RATIO)
            return CombatResult(
                victory=True,
                damage_taken=taken,
                damage_dealt=dealt,
                rewards=dict(animal.rewards),
                message=(
                    f"You defeated the {animal.name}! You took {taken} damage "
                    "but gained valuable resources."
                ),
            )

        # a lost fight never hurts less than running away would have
        taken = max(raw_taken, flee_damage(animal))
        return CombatResult(
            victory=False,
            damage_taken=taken,
            damage_dealt=dealt,
            message=(
                f"The {animal.name} was too strong! You took {taken} damage "
                "and were forced to retreat."
            ),
        )
