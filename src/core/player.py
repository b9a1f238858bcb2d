"""PlayerState: character stats, resources, stamina/health, bag and equipment.

Pure domain object. Randomness (level-up rolls) comes from an injected
RandomSource so callers can script it in tests.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.core.errors import StateError, ValidationError
from src.core.item.inventory import BAG_CAPACITY, add_item, find_item, remove_item
from src.core.item.models import (
    SLOT_COMPATIBILITY,
    STAT_KEYS,
    EquipmentSlot,
    Item,
    ItemType,
)
from src.core.npc.models import clamp_relationship
from src.core.rng import RandomSource

SKILL_KEYS = ("farming", "gathering", "trading", "social", "hunting")
RESOURCE_KEYS = ("food", "materials", "wealth", "spirit_energy")

DEFAULT_RELATIONSHIP = 50
REST_DAYS = 3


def _default_stats() -> Dict[str, int]:
    return {key: 3 for key in STAT_KEYS}


def _default_skills() -> Dict[str, int]:
    return {key: 0 for key in SKILL_KEYS}


def _default_inventory() -> Dict[str, int]:
    return {"food": 10, "materials": 5, "wealth": 20, "spirit_energy": 0}


def _empty_equipment() -> Dict[str, Optional[Item]]:
    return {slot.value: None for slot in EquipmentSlot}


@dataclass
class PlayerState:
    name: str = "Aro"
    tribe: str = "Stonefang"
    job: str = "Civilian"
    level: int = 1
    xp: int = 0
    stats: Dict[str, int] = field(default_factory=_default_stats)
    skills: Dict[str, int] = field(default_factory=_default_skills)
    inventory: Dict[str, int] = field(default_factory=_default_inventory)
    stamina: int = 5
    max_stamina: int = 5
    health: int = 100
    max_health: int = 100
    relationships: Dict[str, int] = field(default_factory=dict)
    flags: Dict[str, bool] = field(default_factory=dict)
    rest_days_remaining: int = 0
    bag: List[Item] = field(default_factory=list)
    equipment: Dict[str, Optional[Item]] = field(default_factory=_empty_equipment)

    # ── stamina / health ─────────────────────────────────────

    @property
    def is_resting(self) -> bool:
        return self.rest_days_remaining > 0

    def spend_stamina(self, amount: int) -> bool:
        if self.stamina < amount:
            return False
        self.stamina -= amount
        return True

    def restore_stamina(
        self, base_stamina: int, morale_bonus: int = 0, morale_penalty: int = 0
    ) -> None:
        """Day-start refill.

        max_stamina only grows: max(base + skill bonus + morale bonus, current max).
        A low-morale penalty shaves today's stamina, never the maximum.
        """
        skill_bonus = (self.skills.get("farming", 0) + self.skills.get("gathering", 0)) // 3
        effective = (
            base_stamina + skill_bonus + morale_bonus + self.equipment_bonus("max_stamina")
        )
        self.max_stamina = max(effective, self.max_stamina)
        self.stamina = max(0, min(self.max_stamina, self.max_stamina + morale_penalty))

    def take_damage(self, amount: int) -> bool:
        """Apply damage. Returns True when this knocks the player out."""
        if amount <= 0:
            return False
        self.health = max(0, self.health - amount)
        if self.health == 0 and not self.is_resting:
            self.rest_days_remaining = REST_DAYS
            self.stamina = 0
            return True
        return False

    def heal(self, amount: int) -> int:
        before = self.health
        self.health = max(0, min(self.max_health, self.health + amount))
        return self.health - before

    def rest_tick(self) -> bool:
        """One day of rest. Returns True when the rest period just ended."""
        if not self.is_resting:
            return False
        self.heal(math.ceil(self.max_health / REST_DAYS))
        self.rest_days_remaining -= 1
        if self.rest_days_remaining == 0:
            self.health = self.max_health
            return True
        return False

    # ── progression ──────────────────────────────────────────

    def xp_threshold(self, level_up_multiplier: float = 1.0) -> int:
        return math.floor(self.level * 10 * level_up_multiplier)

    def add_xp(
        self,
        amount: int,
        rng: RandomSource,
        xp_multiplier: float = 1.0,
        level_up_multiplier: float = 1.0,
        stat_points: int = 2,
    ) -> bool:
        """Credit scaled XP. Returns True if the player leveled up."""
        self.xp += math.floor(amount * xp_multiplier)
        if self.xp >= self.xp_threshold(level_up_multiplier):
            self.level_up(rng, stat_points)
            return True
        return False

    def level_up(self, rng: RandomSource, stat_points: int = 2) -> None:
        self.level += 1
        self.xp = 0

        stamina_gain = 1 if rng.random() < 0.9 else 2
        self.max_stamina += stamina_gain
        self.stamina += stamina_gain

        health_gain = 10 if rng.random() < 0.9 else 20
        self.max_health += health_gain
        self.health += health_gain

        for _ in range(stat_points):
            stat = rng.choice(STAT_KEYS)
            self.stats[stat] += 1 if rng.random() < 0.9 else 2

    def improve_skill(self, skill: str, amount: int = 1) -> None:
        self.skills[skill] = max(0, self.skills.get(skill, 0) + amount)

    def improve_stat(self, stat: str, amount: int = 1) -> None:
        if stat not in self.stats:
            raise ValidationError(f"Unknown stat: {stat}")
        self.stats[stat] = max(1, self.stats[stat] + amount)

    # ── resources / relationships ────────────────────────────

    def update_inventory(self, updates: Dict[str, int]) -> None:
        for key, delta in updates.items():
            self.inventory[key] = max(0, self.inventory.get(key, 0) + delta)

    def get_relationship(self, npc_id: str) -> int:
        return self.relationships.get(npc_id, DEFAULT_RELATIONSHIP)

    def update_relationship(self, npc_id: str, change: int, multiplier: float = 1.0) -> int:
        """Apply floor(change × multiplier), clamped to [1, 100]. Returns the applied delta."""
        current = self.get_relationship(npc_id)
        updated = clamp_relationship(current + math.floor(change * multiplier))
        self.relationships[npc_id] = updated
        return updated - current

    def decay_relationships(self, rate: float) -> Dict[str, int]:
        """Lower every relationship by floor(rate). Returns the applied deltas."""
        applied: Dict[str, int] = {}
        loss = math.floor(rate)
        if loss <= 0:
            return applied
        for npc_id, value in self.relationships.items():
            updated = clamp_relationship(value - loss)
            if updated != value:
                self.relationships[npc_id] = updated
                applied[npc_id] = updated - value
        return applied

    # ── bag / equipment ──────────────────────────────────────

    def add_to_bag(self, item: Item) -> bool:
        return add_item(self.bag, item, BAG_CAPACITY)

    def equipment_bonus(self, key: str) -> int:
        total = 0
        for item in self.equipment.values():
            if item is not None:
                total += getattr(item.stats, key)
        return total

    def effective_stats(self) -> Dict[str, int]:
        """Base stats plus equipment deltas (each stat ≥ 1)."""
        return {
            key: max(1, self.stats[key] + self.equipment_bonus(key)) for key in STAT_KEYS
        }

    def _resolve_slot(self, item: Item, slot: Optional[str]) -> EquipmentSlot:
        allowed = SLOT_COMPATIBILITY.get(item.type)
        if not allowed:
            raise ValidationError(f"{item.name} cannot be equipped")
        if slot is None:
            return item.slot or allowed[0]
        try:
            target = EquipmentSlot(slot)
        except ValueError:
            raise ValidationError(f"Unknown equipment slot: {slot}")
        if target not in allowed or (item.slot is not None and item.slot != target):
            raise ValidationError(f"{item.name} does not fit the {target.value} slot")
        return target

    def equip(self, item_id: str, slot: Optional[str] = None) -> str:
        item = find_item(self.bag, item_id)
        if item is None:
            raise ValidationError(f"No {item_id} in your bag")
        target = self._resolve_slot(item, slot)
        if item.level > self.level:
            raise ValidationError(f"{item.name} requires level {item.level}")

        remove_item(self.bag, item_id, 1)
        equipped = item.copy(quantity=1)
        previous = self.equipment.get(target.value)
        self.equipment[target.value] = equipped
        if previous is not None:
            # removing the equipped item freed at least the slot we need
            add_item(self.bag, previous, BAG_CAPACITY)
            return f"Equipped {equipped.name}, {previous.name} returned to your bag"
        return f"Equipped {equipped.name}"

    def unequip(self, slot: str) -> str:
        try:
            target = EquipmentSlot(slot)
        except ValueError:
            raise ValidationError(f"Unknown equipment slot: {slot}")
        item = self.equipment.get(target.value)
        if item is None:
            raise ValidationError(f"Nothing equipped in the {target.value} slot")
        if not add_item(self.bag, item, BAG_CAPACITY):
            raise StateError("Your bag is full")
        self.equipment[target.value] = None
        return f"Unequipped {item.name}"

    def consume(self, item_id: str) -> str:
        item = find_item(self.bag, item_id)
        if item is None:
            raise ValidationError(f"No {item_id} in your bag")
        if item.type != ItemType.CONSUMABLE:
            raise ValidationError(f"{item.name} cannot be consumed")

        effect = item.consumable_effect
        healed = self.heal(effect.health) if effect else 0
        restored = 0
        if effect and effect.stamina:
            before = self.stamina
            self.stamina = min(self.max_stamina, self.stamina + effect.stamina)
            restored = self.stamina - before
        remove_item(self.bag, item_id, 1)
        return f"Consumed {item.name} (+{healed} health, +{restored} stamina)"

    # ── serialization ────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tribe": self.tribe,
            "job": self.job,
            "level": self.level,
            "xp": self.xp,
            "stats": dict(self.stats),
            "skills": dict(self.skills),
            "inventory": dict(self.inventory),
            "stamina": self.stamina,
            "max_stamina": self.max_stamina,
            "health": self.health,
            "max_health": self.max_health,
            "relationships": dict(self.relationships),
            "flags": dict(self.flags),
            "rest_days_remaining": self.rest_days_remaining,
            "bag": [item.to_dict() for item in self.bag],
            "equipment": {
                slot: item.to_dict() if item else None
                for slot, item in self.equipment.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerState":
        player = cls()
        for key in (
            "name", "tribe", "job", "level", "xp", "stamina", "max_stamina",
            "health", "max_health", "rest_days_remaining",
        ):
            if key in data:
                setattr(player, key, data[key])
        player.stats.update(data.get("stats", {}))
        player.skills.update(data.get("skills", {}))
        player.inventory.update(data.get("inventory", {}))
        player.relationships = dict(data.get("relationships", {}))
        player.flags = dict(data.get("flags", {}))
        player.bag = [Item.from_dict(row) for row in data.get("bag", [])]
        for slot, row in data.get("equipment", {}).items():
            if slot in player.equipment and row:
                player.equipment[slot] = Item.from_dict(row)
        return player
