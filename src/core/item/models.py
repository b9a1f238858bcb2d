"""Item domain model (DB-agnostic)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

STAT_KEYS = ("str", "dex", "wis", "cha", "luck")


class ItemType(str, Enum):
    CONSUMABLE = "consumable"
    WEAPON = "weapon"
    ARMOR = "armor"
    ACCESSORY = "accessory"
    MATERIAL = "material"
    MISC = "misc"


class ItemRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class EquipmentSlot(str, Enum):
    WEAPON = "weapon"
    HEAD = "head"
    BODY = "body"
    FEET = "feet"
    ACCESSORY = "accessory"


# item type → slots it may occupy
SLOT_COMPATIBILITY: Dict[ItemType, tuple] = {
    ItemType.WEAPON: (EquipmentSlot.WEAPON,),
    ItemType.ARMOR: (EquipmentSlot.HEAD, EquipmentSlot.BODY, EquipmentSlot.FEET),
    ItemType.ACCESSORY: (EquipmentSlot.ACCESSORY,),
}

RARITY_BASE_VALUE: Dict[ItemRarity, int] = {
    ItemRarity.COMMON: 5,
    ItemRarity.UNCOMMON: 15,
    ItemRarity.RARE: 50,
    ItemRarity.EPIC: 150,
    ItemRarity.LEGENDARY: 500,
}

MAX_STACK = 99


@dataclass
class ItemStats:
    """Stat deltas granted while equipped."""

    str: int = 0
    dex: int = 0
    wis: int = 0
    cha: int = 0
    luck: int = 0
    max_stamina: int = 0
    damage: int = 0
    defense: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "str": self.str,
            "dex": self.dex,
            "wis": self.wis,
            "cha": self.cha,
            "luck": self.luck,
            "max_stamina": self.max_stamina,
            "damage": self.damage,
            "defense": self.defense,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemStats":
        return cls(**{k: int(v) for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class ConsumableEffect:
    health: int = 0
    stamina: int = 0


@dataclass
class Item:
    """An item instance in a bag or equipment slot."""

    id: str  # "herb_common"
    name: str
    type: ItemType
    rarity: ItemRarity = ItemRarity.COMMON
    description: str = ""
    stats: ItemStats = field(default_factory=ItemStats)
    consumable_effect: Optional[ConsumableEffect] = None
    slot: Optional[EquipmentSlot] = None  # preferred slot for armor pieces
    quantity: int = 1
    level: int = 1  # level requirement
    sell_value: int = 0

    @property
    def stackable(self) -> bool:
        return self.type in (ItemType.CONSUMABLE, ItemType.MATERIAL)

    @property
    def max_stack(self) -> int:
        return MAX_STACK if self.stackable else 1

    def copy(self, quantity: Optional[int] = None) -> "Item":
        return replace(
            self,
            stats=replace(self.stats),
            consumable_effect=replace(self.consumable_effect)
            if self.consumable_effect
            else None,
            quantity=self.quantity if quantity is None else quantity,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "rarity": self.rarity.value,
            "description": self.description,
            "stats": self.stats.to_dict(),
            "slot": self.slot.value if self.slot else None,
            "stackable": self.stackable,
            "max_stack": self.max_stack,
            "quantity": self.quantity,
            "level": self.level,
            "sell_value": self.sell_value,
        }
        if self.consumable_effect is not None:
            data["consumable_effect"] = {
                "health": self.consumable_effect.health,
                "stamina": self.consumable_effect.stamina,
            }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        effect = data.get("consumable_effect")
        slot = data.get("slot")
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            type=ItemType(data["type"]),
            rarity=ItemRarity(data.get("rarity", "common")),
            description=data.get("description", ""),
            stats=ItemStats.from_dict(data.get("stats", {})),
            consumable_effect=ConsumableEffect(**effect) if effect else None,
            slot=EquipmentSlot(slot) if slot else None,
            quantity=int(data.get("quantity", 1)),
            level=int(data.get("level", 1)),
            sell_value=int(data.get("sell_value", 0)),
        )


def calculate_sell_value(rarity: ItemRarity, stats: ItemStats) -> int:
    """Rarity base + 2 × weighted stat total (damage/defense count double)."""
    stat_value = (
        stats.str
        + stats.dex
        + stats.wis
        + stats.cha
        + stats.luck
        + stats.damage * 2
        + stats.defense * 2
    )
    return RARITY_BASE_VALUE[rarity] + stat_value * 2


def make_item(
    item_id: str,
    item_type: ItemType,
    rarity: ItemRarity,
    name: str,
    description: str,
    stats: Optional[Dict[str, int]] = None,
    level: int = 1,
    effect: Optional[Dict[str, int]] = None,
    slot: Optional[EquipmentSlot] = None,
) -> Item:
    item_stats = ItemStats.from_dict(stats or {})
    return Item(
        id=item_id,
        name=name,
        type=item_type,
        rarity=rarity,
        description=description,
        stats=item_stats,
        consumable_effect=ConsumableEffect(**effect)
        if item_type == ItemType.CONSUMABLE and effect
        else None,
        slot=slot,
        level=max(1, level),
        sell_value=calculate_sell_value(rarity, item_stats),
    )
