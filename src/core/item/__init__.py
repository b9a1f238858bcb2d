"""Item system core: pure Python, no DB."""

from .catalog import ItemCatalog, LootEntry
from .inventory import BAG_CAPACITY, add_item, can_add_item, remove_item
from .models import (
    EquipmentSlot,
    Item,
    ItemRarity,
    ItemStats,
    ItemType,
    calculate_sell_value,
)

__all__ = [
    "BAG_CAPACITY",
    "EquipmentSlot",
    "Item",
    "ItemCatalog",
    "ItemRarity",
    "ItemStats",
    "ItemType",
    "LootEntry",
    "add_item",
    "calculate_sell_value",
    "can_add_item",
    "remove_item",
]
