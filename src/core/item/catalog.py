"""ItemCatalog: per-action loot tables and loot rolls."""

from dataclasses import dataclass
from typing import Dict, List

from src.core.item.models import (
    EquipmentSlot,
    Item,
    ItemRarity,
    ItemType,
    make_item,
)
from src.core.rng import RandomSource

C = ItemType.CONSUMABLE
M = ItemType.MATERIAL


@dataclass
class LootEntry:
    item: Item
    chance: float  # % before the luck bonus
    min_quantity: int = 1
    max_quantity: int = 1


def _farm_table(level: int) -> List[LootEntry]:
    return [
        LootEntry(make_item("wheat", C, ItemRarity.COMMON, "Wheat", "Fresh wheat from the fields", effect={"health": 2}), 60, 1, 3),
        LootEntry(make_item("corn", C, ItemRarity.COMMON, "Corn", "Golden corn cobs", effect={"health": 3}), 40, 1, 2),
        LootEntry(make_item("potato", C, ItemRarity.COMMON, "Potato", "Sturdy potatoes", effect={"health": 2}), 50, 1, 4),
        LootEntry(make_item("seed_pack", M, ItemRarity.UNCOMMON, "Seed Pack", "A pack of various seeds"), 15),
        LootEntry(
            make_item(
                "farming_hoe", ItemType.WEAPON, ItemRarity.UNCOMMON, "Farming Hoe",
                "A sturdy hoe that increases farming efficiency",
                stats={"str": 1, "wis": 1}, level=level,
            ),
            5,
        ),
    ]


def _gather_table(level: int) -> List[LootEntry]:
    return [
        LootEntry(make_item("herb_common", C, ItemRarity.COMMON, "Common Herb", "A healing herb", effect={"health": 5}), 70, 1, 3),
        LootEntry(make_item("herb_rare", C, ItemRarity.UNCOMMON, "Rare Herb", "A rare healing herb", effect={"health": 15, "stamina": 5}), 20, 1, 2),
        LootEntry(make_item("mushroom", C, ItemRarity.COMMON, "Mushroom", "A wild mushroom", effect={"health": 3}), 45, 1, 4),
        LootEntry(make_item("berries", C, ItemRarity.COMMON, "Berries", "Wild berries", effect={"health": 2, "stamina": 1}), 55, 1, 5),
        LootEntry(make_item("bark", M, ItemRarity.COMMON, "Bark", "Tree bark for crafting"), 30, 1, 3),
        LootEntry(
            make_item(
                "gathering_bag", ItemType.ACCESSORY, ItemRarity.UNCOMMON, "Gathering Bag",
                "Increases gathering efficiency",
                stats={"dex": 1, "wis": 1}, level=level,
            ),
            8,
        ),
    ]


def _hunt_table(level: int) -> List[LootEntry]:
    return [
        LootEntry(make_item("raw_meat", C, ItemRarity.COMMON, "Raw Meat", "Fresh meat from the hunt", effect={"health": 5}), 80, 1, 3),
        LootEntry(make_item("hide", M, ItemRarity.COMMON, "Hide", "Animal hide for crafting"), 50, 1, 2),
        LootEntry(make_item("bone", M, ItemRarity.COMMON, "Bone", "Animal bone for crafting"), 35, 1, 2),
        LootEntry(
            make_item(
                "hunting_bow", ItemType.WEAPON, ItemRarity.RARE, "Hunting Bow",
                "A well-crafted hunting bow",
                stats={"dex": 3, "str": 2, "damage": 5}, level=level,
            ),
            3,
        ),
        LootEntry(
            make_item(
                "hunter_cloak", ItemType.ARMOR, ItemRarity.UNCOMMON, "Hunter Cloak",
                "A cloak that aids in hunting",
                stats={"dex": 2, "defense": 3}, level=level, slot=EquipmentSlot.BODY,
            ),
            5,
        ),
    ]


def _explore_table(level: int) -> List[LootEntry]:
    return [
        LootEntry(make_item("ancient_coin", ItemType.MISC, ItemRarity.UNCOMMON, "Ancient Coin", "A coin from ages past"), 25, 1, 3),
        LootEntry(make_item("gem", ItemType.MISC, ItemRarity.RARE, "Gem", "A precious gem"), 10),
        LootEntry(
            make_item(
                "explorer_boots", ItemType.ARMOR, ItemRarity.UNCOMMON, "Explorer Boots",
                "Boots that aid in exploration",
                stats={"dex": 2, "max_stamina": 2}, level=level, slot=EquipmentSlot.FEET,
            ),
            8,
        ),
        LootEntry(
            make_item(
                "lucky_charm", ItemType.ACCESSORY, ItemRarity.RARE, "Lucky Charm",
                "Increases luck", stats={"luck": 5}, level=level,
            ),
            5,
        ),
        LootEntry(
            make_item(
                "adventurer_sword", ItemType.WEAPON, ItemRarity.RARE, "Adventurer Sword",
                "A sword found in the wilds",
                stats={"str": 4, "dex": 2, "damage": 8}, level=level,
            ),
            2,
        ),
    ]


def _trade_table(level: int) -> List[LootEntry]:
    return [
        LootEntry(make_item("trade_goods", ItemType.MISC, ItemRarity.COMMON, "Trade Goods", "Valuable trade goods"), 40, 1, 2),
        LootEntry(
            make_item(
                "merchant_ring", ItemType.ACCESSORY, ItemRarity.UNCOMMON, "Merchant Ring",
                "Increases trading efficiency",
                stats={"cha": 2, "wis": 1}, level=level,
            ),
            8,
        ),
    ]


class ItemCatalog:
    """Loot-table definitions keyed by action type."""

    _TABLES = {
        "farm": _farm_table,
        "gather": _gather_table,
        "hunt": _hunt_table,
        "explore": _explore_table,
        "trade": _trade_table,
    }

    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng

    def loot_table(self, action_type: str, player_level: int) -> List[LootEntry]:
        builder = self._TABLES.get(action_type)
        return builder(player_level) if builder else []

    def generate_loot(self, action_type: str, player_level: int, luck: int = 0) -> List[Item]:
        """Roll every entry of the action's table once.

        Drop chance = min(100, chance + luck/100*10). Stackable drops roll a
        quantity in [min, max]; repeated stackable ids are merged.
        """
        looted: Dict[str, Item] = {}
        order: List[Item] = []
        luck_bonus = (luck / 100) * 10
        for entry in self.loot_table(action_type, player_level):
            chance = min(100.0, entry.chance + luck_bonus)
            if self._rng.random() * 100 >= chance:
                continue
            item = entry.item.copy()
            if item.stackable:
                item.quantity = self._rng.randint(entry.min_quantity, entry.max_quantity)
                existing = looted.get(item.id)
                if existing is not None:
                    existing.quantity += item.quantity
                    continue
                looted[item.id] = item
            order.append(item)
        return order

    def find_template(self, item_id: str) -> Item:
        """Look up a catalog item by id across every table (level 1 variant)."""
        for builder in self._TABLES.values():
            for entry in builder(1):
                if entry.item.id == item_id:
                    return entry.item.copy()
        raise KeyError(item_id)
