"""PlayerState: stamina, rest, progression, relationships, equipment."""

import pytest

from src.core.errors import StateError, ValidationError
from src.core.item.catalog import ItemCatalog
from src.core.item.models import EquipmentSlot, ItemRarity, ItemType, make_item
from src.core.player import REST_DAYS, PlayerState
from src.core.rng import SequenceRNG


def _catalog_item(item_id: str):
    return ItemCatalog(SequenceRNG()).find_template(item_id)


class TestStamina:
    def test_restore_uses_skill_bonus(self) -> None:
        player = PlayerState()
        player.skills["farming"] = 2
        player.skills["gathering"] = 4
        player.stamina = 0
        player.restore_stamina(5)
        assert player.max_stamina == 7
        assert player.stamina == 7

    def test_max_stamina_never_shrinks(self) -> None:
        player = PlayerState(max_stamina=9)
        player.restore_stamina(5)
        assert player.max_stamina == 9
        assert player.stamina == 9

    def test_morale_penalty_only_hits_today(self) -> None:
        player = PlayerState()
        player.restore_stamina(5, morale_penalty=-2)
        assert player.max_stamina == 5
        assert player.stamina == 3

    def test_equipment_raises_stamina(self) -> None:
        player = PlayerState()
        player.add_to_bag(_catalog_item("explorer_boots"))
        player.equip("explorer_boots")
        player.restore_stamina(5)
        assert player.max_stamina == 7

    def test_spend_stamina_refuses_overdraft(self) -> None:
        player = PlayerState(stamina=1)
        assert player.spend_stamina(2) is False
        assert player.stamina == 1


class TestRest:
    def test_knock_out_starts_rest(self) -> None:
        player = PlayerState(health=5)
        assert player.take_damage(10) is True
        assert player.health == 0
        assert player.rest_days_remaining == REST_DAYS
        assert player.stamina == 0

    def test_rest_ticks_heal_then_restore_full(self) -> None:
        player = PlayerState(health=0, rest_days_remaining=3)
        assert player.rest_tick() is False
        assert player.health == 34
        assert player.rest_tick() is False
        assert player.health == 68
        assert player.rest_tick() is True
        assert player.health == 100
        assert not player.is_resting

    def test_zero_damage_is_harmless(self) -> None:
        player = PlayerState()
        assert player.take_damage(0) is False
        assert player.health == 100


class TestProgression:
    def test_xp_below_threshold(self) -> None:
        player = PlayerState()
        assert player.add_xp(9, SequenceRNG()) is False
        assert player.xp == 9

    def test_level_up_gains(self) -> None:
        # stamina +1, health +10, then two points: wis +1, luck +2
        rng = SequenceRNG([0.0, 0.0, 0.5, 0.0, 0.99, 0.99])
        player = PlayerState()
        assert player.add_xp(10, rng) is True
        assert player.level == 2
        assert player.xp == 0
        assert player.max_stamina == 6
        assert player.max_health == 110
        assert player.stats["wis"] == 4
        assert player.stats["luck"] == 5

    def test_xp_multiplier_floors(self) -> None:
        player = PlayerState()
        player.add_xp(3, SequenceRNG(), xp_multiplier=0.7)
        assert player.xp == 2

    def test_level_up_multiplier_raises_threshold(self) -> None:
        player = PlayerState()
        assert player.xp_threshold(1.3) == 13
        assert player.add_xp(12, SequenceRNG(), level_up_multiplier=1.3) is False

    def test_improve_unknown_stat(self) -> None:
        with pytest.raises(ValidationError):
            PlayerState().improve_stat("charm", 1)


class TestRelationships:
    def test_default_is_fifty(self) -> None:
        assert PlayerState().get_relationship("grok") == 50

    def test_gain_multiplier_floors(self) -> None:
        player = PlayerState()
        applied = player.update_relationship("grok", 7, 1.3)
        assert applied == 9
        assert player.relationships["grok"] == 59

    def test_clamped_to_hundred(self) -> None:
        player = PlayerState(relationships={"grok": 98})
        assert player.update_relationship("grok", 9) == 2
        assert player.relationships["grok"] == 100

    def test_floor_matches_npc_floor(self) -> None:
        player = PlayerState(relationships={"grok": 3})
        assert player.update_relationship("grok", -10) == -2
        assert player.relationships["grok"] == 1

    def test_decay(self) -> None:
        player = PlayerState(relationships={"grok": 60, "mara": 1})
        assert player.decay_relationships(2.5) == {"grok": -2}
        assert player.relationships == {"grok": 58, "mara": 1}

    def test_inventory_never_negative(self) -> None:
        player = PlayerState()
        player.update_inventory({"wealth": -500})
        assert player.inventory["wealth"] == 0


class TestEquipment:
    def test_equip_moves_item_out_of_bag(self) -> None:
        player = PlayerState()
        player.add_to_bag(_catalog_item("hunting_bow"))
        player.equip("hunting_bow")
        assert player.bag == []
        assert player.equipment["weapon"].id == "hunting_bow"
        assert player.effective_stats()["dex"] == 6
        assert player.equipment_bonus("damage") == 5

    def test_equip_swaps_previous_back(self) -> None:
        player = PlayerState()
        player.add_to_bag(_catalog_item("hunting_bow"))
        player.add_to_bag(_catalog_item("farming_hoe"))
        player.equip("hunting_bow")
        message = player.equip("farming_hoe")
        assert "Hunting Bow" in message
        assert player.equipment["weapon"].id == "farming_hoe"
        assert [item.id for item in player.bag] == ["hunting_bow"]

    def test_wrong_slot_rejected(self) -> None:
        player = PlayerState()
        player.add_to_bag(_catalog_item("hunter_cloak"))
        with pytest.raises(ValidationError):
            player.equip("hunter_cloak", "feet")

    def test_level_requirement(self) -> None:
        player = PlayerState()
        sword = make_item(
            "sword", ItemType.WEAPON, ItemRarity.RARE, "Sword", "", {"str": 3}, level=4
        )
        player.add_to_bag(sword)
        with pytest.raises(ValidationError):
            player.equip("sword")
        assert player.equipment["weapon"] is None

    def test_materials_cannot_be_equipped(self) -> None:
        player = PlayerState()
        player.add_to_bag(_catalog_item("hide"))
        with pytest.raises(ValidationError):
            player.equip("hide")

    def test_unequip_with_full_bag(self) -> None:
        player = PlayerState()
        player.add_to_bag(_catalog_item("lucky_charm"))
        player.equip("lucky_charm", EquipmentSlot.ACCESSORY.value)
        for _ in range(50):
            player.add_to_bag(_catalog_item("gem"))
        with pytest.raises(StateError):
            player.unequip("accessory")
        assert player.equipment["accessory"] is not None

    def test_unequip_empty_slot(self) -> None:
        with pytest.raises(ValidationError):
            PlayerState().unequip("head")


class TestConsume:
    def test_consume_clamps_to_maxima(self) -> None:
        player = PlayerState(health=90, stamina=2)
        player.add_to_bag(_catalog_item("herb_rare"))
        player.consume("herb_rare")
        assert player.health == 100
        assert player.stamina == 5
        assert player.bag == []

    def test_consume_non_consumable(self) -> None:
        player = PlayerState()
        player.add_to_bag(_catalog_item("bone"))
        with pytest.raises(ValidationError):
            player.consume("bone")


class TestSerialization:
    def test_round_trip(self) -> None:
        player = PlayerState(name="Kira", level=3, relationships={"grok": 70})
        player.add_to_bag(_catalog_item("berries").copy(quantity=4))
        player.add_to_bag(_catalog_item("hunter_cloak"))
        player.equip("hunter_cloak")
        restored = PlayerState.from_dict(player.to_dict())
        assert restored.to_dict() == player.to_dict()
