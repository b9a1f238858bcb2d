"""GameLoopOrchestrator: day cycle, action routing, explore decisions, visits."""

import pytest

from src.core.errors import ValidationError
from src.core.event_types import EventTypes
from src.core.game_config import Difficulty
from src.core.game_loop import DecisionState
from src.core.item.catalog import ItemCatalog
from src.core.player import PlayerState
from src.core.rng import SequenceRNG

MISS = 0.99
# explore: encounter hit, Mountain Bear, level jitter 0 (damage 8, flee damage 2)
BEAR_ENCOUNTER = [0.0, 0.9, 0.5]


class TestActionRouting:
    def test_farm(self, make_game) -> None:
        game = make_game(SequenceRNG([0.0], default=MISS))
        outcome = game.execute_action("farm")
        assert outcome.success is True
        assert game.player.stamina == 4
        assert game.player.inventory["food"] == 13

    def test_unknown_action(self, make_game) -> None:
        game = make_game()
        outcome = game.execute_action("dance")
        assert outcome.error == "validation"
        assert game.player.stamina == 5

    def test_unknown_npc(self, make_game) -> None:
        game = make_game()
        outcome = game.execute_action("visit", npc_id="nobody")
        assert outcome.error == "validation"
        assert game.player.stamina == 5

    def test_resting_player_rejected(self, make_game) -> None:
        game = make_game(player=PlayerState(rest_days_remaining=1))
        outcome = game.execute_action("gather")
        assert outcome.error == "state"

    def test_action_event_applied(self, make_game, events) -> None:
        game = make_game(SequenceRNG([0.1, 0.0, 0.0], default=MISS), events=events)
        outcome = game.execute_action("farm")
        assert outcome.event["id"] == "bumper_crop"
        assert game.tribe.resources["food"] == 120 + 6 + 3

    def test_action_event_dropped_on_rejection(self, make_game, events) -> None:
        game = make_game(SequenceRNG([0.1, 0.0]), events=events, player=PlayerState(stamina=0))
        outcome = game.execute_action("farm")
        assert outcome.error == "state"
        assert outcome.event is None
        assert game.tribe.resources["food"] == 120

    def test_action_emits(self, make_game) -> None:
        game = make_game(SequenceRNG([0.0], default=MISS))
        received = []
        game.bus.subscribe(EventTypes.ACTION_RESOLVED, received.append)
        game.execute_action("farm")
        game.execute_action("farm")
        # duplicate suppression is per turn
        assert len(received) == 2
        assert received[0].data["action"] == "farm"
        assert received[0].source == "game_loop"


class TestExploreDecision:
    def test_pending_blocks_other_actions(self, make_game) -> None:
        game = make_game(SequenceRNG(BEAR_ENCOUNTER, default=MISS))
        outcome = game.execute_action("explore")
        assert outcome.explore_encounter["animal"]["name"] == "Mountain Bear"
        assert game.decision.state == DecisionState.AWAITING_DECISION
        assert game.snapshot()["pending_encounter"]["name"] == "Mountain Bear"

        blocked = game.execute_action("farm")
        assert blocked.error == "state"
        assert game.player.stamina == 3

        no_decision = game.execute_action("explore")
        assert no_decision.error == "state"
        assert game.decision.is_pending

    def test_flee_clears_pending(self, make_game) -> None:
        game = make_game(SequenceRNG(BEAR_ENCOUNTER, default=MISS))
        game.execute_action("explore")
        outcome = game.execute_action("explore", combat_decision="flee")
        assert outcome.combat_result["damage_taken"] == 2
        assert game.player.health == 98
        assert game.decision.state == DecisionState.RESOLVED

        game.rng.push(0.0)
        assert game.execute_action("farm").error is None
        assert game.decision.state == DecisionState.IDLE

    def test_flee_knock_out(self, make_game) -> None:
        game = make_game(SequenceRNG(BEAR_ENCOUNTER, default=MISS), player=PlayerState(health=2))
        game.execute_action("explore")
        outcome = game.execute_action("explore", combat_decision="flee")
        assert outcome.combat_result["knocked_out"] is True
        assert game.player.rest_days_remaining == 3
        assert game.player.stamina == 0

    def test_fight(self, make_game) -> None:
        game = make_game(SequenceRNG(BEAR_ENCOUNTER + [MISS], default=MISS))
        received = []
        game.bus.subscribe(EventTypes.COMBAT_RESOLVED, received.append)
        game.execute_action("explore")
        outcome = game.execute_action("explore", combat_decision="fight")
        assert outcome.success is False
        assert game.player.health == 80
        assert received[0].data == {"animal": "Mountain Bear", "decision": "fight", "victory": False}

    def test_bad_decision_keeps_pending(self, make_game) -> None:
        game = make_game(SequenceRNG(BEAR_ENCOUNTER, default=MISS))
        game.execute_action("explore")
        outcome = game.execute_action("explore", combat_decision="dance")
        assert outcome.error == "validation"
        assert game.decision.is_pending

    def test_decision_without_encounter(self, make_game) -> None:
        outcome = make_game().execute_action("explore", combat_decision="fight")
        assert outcome.error == "validation"

    def test_pending_survives_day_end(self, make_game) -> None:
        game = make_game(SequenceRNG(BEAR_ENCOUNTER, default=MISS))
        game.execute_action("explore")
        game.end_day()
        assert game.decision.is_pending


class TestVisit:
    def test_relationship_mirrored_to_npc(self, make_game) -> None:
        game = make_game(SequenceRNG([0.0, 0.0, MISS, MISS], default=MISS))
        outcome = game.execute_action("visit", npc_id="grok")
        assert outcome.effects == {"relationship": {"grok": 5}}
        assert game.player.relationships["grok"] == 55
        assert game.npcs.get("grok").relationship == 60
        assert outcome.encounter is None

    def test_encounter(self, make_game) -> None:
        player = PlayerState(relationships={"mara": 60})
        # success, +5, skill miss, encounter roll hit, then defaults
        game = make_game(SequenceRNG([0.0, 0.0, MISS, 0.0], default=MISS), player=player)
        outcome = game.execute_action("visit", npc_id="mara")

        assert outcome.encounter["encounter_id"] == "elder_wisdom"
        assert outcome.leveled_up is True
        assert player.relationships["mara"] == 73
        assert game.npcs.get("mara").relationship == 73
        assert player.stats["wis"] == 4
        assert player.skills["social"] == 1
        assert game.world.resources["stability"] == 73
        assert game.world.npc_encounters == {"mara": 1}
        assert game.npcs.get("mara").encountered is True

    def test_npc_event(self, make_game, events) -> None:
        player = PlayerState(relationships={"grok": 70})
        # success, +5, skill miss, encounter miss, npc event roll hit
        rng = SequenceRNG([0.0, 0.0, MISS, MISS, 0.0, 0.0], default=MISS)
        game = make_game(rng, events=events, player=player)
        outcome = game.execute_action("visit", npc_id="grok")
        assert outcome.npc_event["id"] == "grok_story"
        assert game.tribe.attributes["morale"] == 63

    def test_first_meeting_noted_once(self, make_game) -> None:
        game = make_game(SequenceRNG([0.0, 0.0, MISS, MISS] * 2, default=MISS))
        first = game.execute_action("visit", npc_id="grok")
        assert "first time sitting down with Grok" in first.message
        assert game.npcs.get_flag("grok", "met") is True
        second = game.execute_action("visit", npc_id="grok")
        assert "first time" not in second.message

    def test_list_npcs_by_tribe(self, make_game) -> None:
        game = make_game()
        game.npcs.get("tarek").tribe = "Windveil"
        assert [npc.id for npc in game.list_npcs()] == ["grok", "mara", "tarek"]
        assert [npc.id for npc in game.list_npcs("Windveil")] == ["tarek"]
        assert game.list_npcs("Emberroot") == []

    def test_npc_details_includes_reaction(self, make_game) -> None:
        # cha 3 * 2 + relationship 55 + jitter 0
        game = make_game(SequenceRNG([0.5]), player=PlayerState(relationships={"grok": 55}))
        details = game.npc_details("grok")
        assert details["npc"]["id"] == "grok"
        assert details["relationship"] == 55
        assert details["reaction"] == {"score": 61.0, "level": "Friendly"}

    def test_npc_details_unknown(self, make_game) -> None:
        with pytest.raises(ValidationError):
            make_game().npc_details("nobody")

    def test_sessions_do_not_share_npcs(self, make_game, npcs) -> None:
        first = make_game(SequenceRNG([0.0, 0.0, MISS, MISS], default=MISS))
        second = make_game()
        first.execute_action("visit", npc_id="grok")
        assert second.npcs.get("grok").relationship == 55
        assert npcs[0].relationship == 55


class TestDayCycle:
    def test_end_day_refills_and_advances(self, make_game) -> None:
        game = make_game(SequenceRNG([0.0], default=MISS))
        game.execute_action("farm")
        report = game.end_day()
        assert game.day == 2
        assert report.day == 2
        assert game.player.stamina == 5
        assert game.world.age == 2
        assert game.npcs.get("mara").xp == 2

    def test_rest_period(self, make_game) -> None:
        game = make_game(player=PlayerState(health=0, rest_days_remaining=3, stamina=0))
        report = game.end_day()
        assert "2 more days" in report.rest_message
        assert game.player.stamina == 0
        game.end_day()
        report = game.end_day()
        assert report.rest_message.startswith("You have fully recovered")
        assert game.player.health == 100
        assert game.player.stamina == 5

    def test_low_morale_penalty(self, make_game) -> None:
        game = make_game()
        game.tribe.attributes["morale"] = 30
        game.start_day()
        assert game.player.stamina == 3

    def test_milestone_at_day_start(self, make_game, events) -> None:
        game = make_game(events=events)
        game.tribe.resources["food"] = 200
        received = []
        game.bus.subscribe(EventTypes.MILESTONE_REACHED, received.append)
        report = game.start_day()
        assert report.milestone["id"] == "granaries"
        assert game.tribe.attributes["morale"] == 70
        assert received[0].data["event_id"] == "granaries"
        assert game.start_day().milestone is None

    def test_daily_event(self, make_game, events) -> None:
        game = make_game(SequenceRNG([0.0, 0.0], default=MISS), events=events)
        report = game.start_day()
        assert report.daily_event["id"] == "rain"
        assert game.tribe.resources["food"] == 125

    def test_relationship_decay(self, make_game) -> None:
        game = make_game(player=PlayerState(relationships={"grok": 60}))
        game.update_config({"relationship_decay_rate": 2})
        game.end_day()
        assert game.player.relationships["grok"] == 58
        assert game.npcs.get("grok").relationship == 53

    def test_relationship_decay_reaches_npc_record(self, make_game) -> None:
        game = make_game(player=PlayerState(relationships={"grok": 80}))
        game.npcs.get("grok").relationship = 80
        game.update_config({"relationship_decay_rate": 30})
        game.end_day()
        assert game.player.relationships["grok"] == 50
        assert game.npcs.get("grok").relationship == 50
        # growth pass ran on the decayed value: tier 50 gives +1, player bonus 5
        assert game.npcs.get("grok").xp == 6

    def test_largest_config_values_keep_state_bounded(self, make_game) -> None:
        game = make_game(SequenceRNG(default=0.0))
        rejected = game.update_config({
            "xp_multiplier": 1e308,
            "level_up_xp_multiplier": 1e308,
            "npc_xp_multiplier": 1e308,
            "npc_level_up_xp_multiplier": 1e308,
            "action_reward_multiplier": 1e308,
            "relationship_gain_multiplier": 1e308,
            "season_length": 10**9,
        })
        assert rejected == []

        farm = game.execute_action("farm")
        visit = game.execute_action("visit", npc_id="grok")
        report = game.end_day()

        assert farm.error is None and farm.success is True
        assert visit.error is None
        assert report.day == 2
        assert 1 <= game.player.relationships["grok"] <= 100
        assert 1 <= game.npcs.get("grok").relationship <= 100

    def test_day_ended_emitted(self, make_game) -> None:
        game = make_game()
        received = []
        game.bus.subscribe(EventTypes.DAY_ENDED, received.append)
        game.end_day()
        game.end_day()
        assert [event.data["day"] for event in received] == [1, 2]


class TestItemsAndConfig:
    def test_equip_and_consume(self, make_game) -> None:
        game = make_game()
        catalog = ItemCatalog(SequenceRNG())
        game.player.add_to_bag(catalog.find_template("merchant_ring"))
        assert game.equip("merchant_ring").success is True
        assert game.player.effective_stats()["cha"] == 5
        assert game.unequip("accessory").success is True
        missing = game.consume("berries")
        assert missing.success is False
        assert missing.error == "validation"

    def test_difficulty(self, make_game) -> None:
        game = make_game()
        game.apply_difficulty("Easy")
        assert game.config.difficulty == Difficulty.EASY
        game.start_day()
        assert game.player.max_stamina == 7

    @pytest.mark.parametrize("name", ["Custom", "Nightmare"])
    def test_bad_difficulty(self, make_game, name) -> None:
        with pytest.raises(ValidationError):
            make_game().apply_difficulty(name)

    def test_config_update_returns_rejected(self, make_game) -> None:
        game = make_game()
        assert game.update_config({"xp_multiplier": 2, "nope": 1}) == ["nope"]
        assert game.config.difficulty == Difficulty.CUSTOM
