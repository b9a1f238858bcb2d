"""GameLoopOrchestrator: one session's state machine.

DayStart → ActionPhase (0..N actions) → DayEnd → DayStart ...

The orchestrator owns one instance of every engine component for its
session. Rejected requests come back as failed Outcomes; only persistence
problems raise.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from src.core.actions import ActionResolver, ActionType, Outcome, parse_action_type
from src.core.combat import CombatResolver, WildAnimal
from src.core.encounters import EncounterCatalog, EncounterResult
from src.core.errors import StateError, TribeSimError, ValidationError
from src.core.event_bus import BusEvent, EventBus
from src.core.event_types import EventTypes
from src.core.events import EventCatalog, GameEvent
from src.core.game_config import ConfigStore, Difficulty, GameConfig
from src.core.item.catalog import ItemCatalog
from src.core.logging import get_logger
from src.core.npc.models import NPC
from src.core.npc.registry import NPCRegistry
from src.core.player import PlayerState
from src.core.rng import RandomSource
from src.core.save_data import SaveData
from src.core.tribe import TribeState
from src.core.world import WorldState

logger = get_logger(__name__)

SOURCE = "game_loop"


class DecisionState(str, Enum):
    IDLE = "idle"
    AWAITING_DECISION = "awaiting_decision"
    RESOLVED = "resolved"


@dataclass
class ExploreDecision:
    """Explore encounter that needs a fight/flee answer before anything else."""

    state: DecisionState = DecisionState.IDLE
    animal: Optional[WildAnimal] = None

    @property
    def is_pending(self) -> bool:
        return self.state == DecisionState.AWAITING_DECISION

    def await_decision(self, animal: WildAnimal) -> None:
        self.state = DecisionState.AWAITING_DECISION
        self.animal = animal

    def resolve(self) -> WildAnimal:
        if self.animal is None:
            raise StateError("There is no encounter awaiting a decision.")
        animal = self.animal
        self.state = DecisionState.RESOLVED
        self.animal = None
        return animal

    def settle(self) -> None:
        if self.state == DecisionState.RESOLVED:
            self.state = DecisionState.IDLE


@dataclass
class DayReport:
    day: int
    growth_messages: List[str] = field(default_factory=list)
    rest_message: Optional[str] = None
    season: Optional[str] = None
    season_changed: bool = False
    world_event: Optional[str] = None
    daily_event: Optional[Dict[str, Any]] = None
    milestone: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "growth_messages": list(self.growth_messages),
            "rest_message": self.rest_message,
            "season": self.season,
            "season_changed": self.season_changed,
            "world_event": self.world_event,
            "daily_event": self.daily_event,
            "milestone": self.milestone,
        }


class GameLoopOrchestrator:
    def __init__(
        self,
        npcs: Iterable[NPC] = (),
        events: Iterable[GameEvent] = (),
        *,
        player: Optional[PlayerState] = None,
        tribe: Optional[TribeState] = None,
        world: Optional[WorldState] = None,
        config: Optional[GameConfig] = None,
        day: int = 1,
        rng: Optional[RandomSource] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.rng = rng or RandomSource()
        self.bus = bus or EventBus()
        self.config = ConfigStore(config)
        self.player = player or PlayerState()
        self.tribe = tribe or TribeState()
        self.world = world or WorldState()
        self.day = day
        # seed rosters are shared between sessions; every session grows its own copy
        self.npcs = NPCRegistry([NPC.from_dict(npc.to_dict()) for npc in npcs], self.rng)
        self.events = EventCatalog(events, self.rng)
        self.encounters = EncounterCatalog(self.rng)
        self.items = ItemCatalog(self.rng)
        self.combat = CombatResolver(self.rng)
        self.resolver = ActionResolver(self.rng, self.config, self.items, self.combat)
        self.decision = ExploreDecision()

    def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        self.bus.emit(BusEvent(event_type=event_type, data=data, source=SOURCE))

    # ── day start ────────────────────────────────────────────

    def start_day(self) -> DayReport:
        """Refill stamina, roll the daily event and check tribe milestones."""
        report = DayReport(day=self.day, season=self.world.season.value)

        if self.player.is_resting:
            self.player.stamina = 0
        else:
            bonus, penalty = self.tribe.stamina_modifiers(self.config.get_stamina_regen_bonus())
            self.player.restore_stamina(self.config.get_base_stamina(), bonus, penalty)

        daily = self.events.check_daily_event()
        if daily is not None:
            self.events.apply_effects(daily, self.tribe)
            report.daily_event = daily.to_dict()
            logger.info(f"Day {self.day} daily event: {daily.id}")

        milestone = self.events.check_tribe_milestone(self.tribe)
        if milestone is not None:
            self.events.apply_effects(milestone, self.tribe)
            report.milestone = milestone.to_dict()
            logger.info(f"Tribe milestone reached: {milestone.id}")
            self._emit(EventTypes.MILESTONE_REACHED, {"event_id": milestone.id, "day": self.day})

        return report

    # ── action phase ─────────────────────────────────────────

    def execute_action(
        self,
        action_type: str,
        npc_id: Optional[str] = None,
        combat_decision: Optional[str] = None,
    ) -> Outcome:
        try:
            return self._execute_action(action_type, npc_id, combat_decision)
        except TribeSimError as e:
            logger.warning(f"Action rejected ({e.kind}): {e.message}")
            return Outcome.rejected(e)
        finally:
            self.bus.reset_chain()

    def _execute_action(
        self, action_type: str, npc_id: Optional[str], combat_decision: Optional[str]
    ) -> Outcome:
        self.decision.settle()

        if self.decision.is_pending:
            if action_type != ActionType.EXPLORE.value or not combat_decision:
                raise StateError(
                    f"A {self.decision.animal.name} blocks your path. "
                    "Decide to fight or flee first."
                )
            return self._resolve_decision(combat_decision)

        if combat_decision:
            raise ValidationError("There is no encounter awaiting a decision.")

        action = parse_action_type(action_type)
        npc = None
        if npc_id is not None:
            npc = self.npcs.get(npc_id)
            if npc is None:
                raise ValidationError(f"No one named '{npc_id}' lives here.")

        action_event = self.events.check_action_event(action.value)
        outcome = self.resolver.resolve(action.value, self.player, self.tribe, npc_id)
        if outcome.error:
            return outcome

        if action_event is not None:
            self.events.apply_effects(action_event, self.tribe)
            outcome.event = action_event.to_dict()

        if outcome.pending_animal is not None:
            self.decision.await_decision(outcome.pending_animal)
        elif action == ActionType.VISIT and npc is not None:
            self._after_visit(outcome, npc)

        self._emit(
            EventTypes.ACTION_RESOLVED,
            {
                "action": action.value,
                "success": outcome.success,
                "partial": outcome.partial,
                "day": self.day,
            },
        )
        if outcome.leveled_up:
            self._emit(EventTypes.PLAYER_LEVELED_UP, {"level": self.player.level, "day": self.day})
        return outcome

    def _resolve_decision(self, combat_decision: str) -> Outcome:
        animal = self.decision.animal
        outcome = self.resolver.resolve_decision(combat_decision, animal, self.player, self.tribe)
        self.decision.resolve()
        self._emit(
            EventTypes.COMBAT_RESOLVED,
            {
                "animal": animal.name,
                "decision": combat_decision,
                "victory": outcome.success,
                "day": self.day,
            },
        )
        if outcome.leveled_up:
            self._emit(EventTypes.PLAYER_LEVELED_UP, {"level": self.player.level, "day": self.day})
        return outcome

    def _after_visit(self, outcome: Outcome, npc: NPC) -> None:
        """Visit side rolls: mirror the relationship change, encounter, NPC event."""
        delta = (outcome.effects or {}).get("relationship", {}).get(npc.id, 0)
        if delta:
            self.npcs.update_relationship(npc.id, delta)

        if not self.npcs.get_flag(npc.id, "met"):
            self.npcs.set_flag(npc.id, "met", True)
            outcome.message += f"\nIt is your first time sitting down with {npc.name}."

        if self.rng.random() < self.config.get_encounter_chance() / 100:
            available = self.encounters.get_available(
                npc,
                self.player,
                self.world.days_since_encounter(npc.id, self.day),
                self.config.get_encounter_cooldown(),
                self.day,
            )
            if available:
                encounter = self.rng.choice(available)
                result = self.encounters.execute(encounter, npc)
                outcome.encounter = self._apply_encounter(result, npc, outcome)

        npc_event = self.events.check_npc_event(npc.id, self.player.get_relationship(npc.id))
        if npc_event is not None:
            self.events.apply_effects(npc_event, self.tribe)
            outcome.npc_event = npc_event.to_dict()

    def _apply_encounter(self, result: EncounterResult, npc: NPC, outcome: Outcome) -> Dict[str, Any]:
        rewards = result.rewards
        credited = Outcome(True, False, result.message)
        self.resolver.apply_rewards(
            credited, {"xp": rewards.xp, **rewards.resources}, self.player, self.tribe
        )
        for stat, amount in rewards.stat_bonus.items():
            self.player.improve_stat(stat, amount)
        for skill, amount in rewards.skill_bonus.items():
            self.player.improve_skill(skill, amount)
        if rewards.relationship:
            applied = self.player.update_relationship(
                npc.id, rewards.relationship, self.config.get_relationship_gain_multiplier()
            )
            self.npcs.update_relationship(npc.id, applied)
        self.world.apply_effects(result.world_effects)
        self.world.record_encounter(npc.id, self.day)
        npc.encountered = True

        outcome.message += f"\n{credited.message}"
        outcome.leveled_up = outcome.leveled_up or credited.leveled_up
        logger.info(f"Encounter with {npc.name}: {result.encounter_id}")

        data = result.to_dict()
        data["applied"] = credited.rewards or {}
        return data

    # ── day end ──────────────────────────────────────────────

    def end_day(self) -> DayReport:
        try:
            return self._end_day()
        finally:
            self.bus.reset_chain()

    def _end_day(self) -> DayReport:
        self.day += 1
        self.events.reset_daily_events()

        advance = self.world.advance_day(
            self.day,
            self.rng,
            self.config.get_season_length(),
            self.config.get_world_event_chance(),
            self.config.get_world_event_interval(),
        )
        if advance.major_event:
            self._emit(EventTypes.WORLD_EVENT, {"day": self.day, "text": advance.major_event})

        decayed = self.player.decay_relationships(self.config.get_relationship_decay_rate())
        for npc_id, delta in decayed.items():
            self.npcs.update_relationship(npc_id, delta)

        growth = self.npcs.growth_pass(
            self.day,
            dict(self.player.relationships),
            self.config.get_npc_xp_multiplier(),
            self.config.get_npc_level_up_xp_multiplier(),
            self.config.get_npc_growth_rate(),
        )
        self._emit(EventTypes.NPC_GROWTH_PROCESSED, {"day": self.day, "messages": list(growth)})

        rest_message = None
        if self.player.is_resting:
            if self.player.rest_tick():
                rest_message = "You have fully recovered and are ready to act again."
            else:
                days = self.player.rest_days_remaining
                rest_message = (
                    f"You rest and recover. {days} more day{'s' if days > 1 else ''} of rest needed."
                )

        self._emit(EventTypes.DAY_ENDED, {"day": self.day - 1})
        logger.info(f"Day {self.day - 1} ended")

        report = self.start_day()
        report.growth_messages = growth
        report.rest_message = rest_message
        report.season = advance.season.value
        report.season_changed = advance.season_changed
        report.world_event = advance.major_event
        return report

    # ── bag / equipment ──────────────────────────────────────

    def _item_request(self, operation, *args) -> Outcome:
        try:
            message = operation(*args)
        except TribeSimError as e:
            logger.warning(f"Item request rejected ({e.kind}): {e.message}")
            return Outcome.rejected(e)
        return Outcome(success=True, partial=False, message=message)

    def equip(self, item_id: str, slot: Optional[str] = None) -> Outcome:
        return self._item_request(self.player.equip, item_id, slot)

    def unequip(self, slot: str) -> Outcome:
        return self._item_request(self.player.unequip, slot)

    def consume(self, item_id: str) -> Outcome:
        return self._item_request(self.player.consume, item_id)

    # ── npcs ─────────────────────────────────────────────────

    def list_npcs(self, tribe: Optional[str] = None) -> List[NPC]:
        return self.npcs.by_tribe(tribe) if tribe else self.npcs.all()

    def npc_details(self, npc_id: str) -> Dict[str, Any]:
        """NPC record plus how it would greet the player right now (one roll)."""
        npc = self.npcs.get(npc_id)
        if npc is None:
            raise ValidationError(f"No one named '{npc_id}' lives here.")
        relationship = self.player.get_relationship(npc_id)
        reaction = self.npcs.calculate_reaction(
            npc_id, self.player.effective_stats()["cha"], relationship
        )
        return {
            "npc": npc.to_dict(),
            "relationship": relationship,
            "reaction": {"score": reaction["score"], "level": reaction["level"].value},
        }

    # ── config ───────────────────────────────────────────────

    def update_config(self, updates: Mapping[str, Any]) -> List[str]:
        return self.config.update(updates)

    def apply_difficulty(self, name: str) -> None:
        try:
            difficulty = Difficulty(name)
        except ValueError:
            raise ValidationError(f"Unknown difficulty: {name}")
        if difficulty == Difficulty.CUSTOM:
            raise ValidationError("Custom is not a preset; update individual settings instead")
        self.config.apply_preset(difficulty)

    # ── snapshots / persistence ──────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        world = self.world.to_dict()
        world["npc_encounters"] = dict(self.world.npc_encounters)
        return {
            "day": self.day,
            "player": self.player.to_dict(),
            "tribe": self.tribe.to_dict(),
            "world": world,
            "npcs": [npc.to_dict() for npc in self.npcs.all()],
            "config": self.config.snapshot(),
            "decision_state": self.decision.state.value,
            "pending_encounter": self.decision.animal.to_dict() if self.decision.animal else None,
        }

    def to_save_data(self) -> SaveData:
        return SaveData(
            player=self.player,
            tribe=self.tribe,
            npcs=self.npcs.all(),
            day=self.day,
            world=self.world,
            config=self.config.config,
            milestones_triggered=self.events.triggered_milestones,
            pending_animal=self.decision.animal if self.decision.is_pending else None,
        )

    @classmethod
    def from_save_data(
        cls,
        save: SaveData,
        events: Iterable[GameEvent] = (),
        rng: Optional[RandomSource] = None,
        bus: Optional[EventBus] = None,
    ) -> "GameLoopOrchestrator":
        game = cls(
            save.npcs,
            events,
            player=save.player,
            tribe=save.tribe,
            world=save.world,
            config=save.config,
            day=save.day,
            rng=rng,
            bus=bus,
        )
        game.events.restore_milestones(save.milestones_triggered)
        if save.pending_animal is not None:
            game.decision.await_decision(save.pending_animal)
        return game
