"""ActionResolver: turns an action request into an Outcome plus state mutation.

Roll order per resolved action (what a scripted RandomSource must supply):
explore encounter roll (explore only) → success roll → branch extras
(visit relationship, explore amounts) → loot rolls → level-up rolls →
skill improvement roll.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from src.core.combat import CombatResolver, WildAnimal, flee_damage
from src.core.errors import StateError, TribeSimError, ValidationError
from src.core.game_config import ConfigStore
from src.core.item.catalog import ItemCatalog
from src.core.logging import get_logger
from src.core.player import PlayerState
from src.core.rng import RandomSource
from src.core.tribe import RESOURCE_KEYS, TribeState

logger = get_logger(__name__)


class ActionType(str, Enum):
    FARM = "farm"
    GATHER = "gather"
    TRADE = "trade"
    VISIT = "visit"
    HUNT = "hunt"
    EXPLORE = "explore"


class CombatDecision(str, Enum):
    FIGHT = "fight"
    FLEE = "flee"


# ── action tables ────────────────────────────────────────────

STAMINA_COST: Dict[ActionType, int] = {
    ActionType.FARM: 1,
    ActionType.GATHER: 1,
    ActionType.TRADE: 1,
    ActionType.VISIT: 1,
    ActionType.HUNT: 2,
    ActionType.EXPLORE: 2,
}

BASE_CHANCE: Dict[ActionType, int] = {
    ActionType.FARM: 70,
    ActionType.GATHER: 80,
    ActionType.TRADE: 65,
    ActionType.VISIT: 100,
    ActionType.HUNT: 60,
    ActionType.EXPLORE: 50,
}

RELATED_STAT: Dict[ActionType, str] = {
    ActionType.FARM: "wis",
    ActionType.GATHER: "dex",
    ActionType.TRADE: "cha",
    ActionType.VISIT: "cha",
    ActionType.HUNT: "str",
    ActionType.EXPLORE: "luck",
}

RELATED_SKILL: Dict[ActionType, str] = {
    ActionType.FARM: "farming",
    ActionType.GATHER: "gathering",
    ActionType.TRADE: "trading",
    ActionType.VISIT: "social",
    ActionType.HUNT: "hunting",
    ActionType.EXPLORE: "gathering",
}

PARTIAL_MARGIN = 12
MIN_CHANCE = 5
MAX_CHANCE = 95
EXPLORE_ENCOUNTER_CHANCE = 0.4
TRADE_LOSS = 5
VISIT_FAILURE_RELATIONSHIP = -2

SUCCESS_TABLE: Dict[ActionType, tuple] = {
    ActionType.FARM: (
        "You successfully tend to the fields. The crops look healthy and bountiful.",
        {"xp": 3, "food": 3},
    ),
    ActionType.GATHER: (
        "You find valuable herbs and materials in the wilderness.",
        {"xp": 2, "materials": 4},
    ),
    ActionType.TRADE: (
        "You make a profitable trade with a passing merchant.",
        {"xp": 2, "wealth": 15},
    ),
    ActionType.VISIT: (
        "You spend time with the tribe members, strengthening bonds.",
        {"xp": 1},
    ),
    ActionType.HUNT: (
        "You return from the hunt with fresh meat and pelts.",
        {"xp": 4, "food": 5, "materials": 2},
    ),
}

PARTIAL_TABLE: Dict[ActionType, tuple] = {
    ActionType.FARM: (
        "Your farming efforts yield modest results. The weather wasn't ideal.",
        {"xp": 1, "food": 1},
    ),
    ActionType.GATHER: (
        "You find some materials, but not as much as you hoped.",
        {"xp": 1, "materials": 2},
    ),
    ActionType.TRADE: (
        "The trade was fair, but not particularly profitable.",
        {"xp": 1, "wealth": 5},
    ),
    ActionType.VISIT: ("The conversation was pleasant but uneventful.", {"xp": 1}),
    ActionType.HUNT: (
        "You catch a small game, but the larger prey eluded you.",
        {"xp": 2, "food": 2},
    ),
    ActionType.EXPLORE: ("Your exploration reveals little of interest today.", {"xp": 2}),
}

FAILURE_MESSAGES: Dict[ActionType, str] = {
    ActionType.FARM: "A pest infestation damages your crops. You gain nothing today.",
    ActionType.GATHER: "You return empty-handed. The gathering spots were picked clean.",
    ActionType.TRADE: "The merchant drives a hard bargain. You lose wealth in a bad deal.",
    ActionType.VISIT: "You spend time alone, feeling disconnected from the tribe.",
    ActionType.HUNT: (
        "You return from the hunt empty-handed and exhausted. "
        "A close encounter with a beast left you shaken."
    ),
    ActionType.EXPLORE: "Your exploration yielded nothing. The wilds are dangerous.",
}


@dataclass
class Outcome:
    """Narrated result of one request. Rejected requests carry ``error``."""

    success: bool
    partial: bool
    message: str
    rewards: Optional[Dict[str, Any]] = None
    effects: Optional[Dict[str, Any]] = None
    event: Optional[Dict[str, Any]] = None
    npc_event: Optional[Dict[str, Any]] = None
    encounter: Optional[Dict[str, Any]] = None
    explore_encounter: Optional[Dict[str, Any]] = None
    combat_result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    leveled_up: bool = False
    pending_animal: Optional[WildAnimal] = field(default=None, repr=False)

    @classmethod
    def rejected(cls, error: TribeSimError) -> "Outcome":
        return cls(success=False, partial=False, message=error.message, error=error.kind)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "partial": self.partial,
            "message": self.message,
        }
        for key in (
            "rewards", "effects", "event", "npc_event", "encounter",
            "explore_encounter", "combat_result", "error",
        ):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.leveled_up:
            data["leveled_up"] = True
        return data


def parse_action_type(raw: str) -> ActionType:
    try:
        return ActionType(raw)
    except ValueError:
        raise ValidationError(f"Unknown action '{raw}'. Try farm, gather, trade, visit, hunt or explore.")


class ActionResolver:
    def __init__(
        self,
        rng: RandomSource,
        config: ConfigStore,
        items: ItemCatalog,
        combat: CombatResolver,
    ) -> None:
        self._rng = rng
        self._config = config
        self._items = items
        self._combat = combat

    # ── formulas ─────────────────────────────────────────────

    def success_chance(self, action: ActionType, player: PlayerState) -> float:
        """clamp(5, 95, base + stat×5 + skill×10 + luck×2 + config bonus)"""
        stats = player.effective_stats()
        chance = (
            BASE_CHANCE[action]
            + stats[RELATED_STAT[action]] * 5
            + player.skills.get(RELATED_SKILL[action], 0) * 10
            + stats["luck"] * 2
            + self._config.get_action_success_bonus()
        )
        return min(MAX_CHANCE, max(MIN_CHANCE, chance))

    def check_preconditions(self, action: ActionType, player: PlayerState) -> None:
        """Raise StateError if the player cannot act. Mutates nothing."""
        if player.is_resting:
            days = player.rest_days_remaining
            raise StateError(
                f"You are too injured to perform actions. You need to rest for "
                f"{days} more day{'s' if days > 1 else ''} to recover."
            )
        if player.stamina < STAMINA_COST[action]:
            raise StateError(
                "You are too tired to perform this action. Rest and try again tomorrow."
            )

    # ── resolution ───────────────────────────────────────────

    def resolve(
        self,
        action_type: str,
        player: PlayerState,
        tribe: TribeState,
        npc_id: Optional[str] = None,
    ) -> Outcome:
        try:
            action = parse_action_type(action_type)
            self.check_preconditions(action, player)
        except TribeSimError as e:
            logger.warning(f"Action rejected ({e.kind}): {e.message}")
            return Outcome.rejected(e)

        player.spend_stamina(STAMINA_COST[action])

        if action == ActionType.EXPLORE and self._rng.random() < EXPLORE_ENCOUNTER_CHANCE:
            animal = self._combat.generate_wild_animal(player.level)
            logger.debug(f"Explore encounter: {animal.name} L{animal.level}")
            return Outcome(
                success=True,
                partial=False,
                message=f"You encounter a {animal.name} (Level {animal.level}) in the wilds!",
                explore_encounter={"animal": animal.to_dict(), "requires_decision": True},
                pending_animal=animal,
            )

        chance = self.success_chance(action, player)
        roll = self._rng.random() * 100
        if roll <= chance:
            outcome, base_rewards = self._full_success(action, player, npc_id)
        elif roll <= chance + PARTIAL_MARGIN:
            message, rewards = PARTIAL_TABLE[action]
            outcome, base_rewards = Outcome(False, True, message), dict(rewards)
        else:
            outcome, base_rewards = self._failure(action, player, npc_id)
        logger.debug(f"{action.value}: roll={roll:.1f} chance={chance:.1f}")

        if outcome.success or outcome.partial:
            self.apply_rewards(outcome, base_rewards, player, tribe)
            self._collect_loot(outcome, action.value, player)
        elif base_rewards:
            self._apply_losses(outcome, base_rewards, player, tribe)

        if self._rng.random() < self._config.get_skill_improvement_chance() / 100:
            player.improve_skill(RELATED_SKILL[action], 1)

        tribe.recalculate_prosperity()
        return outcome

    def _full_success(self, action: ActionType, player: PlayerState, npc_id: Optional[str]):
        if action == ActionType.EXPLORE:
            rewards = {
                "xp": self._rng.randint(5, 9),
                "materials": self._rng.randint(3, 7),
                "wealth": self._rng.randint(2, 4),
            }
            return (
                Outcome(True, False, "You explored the wilds and discovered valuable resources!"),
                rewards,
            )

        message, rewards = SUCCESS_TABLE[action]
        outcome = Outcome(True, False, message)
        if action == ActionType.VISIT and npc_id:
            change = 5 + self._rng.randint(0, 4)
            applied = player.update_relationship(
                npc_id, change, self._config.get_relationship_gain_multiplier()
            )
            outcome.message = (
                f"You have a pleasant conversation with {npc_id}. Your relationship improves."
            )
            outcome.effects = {"relationship": {npc_id: applied}}
        return outcome, dict(rewards)

    def _failure(self, action: ActionType, player: PlayerState, npc_id: Optional[str]):
        outcome = Outcome(False, False, FAILURE_MESSAGES[action])
        if action == ActionType.TRADE:
            return outcome, {"wealth": -TRADE_LOSS}
        if action == ActionType.VISIT and npc_id:
            applied = player.update_relationship(npc_id, VISIT_FAILURE_RELATIONSHIP)
            outcome.message = (
                f"Your visit with {npc_id} was awkward. The relationship suffers slightly."
            )
            outcome.effects = {"relationship": {npc_id: applied}}
        return outcome, {}

    # ── reward application ───────────────────────────────────

    def apply_rewards(
        self, outcome: Outcome, base_rewards: Dict[str, int], player: PlayerState, tribe: TribeState
    ) -> None:
        """Scale and credit xp/resources to player and tribe; record applied amounts."""
        applied: Dict[str, Any] = dict(outcome.rewards or {})
        multiplier = self._config.get_action_reward_multiplier()

        resources = {}
        for key in RESOURCE_KEYS:
            amount = base_rewards.get(key, 0)
            if amount > 0:
                resources[key] = math.floor(amount * multiplier)
        if resources:
            player.update_inventory(resources)
            tribe.update_resources(resources)
            for key, amount in resources.items():
                applied[key] = applied.get(key, 0) + amount

        xp = base_rewards.get("xp", 0)
        if xp > 0:
            xp_multiplier = self._config.get_xp_multiplier()
            applied["xp"] = applied.get("xp", 0) + math.floor(xp * xp_multiplier)
            leveled = player.add_xp(
                xp,
                self._rng,
                xp_multiplier,
                self._config.get_level_up_xp_multiplier(),
                self._config.get_stat_points_per_level(),
            )
            if leveled:
                outcome.leveled_up = True
                outcome.message += (
                    f"\nYou leveled up! You are now level {player.level}."
                    f"\nYour max stamina increased to {player.max_stamina}!"
                    f"\nYour max health increased to {player.max_health}!"
                )
                logger.info(f"Player {player.name} reached level {player.level}")

        if applied:
            outcome.rewards = applied

    @staticmethod
    def _apply_losses(
        outcome: Outcome, losses: Dict[str, int], player: PlayerState, tribe: TribeState
    ) -> None:
        player.update_inventory(losses)
        tribe.update_resources(losses)
        outcome.rewards = dict(losses)

    def _collect_loot(self, outcome: Outcome, table: str, player: PlayerState) -> None:
        loot = self._items.generate_loot(table, player.level, player.effective_stats()["luck"])
        if not loot:
            return
        picked: List[Dict[str, Any]] = []
        notes: List[str] = []
        for item in loot:
            if player.add_to_bag(item):
                picked.append(item.to_dict())
                notes.append(f"{item.name}" + (f" x{item.quantity}" if item.quantity > 1 else ""))
            else:
                notes.append(f"{item.name} (could not pick up, bag is full)")
        rewards = dict(outcome.rewards or {})
        rewards["items"] = picked
        outcome.rewards = rewards
        outcome.message += f"\nLoot: {', '.join(notes)}"

    # ── explore decision ─────────────────────────────────────

    def resolve_decision(
        self, decision: str, animal: WildAnimal, player: PlayerState, tribe: TribeState
    ) -> Outcome:
        """Settle a pending explore encounter. Stamina was paid when it began."""
        try:
            choice = CombatDecision(decision)
        except ValueError:
            raise ValidationError(f"Unknown combat decision '{decision}'. Choose fight or flee.")

        if choice == CombatDecision.FLEE:
            damage = flee_damage(animal)
            knocked_out = player.take_damage(damage)
            message = f"You flee from the {animal.name}, taking {damage} damage as you escape."
            if knocked_out:
                message += " You have been knocked out and must rest for 3 days to recover."
            return Outcome(
                success=False,
                partial=False,
                message=message,
                combat_result={
                    "fled": True,
                    "damage_taken": damage,
                    "knocked_out": knocked_out,
                },
            )

        result = self._combat.resolve_combat(player, animal)
        result.knocked_out = player.take_damage(result.damage_taken)
        if result.knocked_out:
            result.message += " You have been knocked out and must rest for 3 days to recover."

        outcome = Outcome(success=result.victory, partial=False, message=result.message)
        if result.victory and not result.knocked_out:
            self.apply_rewards(outcome, result.rewards or {}, player, tribe)
            self._collect_loot(outcome, ActionType.HUNT.value, player)
            tribe.recalculate_prosperity()
        outcome.combat_result = result.to_dict()
        return outcome
