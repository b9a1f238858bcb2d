"""EncounterCatalog: role-scoped social encounters with NPCs.

Scripted entries are gated on relationship, NPC level, player level and
NPC stat floors. A procedurally described encounter is added for grown,
well-liked NPCs. Execution is a pure projection; the caller applies rewards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from src.core.npc.models import NPC
from src.core.player import PlayerState
from src.core.rng import RandomSource

ENCOUNTER_COOLDOWN_DAYS = 5
DYNAMIC_MIN_NPC_LEVEL = 3
DYNAMIC_MIN_RELATIONSHIP = 60
DYNAMIC_STATS = ("str", "dex", "wis", "cha")


class EncounterType(str, Enum):
    QUEST = "quest"
    TRADE = "trade"
    TRAINING = "training"
    STORY = "story"
    CHALLENGE = "challenge"


@dataclass
class EncounterRequirements:
    relationship: Optional[int] = None
    npc_level: Optional[int] = None
    player_level: Optional[int] = None
    npc_stats: Dict[str, int] = field(default_factory=dict)


@dataclass
class EncounterRewards:
    xp: int = 0
    stat_bonus: Dict[str, int] = field(default_factory=dict)
    skill_bonus: Dict[str, int] = field(default_factory=dict)
    resources: Dict[str, int] = field(default_factory=dict)  # food/materials/wealth/spirit_energy
    relationship: int = 0

    def to_dict(self) -> Dict:
        return {
            "xp": self.xp,
            "stat_bonus": dict(self.stat_bonus),
            "skill_bonus": dict(self.skill_bonus),
            "resources": dict(self.resources),
            "relationship": self.relationship,
        }


@dataclass
class Encounter:
    id: str
    type: EncounterType
    title: str
    description: str
    requirements: EncounterRequirements = field(default_factory=EncounterRequirements)
    rewards: EncounterRewards = field(default_factory=EncounterRewards)
    world_effects: Dict[str, int] = field(default_factory=dict)  # prosperity/stability/tension


@dataclass
class EncounterResult:
    success: bool
    message: str
    encounter_id: str
    title: str
    rewards: EncounterRewards
    world_effects: Dict[str, int]

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "message": self.message,
            "encounter_id": self.encounter_id,
            "title": self.title,
            "rewards": self.rewards.to_dict(),
            "world_effects": dict(self.world_effects),
        }


def _build_default_encounters() -> Dict[str, List[Encounter]]:
    Req = EncounterRequirements
    Rew = EncounterRewards
    return {
        "merchant": [
            Encounter(
                "merchant_rare_trade", EncounterType.TRADE, "Rare Goods Opportunity",
                "The merchant has acquired rare materials from distant lands.",
                Req(relationship=50),
                Rew(xp=5, resources={"wealth": 50, "materials": 10}, relationship=5),
            ),
            Encounter(
                "merchant_investment", EncounterType.TRADE, "Investment Opportunity",
                "The merchant offers you a chance to invest in a trade venture.",
                Req(relationship=70, player_level=3),
                Rew(xp=10, resources={"wealth": 100}, relationship=10),
                {"prosperity": 2},
            ),
        ],
        "warrior": [
            Encounter(
                "warrior_training", EncounterType.TRAINING, "Combat Training",
                "The warrior offers to train you in combat techniques.",
                Req(relationship=40, npc_level=2),
                Rew(xp=10, stat_bonus={"str": 1}, relationship=5),
            ),
            Encounter(
                "warrior_quest", EncounterType.QUEST, "Hunting Quest",
                "The warrior needs help tracking a dangerous beast.",
                Req(relationship=60, player_level=2),
                Rew(
                    xp=20, stat_bonus={"dex": 1},
                    resources={"food": 15, "materials": 8}, relationship=10,
                ),
            ),
            Encounter(
                "warrior_sparring", EncounterType.CHALLENGE, "Sparring Challenge",
                "The warrior challenges you to a bout in front of the tribe.",
                Req(relationship=50, npc_stats={"str": 7}),
                Rew(xp=15, stat_bonus={"str": 1, "dex": 1}, skill_bonus={"hunting": 1}, relationship=5),
            ),
        ],
        "elder": [
            Encounter(
                "elder_wisdom", EncounterType.STORY, "Ancient Wisdom",
                "The elder shares knowledge of the tribe's history and secrets.",
                Req(relationship=50),
                Rew(xp=15, stat_bonus={"wis": 1}, skill_bonus={"social": 1}, relationship=8),
                {"stability": 3},
            ),
            Encounter(
                "elder_council", EncounterType.QUEST, "Council Mission",
                "The elder assigns you an important diplomatic mission.",
                Req(relationship=70, player_level=4),
                Rew(xp=30, stat_bonus={"cha": 2}, relationship=15),
                {"stability": 5, "tension": -3},
            ),
        ],
        "hunter": [
            Encounter(
                "hunter_tracking", EncounterType.TRAINING, "Tracking Lesson",
                "The hunter shows you how to read tracks in the mud.",
                Req(relationship=45),
                Rew(xp=8, skill_bonus={"hunting": 1}, resources={"food": 5}, relationship=5),
            ),
        ],
        "shaman": [
            Encounter(
                "shaman_spirit_rite", EncounterType.STORY, "Spirit Rite",
                "The shaman invites you to a rite beneath the full moon.",
                Req(relationship=55, npc_level=2),
                Rew(xp=12, stat_bonus={"luck": 1}, resources={"spirit_energy": 5}, relationship=6),
                {"stability": 2, "tension": -1},
            ),
        ],
    }


_DYNAMIC_TITLES = {
    EncounterType.QUEST: ("A Favor", "Special Mission", "Important Task"),
    EncounterType.TRAINING: ("Skill Training", "Advanced Techniques", "Master Class"),
    EncounterType.STORY: ("Tales of Old", "Secret Knowledge", "Hidden History"),
}

_DYNAMIC_DESCRIPTIONS = {
    EncounterType.QUEST: (
        "{name} needs your help with an important matter.",
        "{name} has a task that requires your skills.",
        "{name} trusts you with a special mission.",
    ),
    EncounterType.TRAINING: (
        "{name} offers to share advanced techniques.",
        "{name} wants to train you in new skills.",
        "{name} sees potential and offers guidance.",
    ),
    EncounterType.STORY: (
        "{name} shares fascinating stories from the past.",
        "{name} reveals secrets about the tribe.",
        "{name} tells you about important events.",
    ),
}


class EncounterCatalog:
    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng
        self._by_role = _build_default_encounters()

    def for_role(self, role: str) -> List[Encounter]:
        return list(self._by_role.get(role.strip().lower(), []))

    def _gates_pass(self, encounter: Encounter, npc: NPC, player: PlayerState) -> bool:
        req = encounter.requirements
        relationship = player.get_relationship(npc.id)
        if req.relationship is not None and relationship < req.relationship:
            return False
        if req.npc_level is not None and npc.level < req.npc_level:
            return False
        if req.player_level is not None and player.level < req.player_level:
            return False
        for stat, minimum in req.npc_stats.items():
            if npc.stats.get(stat, 0) < minimum:
                return False
        return True

    def get_available(
        self,
        npc: NPC,
        player: PlayerState,
        days_since_last: float,
        cooldown: int = ENCOUNTER_COOLDOWN_DAYS,
        day: int = 0,
    ) -> List[Encounter]:
        """Encounters this NPC can offer right now.

        Hard gates must pass; then either the cooldown has elapsed or a roll
        at 0.3 + relationship/200 succeeds.
        """
        relationship = player.get_relationship(npc.id)
        available: List[Encounter] = []
        for encounter in self.for_role(npc.role):
            if not self._gates_pass(encounter, npc, player):
                continue
            if days_since_last >= cooldown or self._rng.random() < 0.3 + relationship / 200:
                available.append(encounter)

        if npc.level >= DYNAMIC_MIN_NPC_LEVEL and relationship >= DYNAMIC_MIN_RELATIONSHIP:
            available.append(self.generate_dynamic(npc, player, day))
        return available

    def generate_dynamic(self, npc: NPC, player: PlayerState, day: int = 0) -> Encounter:
        encounter_type = self._rng.choice(tuple(_DYNAMIC_TITLES))
        title = self._rng.choice(_DYNAMIC_TITLES[encounter_type])
        description = self._rng.choice(_DYNAMIC_DESCRIPTIONS[encounter_type]).format(name=npc.name)
        relationship = player.get_relationship(npc.id)
        stat = self._rng.choice(DYNAMIC_STATS)
        return Encounter(
            id=f"dynamic_{npc.id}_{day}",
            type=encounter_type,
            title=title,
            description=description,
            rewards=EncounterRewards(
                xp=npc.level * 5 + relationship // 10,
                stat_bonus={stat: 1},
                relationship=relationship // 10 + 5,
            ),
        )

    @staticmethod
    def execute(encounter: Encounter, npc: NPC) -> EncounterResult:
        return EncounterResult(
            success=True,
            message=f"{encounter.title}: {encounter.description}",
            encounter_id=encounter.id,
            title=encounter.title,
            rewards=encounter.rewards,
            world_effects=dict(encounter.world_effects),
        )
