"""NPCRegistry: roster lookup, XP/level growth and reactions."""

import json
import math
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from src.core.item.models import STAT_KEYS
from src.core.logging import get_logger
from src.core.npc.models import (
    GROWTH_PATH_STATS,
    NPC,
    ReactionLevel,
    clamp_relationship,
)
from src.core.rng import RandomSource

logger = get_logger(__name__)

# ── growth constants ─────────────────────────────────────────

NPC_XP_PER_LEVEL = 15
NPC_STAT_POINTS = 2
GROWTH_PATH_BIAS = 0.7  # share of points spent on path stats
TIME_GROWTH_INTERVAL = 5  # days
TIME_GROWTH_XP = 2
BASE_RANDOM_GROWTH_CHANCE = 0.10  # at npc_growth_rate 50

# (min relationship, xp) checked top-down
RELATIONSHIP_TIERS = ((80, 3), (60, 2), (40, 1))


def load_npcs_from_json(path: Union[str, Path]) -> List[NPC]:
    """Read a seed roster. Malformed rows are skipped with a warning."""
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)

    npcs: List[NPC] = []
    for row in rows:
        try:
            npcs.append(NPC.from_dict(row))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed NPC row {row!r}: {e}")
    logger.info(f"Loaded {len(npcs)} NPCs from {path}")
    return npcs


class NPCRegistry:
    def __init__(self, npcs: Iterable[NPC], rng: RandomSource) -> None:
        self._npcs: Dict[str, NPC] = {npc.id: npc for npc in npcs}
        self._rng = rng

    # ── lookup ───────────────────────────────────────────────

    def get(self, npc_id: str) -> Optional[NPC]:
        return self._npcs.get(npc_id)

    def __contains__(self, npc_id: str) -> bool:
        return npc_id in self._npcs

    def all(self) -> List[NPC]:
        return list(self._npcs.values())

    def by_tribe(self, tribe: str) -> List[NPC]:
        return [npc for npc in self._npcs.values() if npc.tribe == tribe]

    def add(self, npc: NPC) -> None:
        self._npcs[npc.id] = npc

    # ── growth ───────────────────────────────────────────────

    @staticmethod
    def xp_threshold(level: int, level_up_multiplier: float = 1.0) -> int:
        """XP needed to leave ``level``.

        Levels 1 and 2 share the first band (15 at ×1.0); after that each
        level adds another 15.
        """
        return math.floor(max(1, level - 1) * NPC_XP_PER_LEVEL * level_up_multiplier)

    def add_xp(self, npc_id: str, amount: int, level_up_multiplier: float = 1.0) -> bool:
        """Accumulate XP. Returns True if the NPC leveled up.

        On level-up xp resets to 0 and NPC_STAT_POINTS points are spent:
        each point goes to a growth-path stat 70% of the time, otherwise to
        any stat uniformly.
        """
        npc = self._npcs.get(npc_id)
        if npc is None or amount <= 0:
            return False

        npc.xp += amount
        if npc.xp < self.xp_threshold(npc.level, level_up_multiplier):
            return False

        npc.level += 1
        npc.xp = 0
        weighted = GROWTH_PATH_STATS[npc.growth_path]
        for _ in range(NPC_STAT_POINTS):
            if self._rng.random() < GROWTH_PATH_BIAS:
                stat = self._rng.choice(weighted)
            else:
                stat = self._rng.choice(STAT_KEYS)
            npc.stats[stat] = max(1, npc.stats[stat] + 1)
        logger.info(f"NPC {npc.name} reached level {npc.level}")
        return True

    def growth_pass(
        self,
        day: int,
        relationship_bonus: Dict[str, int],
        xp_multiplier: float = 1.0,
        level_up_multiplier: float = 1.0,
        growth_rate: float = 50,
    ) -> List[str]:
        """Daily growth for every NPC. Returns one message per level-up.

        Sources per NPC: +2 on every 5th day, relationship tier, a flat
        random +1 (10% at growth_rate 50), and floor(bonus/10) from the
        supplied relationship map. The sum is scaled by xp_multiplier.
        """
        random_chance = BASE_RANDOM_GROWTH_CHANCE * growth_rate / 50
        messages: List[str] = []
        for npc in self._npcs.values():
            xp = 0
            if day % TIME_GROWTH_INTERVAL == 0:
                xp += TIME_GROWTH_XP
            for threshold, tier_xp in RELATIONSHIP_TIERS:
                if npc.relationship >= threshold:
                    xp += tier_xp
                    break
            if self._rng.random() < random_chance:
                xp += 1
            xp += relationship_bonus.get(npc.id, 0) // 10

            xp = math.floor(xp * xp_multiplier)
            if xp > 0 and self.add_xp(npc.id, xp, level_up_multiplier):
                messages.append(f"{npc.name} has grown to level {npc.level}!")
        return messages

    # ── relationship / reaction / flags ──────────────────────

    def update_relationship(self, npc_id: str, change: int) -> None:
        npc = self._npcs.get(npc_id)
        if npc is not None:
            npc.relationship = clamp_relationship(npc.relationship + change)

    def calculate_reaction(self, npc_id: str, player_cha: int, player_relationship: int) -> Dict:
        """score = cha×2 + relationship + U(-10, 10)

        <20 Hostile, <50 Neutral, <80 Friendly, else Ally.
        """
        if npc_id not in self._npcs:
            return {"score": 0, "level": ReactionLevel.NEUTRAL}
        score = player_cha * 2 + player_relationship + self._rng.uniform(-10, 10)
        if score < 20:
            level = ReactionLevel.HOSTILE
        elif score < 50:
            level = ReactionLevel.NEUTRAL
        elif score < 80:
            level = ReactionLevel.FRIENDLY
        else:
            level = ReactionLevel.ALLY
        return {"score": score, "level": level}

    def set_flag(self, npc_id: str, flag: str, value: bool) -> None:
        npc = self._npcs.get(npc_id)
        if npc is not None:
            npc.flags[flag] = value

    def get_flag(self, npc_id: str, flag: str) -> bool:
        npc = self._npcs.get(npc_id)
        return bool(npc and npc.flags.get(flag, False))
