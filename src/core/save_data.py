"""Session state ⇄ plain dict payload, with structural validation.

The payload is what the persistence gateway stores. Business rules are not
checked here, only that the pieces needed to rebuild a session are present
and well-formed.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.core.combat import WildAnimal
from src.core.errors import ConfigRangeError, PersistenceError
from src.core.game_config import GameConfig
from src.core.npc.models import NPC
from src.core.player import PlayerState
from src.core.tribe import TribeState
from src.core.world import WorldState

SAVE_FORMAT_VERSION = 1
REQUIRED_KEYS = ("player", "tribe", "npcs", "day")


@dataclass
class SaveData:
    player: PlayerState
    tribe: TribeState
    npcs: List[NPC]
    day: int
    world: WorldState = field(default_factory=WorldState)
    config: GameConfig = field(default_factory=GameConfig)
    milestones_triggered: List[str] = field(default_factory=list)
    pending_animal: Optional[WildAnimal] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "version": SAVE_FORMAT_VERSION,
            "player": self.player.to_dict(),
            "tribe": self.tribe.to_dict(),
            "npcs": [npc.to_dict() for npc in self.npcs],
            "day": self.day,
            "world": self.world.to_dict(),
            "npc_encounters": dict(self.world.npc_encounters),
            "config": self.config.to_dict(),
            "milestones_triggered": sorted(self.milestones_triggered),
            "pending_encounter": self.pending_animal.to_dict() if self.pending_animal else None,
        }

    @classmethod
    def from_payload(cls, data: Any) -> "SaveData":
        """Rebuild from a payload. Raises PersistenceError when it is malformed."""
        validate_payload(data)
        try:
            pending = data.get("pending_encounter")
            return cls(
                player=PlayerState.from_dict(data["player"]),
                tribe=TribeState.from_dict(data["tribe"]),
                npcs=[NPC.from_dict(row) for row in data["npcs"]],
                day=int(data["day"]),
                world=WorldState.from_dict(
                    data.get("world") or {}, data.get("npc_encounters") or {}
                ),
                config=GameConfig.from_dict(data.get("config") or {}),
                milestones_triggered=list(data.get("milestones_triggered", [])),
                pending_animal=WildAnimal.from_dict(pending) if pending else None,
            )
        except (KeyError, ValueError, TypeError, AttributeError, ConfigRangeError) as e:
            raise PersistenceError(f"Save payload is malformed: {e}") from e


def validate_payload(data: Any) -> None:
    if not isinstance(data, dict):
        raise PersistenceError("Save payload must be an object")
    missing = [key for key in REQUIRED_KEYS if data.get(key) is None]
    if missing:
        raise PersistenceError(f"Save payload is missing: {', '.join(missing)}")
    if not isinstance(data["npcs"], list):
        raise PersistenceError("Save payload field 'npcs' must be a list")
    version = data.get("version", SAVE_FORMAT_VERSION)
    if version != SAVE_FORMAT_VERSION:
        raise PersistenceError(f"Unsupported save format version: {version}")


def dump_payload(payload: Dict[str, Any]) -> str:
    """Canonical JSON (sorted keys) so identical state gives identical text."""
    return json.dumps(payload, sort_keys=True, ensure_ascii=False)


def load_payload(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Save data is not valid JSON: {e}") from e
    validate_payload(data)
    return data
