"""Tribe simulation core engine"""
__version__ = "0.1.0"

from src.core.actions import ActionResolver, ActionType, CombatDecision, Outcome
from src.core.combat import CombatResolver, CombatResult, WildAnimal
from src.core.encounters import Encounter, EncounterCatalog
from src.core.errors import (
    ConfigRangeError,
    PersistenceError,
    StateError,
    TribeSimError,
    ValidationError,
)
from src.core.events import Condition, EventCatalog, GameEvent
from src.core.game_config import ConfigStore, Difficulty, GameConfig
from src.core.game_loop import DecisionState, GameLoopOrchestrator
from src.core.player import PlayerState
from src.core.rng import RandomSource, SequenceRNG
from src.core.save_data import SaveData
from src.core.tribe import TribeState
from src.core.world import Season, WorldState

__all__ = [
    "ActionResolver",
    "ActionType",
    "CombatDecision",
    "Outcome",
    "CombatResolver",
    "CombatResult",
    "WildAnimal",
    "Encounter",
    "EncounterCatalog",
    "ConfigRangeError",
    "PersistenceError",
    "StateError",
    "TribeSimError",
    "ValidationError",
    "Condition",
    "EventCatalog",
    "GameEvent",
    "ConfigStore",
    "Difficulty",
    "GameConfig",
    "DecisionState",
    "GameLoopOrchestrator",
    "PlayerState",
    "RandomSource",
    "SequenceRNG",
    "SaveData",
    "TribeState",
    "Season",
    "WorldState",
]
