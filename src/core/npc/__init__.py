"""NPC core package.

Public API:
- models: NPC, Disposition, GrowthPath, ReactionLevel, resolve_growth_path
- registry: NPCRegistry, load_npcs_from_json
"""

from src.core.npc.models import (
    NPC,
    Disposition,
    GrowthPath,
    ReactionLevel,
    default_stats_for_role,
    resolve_growth_path,
)
from src.core.npc.registry import NPCRegistry, load_npcs_from_json

__all__ = [
    "NPC",
    "Disposition",
    "GrowthPath",
    "NPCRegistry",
    "ReactionLevel",
    "default_stats_for_role",
    "load_npcs_from_json",
    "resolve_growth_path",
]
