"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class NewGameRequest(BaseModel):
    """Start a new session"""

    player_name: Optional[str] = Field(None, min_length=1, max_length=50, description="Character name")
    tribe_name: Optional[str] = Field(None, min_length=1, max_length=50, description="Home tribe")
    difficulty: Optional[str] = Field(None, description="Easy, Normal or Hard")


class ActionRequest(BaseModel):
    """Perform one daily action"""

    action_type: str = Field(
        ..., description="Action type: farm, gather, trade, visit, hunt, explore"
    )
    npc_id: Optional[str] = Field(None, description="Target NPC (visit)")
    combat_decision: Optional[str] = Field(
        None, description="fight or flee, only while an encounter is pending"
    )


class EquipRequest(BaseModel):
    item_id: str = Field(..., min_length=1)
    slot: Optional[str] = Field(None, description="weapon, head, body, feet, accessory")


class UnequipRequest(BaseModel):
    slot: str = Field(..., min_length=1)


class ConsumeRequest(BaseModel):
    item_id: str = Field(..., min_length=1)


class ConfigUpdateRequest(BaseModel):
    """Partial knob update; any change tags the config Custom"""

    settings: dict[str, Any] = Field(default_factory=dict)


class DifficultyRequest(BaseModel):
    difficulty: str = Field(..., description="Easy, Normal or Hard")


# === Response Schemas ===


class OutcomeInfo(BaseModel):
    """Result of an action or item request"""

    success: bool
    partial: bool = False
    message: str
    rewards: Optional[dict[str, Any]] = None
    effects: Optional[dict[str, Any]] = None
    event: Optional[dict[str, Any]] = None
    npc_event: Optional[dict[str, Any]] = None
    encounter: Optional[dict[str, Any]] = None
    explore_encounter: Optional[dict[str, Any]] = None
    combat_result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    leveled_up: bool = False


class GameStateResponse(BaseModel):
    """Full session snapshot"""

    session_id: str
    day: int
    player: dict[str, Any]
    tribe: dict[str, Any]
    world: dict[str, Any]
    npcs: list[dict[str, Any]] = []
    config: dict[str, Any]
    decision_state: str
    pending_encounter: Optional[dict[str, Any]] = None


class ActionResponse(BaseModel):
    session_id: str
    day: int
    outcome: OutcomeInfo
    player: dict[str, Any]
    tribe: dict[str, Any]


class DayResponse(BaseModel):
    """end-day report"""

    session_id: str
    day: int
    report: dict[str, Any]
    player: dict[str, Any]
    tribe: dict[str, Any]


class ConfigResponse(BaseModel):
    session_id: str
    config: dict[str, Any]
    rejected: list[str] = []


class SaveInfo(BaseModel):
    """Save slot metadata"""

    handle: str
    character_name: str
    tribe_name: str
    level: int
    day: int
    version: int
    created_at: str


class SaveResponse(BaseModel):
    success: bool
    handle: str


class LoadResponse(BaseModel):
    success: bool
    handle: str
    session_id: str
    day: int


class DeleteResponse(BaseModel):
    success: bool
    message: str


class NPCListResponse(BaseModel):
    session_id: str
    npcs: list[dict[str, Any]]


class NPCDetailResponse(BaseModel):
    """NPC record with a fresh reaction roll"""

    session_id: str
    npc: dict[str, Any]
    relationship: int
    reaction: dict[str, Any]


class ChronicleResponse(BaseModel):
    """Journal entries, oldest first"""

    session_id: str
    entries: list[dict[str, Any]]
