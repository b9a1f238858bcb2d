"""Game API endpoints.

Thin adapter over SessionRegistry and SaveService. Rule rejections are
part of the returned outcome (200); transport errors map to HTTP codes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from src.api.schemas import (
    ActionRequest,
    ActionResponse,
    ChronicleResponse,
    ConfigResponse,
    ConfigUpdateRequest,
    ConsumeRequest,
    DayResponse,
    DeleteResponse,
    DifficultyRequest,
    EquipRequest,
    GameStateResponse,
    LoadResponse,
    NewGameRequest,
    NPCDetailResponse,
    NPCListResponse,
    OutcomeInfo,
    SaveInfo,
    SaveResponse,
    UnequipRequest,
)
from src.core.actions import Outcome
from src.core.errors import PersistenceError, SaveNotFoundError, ValidationError
from src.core.game_loop import GameLoopOrchestrator
from src.core.logging import get_logger
from src.db.database import get_db
from src.services.save_gateway import SaveGateway, SqlSaveGateway
from src.services.save_service import SaveService
from src.services.session_registry import SessionRegistry

logger = get_logger(__name__)

router = APIRouter(prefix="/game", tags=["game"])


def get_registry(request: Request) -> SessionRegistry:
    """SessionRegistry from app state (dependency)."""
    registry: SessionRegistry = request.app.state.session_registry
    return registry


def get_save_service(request: Request, db: Session = Depends(get_db)) -> SaveService:
    """Shared gateway when one is configured (memory backend), else SQL per request."""
    gateway: SaveGateway | None = getattr(request.app.state, "save_gateway", None)
    if gateway is None:
        gateway = SqlSaveGateway(db)
    return SaveService(gateway)


def _get_game(registry: SessionRegistry, session_id: str) -> GameLoopOrchestrator:
    game = registry.get(session_id)
    if game is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return game


def _build_outcome_info(outcome: Outcome) -> OutcomeInfo:
    return OutcomeInfo(**outcome.to_dict())


def _build_state(session_id: str, game: GameLoopOrchestrator) -> GameStateResponse:
    return GameStateResponse(session_id=session_id, **game.snapshot())


def _build_action_response(
    session_id: str, game: GameLoopOrchestrator, outcome: Outcome
) -> ActionResponse:
    return ActionResponse(
        session_id=session_id,
        day=game.day,
        outcome=_build_outcome_info(outcome),
        player=game.player.to_dict(),
        tribe=game.tribe.to_dict(),
    )


# ── sessions ─────────────────────────────────────────────────


@router.post("/new", response_model=GameStateResponse)
def new_game(
    body: NewGameRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> GameStateResponse:
    """Start a new session at day 1."""
    try:
        session_id = registry.create(body.player_name, body.tribe_name, body.difficulty)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return _build_state(session_id, registry.get(session_id))


@router.get("/saves", response_model=list[SaveInfo])
def list_saves(service: SaveService = Depends(get_save_service)) -> list[SaveInfo]:
    """Save slots, newest first."""
    try:
        saves = service.list_saves()
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return [SaveInfo(**meta.to_dict()) for meta in saves]


@router.post("/load/{handle}", response_model=LoadResponse)
def load_game(
    handle: str,
    registry: SessionRegistry = Depends(get_registry),
    service: SaveService = Depends(get_save_service),
) -> LoadResponse:
    """Restore a save into a fresh session."""
    try:
        game = service.load(handle, registry.events)
    except SaveNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except PersistenceError as e:
        logger.error(f"Load failed for {handle}: {e.message}")
        raise HTTPException(status_code=400, detail=e.message)

    session_id = registry.add(game)
    return LoadResponse(success=True, handle=handle, session_id=session_id, day=game.day)


@router.get("/{session_id}", response_model=GameStateResponse)
def get_game(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> GameStateResponse:
    return _build_state(session_id, _get_game(registry, session_id))


@router.delete("/{session_id}", response_model=DeleteResponse)
def end_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> DeleteResponse:
    if not registry.evict(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return DeleteResponse(success=True, message=f"Session {session_id} closed")


# ── turn flow ────────────────────────────────────────────────


@router.post("/{session_id}/action", response_model=ActionResponse)
def perform_action(
    session_id: str,
    body: ActionRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ActionResponse:
    """
    Perform one action

    Rejections (resting, no stamina, unknown action or NPC, pending
    encounter) come back as success=false with an error kind.
    """
    game = _get_game(registry, session_id)
    outcome = game.execute_action(body.action_type, body.npc_id, body.combat_decision)
    return _build_action_response(session_id, game, outcome)


@router.post("/{session_id}/end-day", response_model=DayResponse)
def end_day(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> DayResponse:
    game = _get_game(registry, session_id)
    report = game.end_day()
    return DayResponse(
        session_id=session_id,
        day=game.day,
        report=report.to_dict(),
        player=game.player.to_dict(),
        tribe=game.tribe.to_dict(),
    )


# ── bag / equipment ──────────────────────────────────────────


@router.post("/{session_id}/equip", response_model=ActionResponse)
def equip_item(
    session_id: str,
    body: EquipRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ActionResponse:
    game = _get_game(registry, session_id)
    return _build_action_response(session_id, game, game.equip(body.item_id, body.slot))


@router.post("/{session_id}/unequip", response_model=ActionResponse)
def unequip_item(
    session_id: str,
    body: UnequipRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ActionResponse:
    game = _get_game(registry, session_id)
    return _build_action_response(session_id, game, game.unequip(body.slot))


@router.post("/{session_id}/consume", response_model=ActionResponse)
def consume_item(
    session_id: str,
    body: ConsumeRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ActionResponse:
    game = _get_game(registry, session_id)
    return _build_action_response(session_id, game, game.consume(body.item_id))


# ── npcs / chronicle ─────────────────────────────────────────


@router.get("/{session_id}/npcs", response_model=NPCListResponse)
def list_npcs(
    session_id: str,
    tribe: Optional[str] = Query(None, description="Only NPCs of this tribe"),
    registry: SessionRegistry = Depends(get_registry),
) -> NPCListResponse:
    game = _get_game(registry, session_id)
    return NPCListResponse(
        session_id=session_id, npcs=[npc.to_dict() for npc in game.list_npcs(tribe)]
    )


@router.get("/{session_id}/npcs/{npc_id}", response_model=NPCDetailResponse)
def get_npc(
    session_id: str,
    npc_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> NPCDetailResponse:
    """NPC record plus how they would react to the player right now."""
    game = _get_game(registry, session_id)
    try:
        details = game.npc_details(npc_id)
    except ValidationError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return NPCDetailResponse(session_id=session_id, **details)


@router.get("/{session_id}/chronicle", response_model=ChronicleResponse)
def get_chronicle(
    session_id: str,
    limit: int = Query(0, ge=0, description="Most recent entries only; 0 = all"),
    registry: SessionRegistry = Depends(get_registry),
) -> ChronicleResponse:
    _get_game(registry, session_id)
    chronicle = registry.chronicle(session_id)
    entries = chronicle.entries(limit) if chronicle is not None else []
    return ChronicleResponse(session_id=session_id, entries=[e.to_dict() for e in entries])


# ── config ───────────────────────────────────────────────────


@router.patch("/{session_id}/config", response_model=ConfigResponse)
def update_config(
    session_id: str,
    body: ConfigUpdateRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfigResponse:
    """Merge knob values. Unknown keys and non-numeric values are listed in rejected."""
    game = _get_game(registry, session_id)
    rejected = game.update_config(body.settings)
    return ConfigResponse(session_id=session_id, config=game.config.snapshot(), rejected=rejected)


@router.post("/{session_id}/difficulty", response_model=ConfigResponse)
def apply_difficulty(
    session_id: str,
    body: DifficultyRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> ConfigResponse:
    game = _get_game(registry, session_id)
    try:
        game.apply_difficulty(body.difficulty)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return ConfigResponse(session_id=session_id, config=game.config.snapshot())


# ── persistence ──────────────────────────────────────────────


@router.post("/{session_id}/save", response_model=SaveResponse)
def save_game(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
    service: SaveService = Depends(get_save_service),
) -> SaveResponse:
    game = _get_game(registry, session_id)
    try:
        handle = service.save(game)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return SaveResponse(success=True, handle=handle)
