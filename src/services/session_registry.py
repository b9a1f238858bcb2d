"""Session registry: explicit lifecycle for live game sessions.

Owned by the application (app.state), never module-level state. Capacity
is bounded; creating a session past MAX_SESSIONS evicts the oldest one.
"""

import uuid
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional, Union

from src.core.chronicle import Chronicle
from src.core.event_bus import EventBus
from src.core.events import GameEvent, load_events_from_json
from src.core.game_config import Difficulty
from src.core.game_loop import GameLoopOrchestrator
from src.core.logging import get_logger
from src.core.npc.models import NPC
from src.core.npc.registry import load_npcs_from_json
from src.core.player import PlayerState
from src.core.rng import RandomSource
from src.core.tribe import TribeState

logger = get_logger(__name__)


class SessionRegistry:
    def __init__(
        self,
        npcs: Optional[List[NPC]] = None,
        events: Optional[List[GameEvent]] = None,
        max_sessions: int = 100,
        default_difficulty: str = Difficulty.NORMAL.value,
    ) -> None:
        self._sessions: "OrderedDict[str, GameLoopOrchestrator]" = OrderedDict()
        self._chronicles: Dict[str, Chronicle] = {}
        self._npcs = list(npcs or [])
        self._events = list(events or [])
        self._max_sessions = max(1, max_sessions)
        self._default_difficulty = default_difficulty

    @classmethod
    def from_data_dir(
        cls, data_dir: Union[str, Path], max_sessions: int = 100, default_difficulty: str = "Normal"
    ) -> "SessionRegistry":
        base = Path(data_dir)
        return cls(
            npcs=load_npcs_from_json(base / "npcs.json"),
            events=load_events_from_json(base / "events.json"),
            max_sessions=max_sessions,
            default_difficulty=default_difficulty,
        )

    @property
    def events(self) -> List[GameEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    # ── lifecycle ────────────────────────────────────────────

    def create(
        self,
        player_name: Optional[str] = None,
        tribe_name: Optional[str] = None,
        difficulty: Optional[str] = None,
        rng: Optional[RandomSource] = None,
    ) -> str:
        """Start a new session at day 1 and return its id."""
        player = PlayerState()
        tribe = TribeState()
        if player_name:
            player.name = player_name
        if tribe_name:
            player.tribe = tribe_name
            tribe.name = tribe_name

        game = GameLoopOrchestrator(
            self._npcs, self._events, player=player, tribe=tribe, rng=rng, bus=EventBus()
        )
        preset = difficulty or self._default_difficulty
        if preset != Difficulty.NORMAL.value:
            game.apply_difficulty(preset)

        session_id = self.add(game)
        game.start_day()
        return session_id

    def add(self, game: GameLoopOrchestrator) -> str:
        """Register an already built session (e.g. a loaded save).

        Each session gets a Chronicle listening on its bus.
        """
        session_id = uuid.uuid4().hex
        chronicle = Chronicle()
        chronicle.attach(game.bus)
        self._sessions[session_id] = game
        self._chronicles[session_id] = chronicle
        logger.info(f"Session created: {session_id} ({game.player.name})")
        self._evict_overflow()
        return session_id

    def get(self, session_id: str) -> Optional[GameLoopOrchestrator]:
        return self._sessions.get(session_id)

    def chronicle(self, session_id: str) -> Optional[Chronicle]:
        return self._chronicles.get(session_id)

    def evict(self, session_id: str) -> bool:
        game = self._sessions.pop(session_id, None)
        if game is None:
            return False
        self._chronicles.pop(session_id, None)
        game.bus.clear()
        logger.info(f"Session evicted: {session_id}")
        return True

    def _evict_overflow(self) -> None:
        while len(self._sessions) > self._max_sessions:
            oldest = next(iter(self._sessions))
            logger.info(f"Session capacity {self._max_sessions} reached")
            self.evict(oldest)

    def session_ids(self) -> List[str]:
        return list(self._sessions)
