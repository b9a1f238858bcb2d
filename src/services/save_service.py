"""Save Service: session ⇄ persistence gateway.

Service → Core and Service → gateway only. Every storage failure leaves
here as a PersistenceError carrying a readable cause.
"""

from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.core.errors import PersistenceError, SaveNotFoundError
from src.core.events import GameEvent
from src.core.game_loop import GameLoopOrchestrator
from src.core.logging import get_logger
from src.core.rng import RandomSource
from src.core.save_data import SaveData
from src.services.save_gateway import SaveGateway, SaveMetadata

logger = get_logger(__name__)


class SaveService:
    def __init__(self, gateway: SaveGateway) -> None:
        self._gateway = gateway

    @property
    def gateway(self) -> SaveGateway:
        return self._gateway

    def save(self, game: GameLoopOrchestrator) -> str:
        payload = game.to_save_data().to_payload()
        try:
            handle = self._gateway.save(payload)
        except SQLAlchemyError as e:
            logger.error(f"Save failed ({self._gateway.name}): {e}")
            raise PersistenceError(f"Could not write save: {e}") from e
        logger.info(
            f"Saved {game.player.name} (day {game.day}) as {handle} via {self._gateway.name}"
        )
        return handle

    def load_data(self, handle: str) -> SaveData:
        try:
            payload = self._gateway.load(handle)
        except KeyError as e:
            raise SaveNotFoundError(f"Save not found: {handle}") from e
        except SQLAlchemyError as e:
            logger.error(f"Load failed ({self._gateway.name}): {e}")
            raise PersistenceError(f"Could not read save {handle}: {e}") from e
        return SaveData.from_payload(payload)

    def load(
        self,
        handle: str,
        events: Iterable[GameEvent] = (),
        rng: Optional[RandomSource] = None,
    ) -> GameLoopOrchestrator:
        save = self.load_data(handle)
        game = GameLoopOrchestrator.from_save_data(save, events, rng=rng)
        logger.info(f"Loaded save {handle} (day {save.day})")
        return game

    def list_saves(self) -> List[SaveMetadata]:
        try:
            return self._gateway.list_saves()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not list saves: {e}") from e

    def delete(self, handle: str) -> None:
        try:
            deleted = self._gateway.delete(handle)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not delete save {handle}: {e}") from e
        if not deleted:
            raise SaveNotFoundError(f"Save not found: {handle}")
        logger.info(f"Deleted save {handle}")
