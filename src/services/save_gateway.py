"""Persistence gateway: where session payloads live.

The engine only knows ``save(payload) -> handle`` / ``load(handle) -> payload``.
Backends: relational (SQLAlchemy) and in-process memory.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.config import settings
from src.core.logging import get_logger
from src.core.save_data import SAVE_FORMAT_VERSION, dump_payload, load_payload
from src.db.models import GameSaveModel

logger = get_logger(__name__)


@dataclass
class SaveMetadata:
    handle: str
    character_name: str
    tribe_name: str
    level: int
    day: int
    version: int
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handle": self.handle,
            "character_name": self.character_name,
            "tribe_name": self.tribe_name,
            "level": self.level,
            "day": self.day,
            "version": self.version,
            "created_at": self.created_at.isoformat(),
        }


def _metadata_for(handle: str, payload: Dict[str, Any], created_at: datetime) -> SaveMetadata:
    player = payload["player"]
    return SaveMetadata(
        handle=handle,
        character_name=player.get("name", ""),
        tribe_name=payload["tribe"].get("name", player.get("tribe", "")),
        level=int(player.get("level", 1)),
        day=int(payload["day"]),
        version=int(payload.get("version", SAVE_FORMAT_VERSION)),
        created_at=created_at,
    )


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SaveGateway(ABC):
    """Storage contract for session payloads.

    Implementations raise KeyError for an unknown handle and let backend
    errors propagate; SaveService translates both into PersistenceError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def save(self, payload: Dict[str, Any]) -> str:
        """Store the payload and return an opaque handle."""
        ...

    @abstractmethod
    def load(self, handle: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def list_saves(self) -> List[SaveMetadata]:
        """Metadata for every save, newest first."""
        ...

    @abstractmethod
    def delete(self, handle: str) -> bool:
        """Returns False when nothing was stored under ``handle``."""
        ...


class SqlSaveGateway(SaveGateway):
    def __init__(self, db: Session) -> None:
        self._db = db

    @property
    def name(self) -> str:
        return "sql"

    def save(self, payload: Dict[str, Any]) -> str:
        handle = str(uuid.uuid4())
        meta = _metadata_for(handle, payload, _now())
        orm = GameSaveModel(
            save_id=handle,
            character_name=meta.character_name,
            tribe_name=meta.tribe_name,
            level=meta.level,
            day=meta.day,
            version=meta.version,
            payload=dump_payload(payload),
            created_at=meta.created_at,
        )
        try:
            self._db.add(orm)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return handle

    def load(self, handle: str) -> Dict[str, Any]:
        row = self._db.query(GameSaveModel).filter(GameSaveModel.save_id == handle).first()
        if row is None:
            raise KeyError(handle)
        return load_payload(row.payload)

    def list_saves(self) -> List[SaveMetadata]:
        rows = (
            self._db.query(GameSaveModel)
            .order_by(GameSaveModel.created_at.desc())
            .all()
        )
        return [
            SaveMetadata(
                handle=row.save_id,
                character_name=row.character_name,
                tribe_name=row.tribe_name,
                level=row.level,
                day=row.day,
                version=row.version,
                created_at=row.created_at,
            )
            for row in rows
        ]

    def delete(self, handle: str) -> bool:
        row = self._db.query(GameSaveModel).filter(GameSaveModel.save_id == handle).first()
        if row is None:
            return False
        try:
            self._db.delete(row)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return True


class InMemorySaveGateway(SaveGateway):
    """Keeps canonical JSON text per handle, so loads never share objects."""

    def __init__(self) -> None:
        self._rows: Dict[str, str] = {}
        self._meta: Dict[str, SaveMetadata] = {}

    @property
    def name(self) -> str:
        return "memory"

    def save(self, payload: Dict[str, Any]) -> str:
        handle = str(uuid.uuid4())
        self._rows[handle] = dump_payload(payload)
        self._meta[handle] = _metadata_for(handle, payload, _now())
        return handle

    def load(self, handle: str) -> Dict[str, Any]:
        return load_payload(self._rows[handle])

    def list_saves(self) -> List[SaveMetadata]:
        # insertion order breaks created_at ties
        ordered = list(self._meta.values())
        ordered.reverse()
        return sorted(ordered, key=lambda m: m.created_at, reverse=True)

    def delete(self, handle: str) -> bool:
        if handle not in self._rows:
            return False
        del self._rows[handle]
        del self._meta[handle]
        return True


def get_save_gateway(
    db: Optional[Session] = None, backend: Optional[str] = None
) -> SaveGateway:
    """Build a gateway for the configured backend.

    Args:
        db: Session for the sql backend.
        backend: Optional override of SAVE_BACKEND.
    """
    name = backend or settings.SAVE_BACKEND

    if name == "memory":
        logger.debug("Using InMemorySaveGateway")
        return InMemorySaveGateway()

    if name == "sql":
        if db is None:
            raise ValueError("The sql save backend needs a database session")
        logger.debug("Using SqlSaveGateway")
        return SqlSaveGateway(db)

    logger.warning(f"Unknown save backend '{name}', falling back to memory")
    return InMemorySaveGateway()
