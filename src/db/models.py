"""SQLAlchemy declarative base for all ORM models."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class GameSaveModel(Base):
    """ORM model for saved sessions.

    ``payload`` holds the canonical JSON text of the session; the other
    columns are metadata for listing saves without decoding it.
    """

    __tablename__ = "game_saves"

    save_id: Mapped[str] = mapped_column(String, primary_key=True)
    character_name: Mapped[str] = mapped_column(String, nullable=False)
    tribe_name: Mapped[str] = mapped_column(String, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
