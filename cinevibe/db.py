"""Database session management and repositories."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cinevibe.core.config import get_settings
from cinevibe.models import Base, Room, SearchHistoryItem
from cinevibe.services.errors import ConflictError


HISTORY_LIMIT = 20
ROOM_ID_LENGTH = 6
_ROOM_ALPHABET = string.ascii_uppercase + string.digits


def make_engine(url: str) -> Engine:
    """Build an engine; SQLite connections are shared across FastAPI's threadpool."""

    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, future=True, connect_args=connect_args)


engine = make_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_models(bind: Engine | None = None) -> None:
    """Create tables if they do not exist (handy for local dev)."""
    Base.metadata.create_all(bind=bind or engine)


def get_session() -> Iterator[Session]:
    """FastAPI-friendly dependency that manages commits/rollbacks."""

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def generate_room_id() -> str:
    return "".join(secrets.choice(_ROOM_ALPHABET) for _ in range(ROOM_ID_LENGTH))


class RoomRepository:
    """Create and look up watch-room codes."""

    def create(self, session: Session, room_id: str | None = None) -> Room:
        code = (room_id or generate_room_id()).upper()
        if session.get(Room, code) is not None:
            raise ConflictError("Room already exists")
        room = Room(id=code)
        session.add(room)
        session.flush()
        return room

    def get(self, session: Session, room_id: str) -> Room | None:
        return session.get(Room, room_id.strip().upper())


class SearchHistoryRepository:
    """Most-recent-first mood history, unique per mood and capped in size."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self.limit = limit

    def record(self, session: Session, mood: str, *, now: datetime | None = None) -> SearchHistoryItem:
        timestamp = now or datetime.now(timezone.utc)
        item = session.execute(
            select(SearchHistoryItem).where(SearchHistoryItem.mood == mood)
        ).scalar_one_or_none()
        if item is None:
            item = SearchHistoryItem(mood=mood, created_at=timestamp)
            session.add(item)
        else:
            item.created_at = timestamp
        session.flush()
        self._trim(session)
        return item

    def list_recent(self, session: Session, limit: int | None = None) -> list[SearchHistoryItem]:
        query = (
            select(SearchHistoryItem)
            .order_by(SearchHistoryItem.created_at.desc(), SearchHistoryItem.id.desc())
            .limit(limit or self.limit)
        )
        return list(session.execute(query).scalars())

    def clear(self, session: Session) -> None:
        session.execute(delete(SearchHistoryItem))

    def _trim(self, session: Session) -> None:
        keep = [item.id for item in self.list_recent(session, self.limit)]
        session.execute(
            delete(SearchHistoryItem).where(SearchHistoryItem.id.not_in(keep)),
            execution_options={"synchronize_session": False},
        )
