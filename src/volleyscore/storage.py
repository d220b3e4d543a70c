"""SQLite storage layer for volleyscore.

The whole engine state (match + roster) is persisted as one JSON blob under
a storage key. Storage problems never reach the caller: loading falls back
to "no saved state" and saving reports failure through its return value.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from volleyscore.models import MatchState, RosterSystem, Snapshot, Team
from volleyscore.paths import get_default_db_path

logger = logging.getLogger(__name__)

Base = declarative_base()

STATE_KEY = "volleyscore_pro_state_v1"
SCHEMA_VERSION = 1

# Errors that mean "storage unavailable or blob unreadable"
RECOVERABLE_ERRORS = (SQLAlchemyError, OSError, ValueError, KeyError, TypeError, AttributeError)


# ============================================================================
# ORM Models
# ============================================================================


class SavedStateORM(Base):
    """Saved engine state table.

    One row per storage key; the payload is the serialized Snapshot.
    """

    __tablename__ = "saved_states"

    key = Column(String(100), primary_key=True)
    schema_version = Column(Integer, nullable=False, default=SCHEMA_VERSION)
    payload_json = Column(Text, nullable=False, default="{}")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def payload(self) -> dict:
        """Get payload from JSON."""
        return json.loads(self.payload_json)

    @payload.setter
    def payload(self, value: dict):
        """Set payload as JSON."""
        self.payload_json = json.dumps(value, ensure_ascii=False)


# ============================================================================
# Codec
# ============================================================================


def encode_snapshot(snapshot: Snapshot, undo: Sequence[Snapshot] = ()) -> dict:
    """Payload for the store: the current snapshot plus the older undo entries."""
    return {
        "schemaVersion": SCHEMA_VERSION,
        **snapshot.to_dict(),
        "undo": [entry.to_dict() for entry in undo],
    }


def decode_snapshot(data: dict) -> Snapshot:
    """Decode a saved payload.

    Also reads the flat single-state layout, where the match fields sit at
    the top level next to ``teamARoster`` / ``teamBRoster`` / ``queue``.

    Raises:
        ValueError: If the payload is not a JSON object
    """
    if not isinstance(data, dict):
        raise ValueError(f"Saved state must be an object, got {type(data).__name__}")

    if "match" in data or "roster" in data:
        return Snapshot.from_dict(data)

    roster = RosterSystem()
    if "teamARoster" in data:
        roster.court_a = Team.from_dict(data["teamARoster"])
    if "teamBRoster" in data:
        roster.court_b = Team.from_dict(data["teamBRoster"])
    roster.queue = [Team.from_dict(t) for t in data.get("queue", [])]
    return Snapshot(match=MatchState.from_dict(data), roster=roster)


def decode_undo(data: dict) -> list[Snapshot]:
    """Decode the saved undo entries, oldest first (empty for flat payloads)."""
    if not isinstance(data, dict):
        raise ValueError(f"Saved state must be an object, got {type(data).__name__}")
    return [Snapshot.from_dict(entry) for entry in data.get("undo") or []]


# ============================================================================
# Database
# ============================================================================


class DatabaseManager:
    """Manages SQLite database connection and session."""

    def __init__(self, db_path: Union[str, Path] = ".volleyscore/volleyscore.sqlite"):
        """Initialize database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Use NullPool for SQLite to avoid connection pool issues
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            poolclass=NullPool,
            connect_args={"check_same_thread": False}
        )
        self.SessionLocal = sessionmaker(bind=self.engine)

    def create_tables(self):
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self):
        """Drop all tables (use with caution!)."""
        Base.metadata.drop_all(self.engine)

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()


class StateRepository:
    """Repository for saved state rows."""

    def __init__(self, session):
        self.session = session

    def get(self, key: str) -> Optional[SavedStateORM]:
        """Get saved state by key."""
        return self.session.query(SavedStateORM).filter(
            SavedStateORM.key == key
        ).first()

    def put(self, key: str, payload: dict) -> SavedStateORM:
        """Insert or replace the payload stored under key."""
        row = self.get(key)
        if row is None:
            row = SavedStateORM(key=key)
            self.session.add(row)
        row.schema_version = payload.get("schemaVersion", SCHEMA_VERSION)
        row.payload = payload
        self.session.commit()
        return row

    def delete(self, key: str) -> bool:
        """Delete the row stored under key."""
        row = self.get(key)
        if row:
            self.session.delete(row)
            self.session.commit()
            return True
        return False


# ============================================================================
# Persistence Adapters
# ============================================================================


class StateStore(Protocol):
    """Persistence boundary used by the engine."""

    def load(self) -> Optional[Snapshot]: ...

    def load_undo(self) -> list[Snapshot]: ...

    def save(self, snapshot: Snapshot, undo: Sequence[Snapshot] = ()) -> bool: ...


class SQLiteStateStore:
    """Saves the engine state in a local SQLite database."""

    def __init__(self, db_path: Union[str, Path, None] = None, key: str = STATE_KEY):
        self.db_path = Path(db_path) if db_path else get_default_db_path()
        self.key = key
        self._db: Optional[DatabaseManager] = None

    def _database(self) -> DatabaseManager:
        if self._db is None:
            db = DatabaseManager(self.db_path)
            db.create_tables()
            self._db = db
        return self._db

    def _payload(self) -> Optional[dict]:
        with self._database().get_session() as session:
            row = StateRepository(session).get(self.key)
            return None if row is None else row.payload

    def load(self) -> Optional[Snapshot]:
        """Return the saved snapshot, or None if missing or unreadable."""
        try:
            payload = self._payload()
            return None if payload is None else decode_snapshot(payload)
        except RECOVERABLE_ERRORS as e:
            logger.warning("Failed to load saved state from %s: %s", self.db_path, e)
            return None

    def load_undo(self) -> list[Snapshot]:
        """Return the saved undo entries; empty if missing or unreadable."""
        try:
            payload = self._payload()
            return [] if payload is None else decode_undo(payload)
        except RECOVERABLE_ERRORS as e:
            logger.warning("Failed to load undo history from %s: %s", self.db_path, e)
            return []

    def save(self, snapshot: Snapshot, undo: Sequence[Snapshot] = ()) -> bool:
        """Persist snapshot; returns False (and logs) if storage failed."""
        try:
            with self._database().get_session() as session:
                StateRepository(session).put(self.key, encode_snapshot(snapshot, undo))
            return True
        except RECOVERABLE_ERRORS as e:
            logger.warning("Failed to save state to %s: %s", self.db_path, e)
            return False

    def clear(self) -> bool:
        try:
            with self._database().get_session() as session:
                return StateRepository(session).delete(self.key)
        except RECOVERABLE_ERRORS as e:
            logger.warning("Failed to clear saved state in %s: %s", self.db_path, e)
            return False


class MemoryStateStore:
    """Keeps the serialized blob in memory (tests, throwaway sessions)."""

    def __init__(self, blob: Optional[str] = None):
        self.blob = blob
        self.saves = 0

    def load(self) -> Optional[Snapshot]:
        if self.blob is None:
            return None
        try:
            return decode_snapshot(json.loads(self.blob))
        except RECOVERABLE_ERRORS as e:
            logger.warning("Failed to decode in-memory state: %s", e)
            return None

    def load_undo(self) -> list[Snapshot]:
        if self.blob is None:
            return []
        try:
            return decode_undo(json.loads(self.blob))
        except RECOVERABLE_ERRORS as e:
            logger.warning("Failed to decode in-memory undo history: %s", e)
            return []

    def save(self, snapshot: Snapshot, undo: Sequence[Snapshot] = ()) -> bool:
        self.blob = json.dumps(encode_snapshot(snapshot, undo), ensure_ascii=False)
        self.saves += 1
        return True
