"""Message persistence on top of SQLAlchemy Core.

One row per chat message: ``id``, ``user_id``, ``role``, the message
``parts`` as JSON and ``created_at``.  Only conversation messages are
stored; the evidence gathered by the agent loop is not.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    MetaData,
    String,
    Table,
    create_engine,
    insert,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from . import config
from .exceptions import PersistenceError
from .logger import get_logger
from .schemas import UIMessage


log = get_logger(__name__)

metadata = MetaData()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


messages_table = Table(
    "messages",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, nullable=False, index=True),
    Column(
        "role",
        Enum("user", "assistant", "system", name="message_role", native_enum=False, create_constraint=True),
        nullable=False,
    ),
    Column("parts", JSON, nullable=False, default=lambda: []),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
)


def create_db_engine(url: Optional[str] = None) -> Engine:
    """Create an engine for ``url`` (defaults to ``DEEP_SEARCH_DATABASE_URL``).

    In-memory SQLite URLs share one connection so that every session
    sees the same database.
    """
    url = url or config.DATABASE_URL
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url)


class MessageStore:
    """Read and write chat messages for a user."""

    def __init__(self, engine: Optional[Engine] = None) -> None:
        self.engine = engine or create_db_engine()
        metadata.create_all(self.engine)

    def save_message(self, message: UIMessage, user_id: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(messages_table).values(
                        id=message.id,
                        user_id=user_id,
                        role=message.role,
                        parts=list(message.parts),
                    )
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save message {message.id}: {exc}") from exc
        log.debug("Saved %s message %s for %s", message.role, message.id, user_id)

    def load_messages(self, user_id: str) -> List[UIMessage]:
        """Return the user's messages, oldest first."""
        query = (
            select(messages_table.c.id, messages_table.c.role, messages_table.c.parts)
            .where(messages_table.c.user_id == user_id)
            .order_by(messages_table.c.created_at, messages_table.c.id)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load messages for {user_id}: {exc}") from exc
        return [UIMessage(id=row.id, role=row.role, parts=row.parts or []) for row in rows]
