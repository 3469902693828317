"""SQLite storage implementation.

Holds what the chat core hands to its collaborators (tasks, records), the
roster, and observability data. The conversation log itself stays in memory.
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..conversation.log import format_message_line
from ..ids import generate_id
from ..models import (
    ArchivedRecord,
    BusMessage,
    Conversation,
    Message,
    Subtask,
    TaskDraft,
    TaskRecord,
    TaskSource,
    Team,
    Topic,
    TraceEvent,
    User,
)


def _ts(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


class IStorage(Protocol):
    """Persistent storage for collaborator data (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Tasks
    async def create_task(self, draft: TaskDraft, source: TaskSource) -> str:
        """Persist a confirmed draft and return its task id."""
        ...

    async def get_task(self, task_id: str) -> TaskRecord | None:
        """Get a stored task."""
        ...

    async def get_tasks(self, conversation_id: str) -> list[TaskRecord]:
        """Get tasks created from a conversation, oldest first."""
        ...

    # Records
    async def save_message(self, conversation: Conversation, message: Message) -> str:
        """Archive one message."""
        ...

    async def save_transcript(self, conversation: Conversation, messages: list[Message]) -> str:
        """Archive a whole conversation."""
        ...

    async def get_record(self, record_id: str) -> ArchivedRecord | None:
        """Get an archived record."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        conversation_id: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # BusMessages
    async def save_bus_message(self, message: BusMessage) -> None:
        """Save a bus message."""
        ...

    async def get_bus_messages(self, limit: int = 100) -> list[BusMessage]:
        """Get bus messages (newest first)."""
        ...

    # Users / Teams
    async def save_team(self, team: Team) -> None:
        """Save a team."""
        ...

    async def save_user(self, user: User) -> None:
        """Save a user."""
        ...

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        ...

    async def get_users(self) -> list[User]:
        """Get every user."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Tasks
    async def create_task(self, draft: TaskDraft, source: TaskSource) -> str:
        """Persist a confirmed draft and return its task id."""
        conn = self._require_conn()
        task_id = generate_id("task")

        await conn.execute(
            """
            INSERT INTO tasks (
                id, title, description, subtasks,
                source_message_id, source_conversation_id,
                source_preview_text, source_sender_name, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task_id,
                draft.title,
                draft.description,
                json.dumps([{"id": s.id, "title": s.title} for s in draft.subtasks]),
                source.source_message_id,
                source.source_conversation_id,
                source.source_preview_text,
                source.source_sender_name,
                _ts(datetime.now(timezone.utc)),
            ),
        )
        await conn.commit()
        return task_id

    @staticmethod
    def _task_from_row(row) -> TaskRecord:
        return TaskRecord(
            id=row[0],
            draft=TaskDraft(
                title=row[1],
                description=row[2],
                subtasks=tuple(Subtask(id=s["id"], title=s["title"]) for s in json.loads(row[3])),
            ),
            source=TaskSource(
                source_message_id=row[4],
                source_conversation_id=row[5],
                source_preview_text=row[6],
                source_sender_name=row[7],
            ),
            created_at=_parse_ts(row[8]),
        )

    async def get_task(self, task_id: str) -> TaskRecord | None:
        """Get a stored task."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, title, description, subtasks,
                   source_message_id, source_conversation_id,
                   source_preview_text, source_sender_name, created_at
            FROM tasks
            WHERE id = ?
            """,
            (task_id,),
        )
        row = await cursor.fetchone()

        return self._task_from_row(row) if row else None

    async def get_tasks(self, conversation_id: str) -> list[TaskRecord]:
        """Get tasks created from a conversation, oldest first."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, title, description, subtasks,
                   source_message_id, source_conversation_id,
                   source_preview_text, source_sender_name, created_at
            FROM tasks
            WHERE source_conversation_id = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (conversation_id,),
        )
        rows = await cursor.fetchall()

        return [self._task_from_row(row) for row in rows]

    # Records
    async def _save_record(
        self, conversation: Conversation, title: str, messages: list[Message]
    ) -> str:
        conn = self._require_conn()
        record_id = generate_id("record")

        await conn.execute(
            """
            INSERT INTO records (id, conversation_id, title, content, message_ids, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                record_id,
                conversation.id,
                title,
                "\n".join(format_message_line(m) for m in messages),
                json.dumps([m.id for m in messages]),
                _ts(datetime.now(timezone.utc)),
            ),
        )
        await conn.commit()
        return record_id

    async def save_message(self, conversation: Conversation, message: Message) -> str:
        """Archive one message."""
        title = f"Message from {message.sender_name} in {conversation.title}"
        return await self._save_record(conversation, title, [message])

    async def save_transcript(self, conversation: Conversation, messages: list[Message]) -> str:
        """Archive a whole conversation."""
        title = f"Transcript: {conversation.title}"
        return await self._save_record(conversation, title, messages)

    async def get_record(self, record_id: str) -> ArchivedRecord | None:
        """Get an archived record."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, conversation_id, title, content, message_ids, created_at
            FROM records
            WHERE id = ?
            """,
            (record_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return ArchivedRecord(
            id=row[0],
            conversation_id=row[1],
            title=row[2],
            content=row[3],
            message_ids=json.loads(row[4]),
            created_at=_parse_ts(row[5]),
        )

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, conversation_id, data, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                event.conversation_id,
                json.dumps(event.data),
                _ts(event.timestamp),
            ),
        )
        await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        conversation_id: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters (newest first)."""
        conn = self._require_conn()

        conditions = []
        params: list = []

        if after:
            conditions.append("timestamp > ?")
            params.append(_ts(after))
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)
        if conversation_id:
            conditions.append("conversation_id = ?")
            params.append(conversation_id)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, conversation_id, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                conversation_id=row[3],
                data=json.loads(row[4]),
                timestamp=_parse_ts(row[5]),
            )
            for row in rows
        ]

    # BusMessages
    async def save_bus_message(self, message: BusMessage) -> None:
        """Save a bus message."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO bus_messages (id, topic, payload, source, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                message.id or str(uuid.uuid4()),
                message.topic.value,
                json.dumps(message.payload),
                message.source,
                _ts(message.timestamp),
            ),
        )
        await conn.commit()

    async def get_bus_messages(self, limit: int = 100) -> list[BusMessage]:
        """Get bus messages (newest first)."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, topic, payload, source, timestamp
            FROM bus_messages
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()

        return [
            BusMessage(
                id=row[0],
                topic=Topic(row[1]),
                payload=json.loads(row[2]),
                source=row[3],
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # Users / Teams
    async def save_team(self, team: Team) -> None:
        """Save a team."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO teams (id, name)
            VALUES (?, ?)
            """,
            (team.id, team.name),
        )
        await conn.commit()

    async def save_user(self, user: User) -> None:
        """Save a user."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO users (id, team_id, name, role)
            VALUES (?, ?, ?, ?)
            """,
            (user.id, user.team_id, user.name, user.role),
        )
        await conn.commit()

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, team_id, name, role
            FROM users
            WHERE id = ?
            """,
            (user_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return User(id=row[0], team_id=row[1], name=row[2], role=row[3])

    async def get_users(self) -> list[User]:
        """Get every user, ordered by name."""
        conn = self._require_conn()

        cursor = await conn.execute("SELECT id, team_id, name, role FROM users ORDER BY name")
        rows = await cursor.fetchall()

        return [User(id=row[0], team_id=row[1], name=row[2], role=row[3]) for row in rows]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        tables = [
            "tasks",
            "records",
            "trace_events",
            "bus_messages",
            "users",
            "teams",
        ]

        for table in tables:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
