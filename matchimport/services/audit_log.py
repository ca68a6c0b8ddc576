"""Event log of analyses, imports and template downloads, keyed by upload."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field

ANALYZE_FILE = "ANALYZE_FILE"
IMPORT_FILE = "IMPORT_FILE"
TEMPLATE_DOWNLOAD = "TEMPLATE_DOWNLOAD"
ERROR = "ERROR"

EVENT_TYPES = frozenset({ANALYZE_FILE, IMPORT_FILE, TEMPLATE_DOWNLOAD, ERROR})
LEVELS = ("info", "warning", "error")


@dataclass(frozen=True)
class AuditEvent:
    id: int
    event_type: str
    message: str
    level: str
    created_at: str
    file_name: str | None = None
    context: dict[str, object] = field(default_factory=dict, hash=False)


class AuditLogService:
    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def record(
        self,
        event_type: str,
        message: str,
        *,
        file_name: str | None = None,
        level: str = "info",
        **context: object,
    ) -> int:
        """Store one event; extra keyword arguments become its JSON context."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown audit event type: {event_type}")
        if level not in LEVELS:
            raise ValueError(f"Unknown audit level: {level}")
        with self._connection:
            cursor = self._connection.execute(
                """
                INSERT INTO audit_log (event_type, file_name, message, level, context_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event_type,
                    file_name,
                    message,
                    level,
                    json.dumps(context, ensure_ascii=False, default=str),
                ),
            )
        return int(cursor.lastrowid)

    def events(
        self,
        *,
        event_type: str | None = None,
        file_name: str | None = None,
        limit: int | None = None,
    ) -> list[AuditEvent]:
        """Newest first."""
        conditions: list[str] = []
        params: list[object] = []
        for column, value in (("event_type", event_type), ("file_name", file_name)):
            if value is not None:
                conditions.append(f"{column} = ?")
                params.append(value)

        sql = "SELECT * FROM audit_log"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY id DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        return [_to_event(row) for row in self._connection.execute(sql, params).fetchall()]


def _to_event(row: sqlite3.Row) -> AuditEvent:
    context = json.loads(row["context_json"] or "{}")
    return AuditEvent(
        id=row["id"],
        event_type=row["event_type"],
        message=row["message"],
        level=row["level"],
        created_at=row["created_at"],
        file_name=row["file_name"],
        context=context if isinstance(context, dict) else {},
    )
