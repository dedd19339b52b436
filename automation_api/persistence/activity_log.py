"""Activity log - registro de cambios hechos por operadores y por el sistema.

Registra:
- Quién: user (email/API key owner o "system")
- Qué: entity + entity_id + description
- Cómo: action_type (Create, Update, Delete, System)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.orm import Session

from common.db import from_db_timestamp, to_db_timestamp, utcnow

logger = logging.getLogger(__name__)


class ActivityType(Enum):
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    SYSTEM = "System"


@dataclass(frozen=True)
class ActivityEntry:
    id: str
    action_type: ActivityType
    entity: str
    entity_id: Optional[str]
    description: Optional[str]
    user: str
    timestamp: datetime


class ActivityLogger:
    """Escribe entradas en activity_logs.

    Un fallo de escritura no interrumpe la operación principal: se
    registra en el logger estructurado (fallback) y se continúa.
    """

    def __init__(self, db: Session):
        self._db = db
        self._fallback_logger = logging.getLogger("activity")

    def log(
        self,
        action_type: ActivityType,
        entity: str,
        entity_id: Optional[str],
        description: str,
        user: str = "system",
    ) -> None:
        try:
            self._db.execute(
                text(
                    """
                    INSERT INTO activity_logs (
                        id, action_type, entity, entity_id, description, user_name, timestamp
                    )
                    VALUES (:id, :action_type, :entity, :entity_id, :description, :user, :ts)
                    """
                ),
                {
                    "id": uuid4().hex,
                    "action_type": action_type.value,
                    "entity": entity,
                    "entity_id": entity_id,
                    "description": description,
                    "user": user,
                    "ts": to_db_timestamp(utcnow()),
                },
            )
        except Exception:
            logger.exception("[ACTIVITY] Logging failed entity=%s id=%s", entity, entity_id)
            self._fallback_logger.info(
                "action=%s entity=%s id=%s user=%s description=%s",
                action_type.value, entity, entity_id, user, description,
            )

    def list_recent(self, limit: int = 100) -> List[ActivityEntry]:
        rows = self._db.execute(
            text(
                """
                SELECT id, action_type, entity, entity_id, description, user_name, timestamp
                FROM activity_logs
                ORDER BY timestamp DESC
                LIMIT :limit
                """
            ),
            {"limit": int(limit)},
        ).fetchall()
        return [
            ActivityEntry(
                id=row.id,
                action_type=ActivityType(row.action_type),
                entity=row.entity,
                entity_id=row.entity_id,
                description=row.description,
                user=row.user_name,
                timestamp=from_db_timestamp(row.timestamp),
            )
            for row in rows
        ]
