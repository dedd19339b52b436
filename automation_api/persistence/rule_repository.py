"""Repositorio de reglas - operaciones de persistencia."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from common.db import from_db_timestamp, to_db_timestamp

from ..rules.models import Operator, Rule, RuleMode, RuleStatus, TelemetryField

logger = logging.getLogger(__name__)


_COLUMNS = """
    id, name, condition_field, operator, condition_value, action,
    duration, mode, status, created_at, updated_at
"""


def _row_to_rule(row) -> Optional[Rule]:
    try:
        return Rule(
            id=row.id,
            name=row.name,
            condition_field=TelemetryField(row.condition_field),
            operator=Operator(row.operator),
            condition_value=float(row.condition_value),
            action=str(row.action),
            duration=float(row.duration) if row.duration is not None else None,
            mode=RuleMode(row.mode),
            status=RuleStatus(row.status),
            created_at=from_db_timestamp(row.created_at),
            updated_at=from_db_timestamp(row.updated_at),
        )
    except ValueError:
        # Fila escrita por fuera de la API; no se puede evaluar.
        logger.warning("[RULES] ignoring malformed rule row id=%s", row.id)
        return None


class RuleRepository:
    """CRUD de reglas + fuente de reglas activas para el matcher."""

    def __init__(self, db: Session):
        self._db = db

    def list_rules(self) -> List[Rule]:
        """Todas las reglas, más recientes primero."""
        rows = self._db.execute(
            text(f"SELECT {_COLUMNS} FROM rules ORDER BY created_at DESC, id DESC")
        ).fetchall()
        return [r for r in (_row_to_rule(row) for row in rows) if r is not None]

    def list_active_rules(self) -> List[Rule]:
        """Reglas con status Active, en orden de creación.

        El orden define el desempate entre reglas del mismo ciclo.
        """
        rows = self._db.execute(
            text(f"""
                SELECT {_COLUMNS} FROM rules
                WHERE status = :status
                ORDER BY created_at ASC, id ASC
            """),
            {"status": RuleStatus.ACTIVE.value},
        ).fetchall()
        return [r for r in (_row_to_rule(row) for row in rows) if r is not None]

    def get(self, rule_id: str) -> Optional[Rule]:
        row = self._db.execute(
            text(f"SELECT {_COLUMNS} FROM rules WHERE id = :id"),
            {"id": rule_id},
        ).fetchone()
        return _row_to_rule(row) if row else None

    def create(self, rule: Rule) -> Rule:
        self._db.execute(
            text(f"""
                INSERT INTO rules ({_COLUMNS})
                VALUES (
                    :id, :name, :condition_field, :operator, :condition_value, :action,
                    :duration, :mode, :status, :created_at, :updated_at
                )
            """),
            self._params(rule),
        )
        return rule

    def update(self, rule: Rule) -> bool:
        """Reemplaza la regla. Retorna False si no existe."""
        result = self._db.execute(
            text("""
                UPDATE rules
                SET name = :name,
                    condition_field = :condition_field,
                    operator = :operator,
                    condition_value = :condition_value,
                    action = :action,
                    duration = :duration,
                    mode = :mode,
                    status = :status,
                    updated_at = :updated_at
                WHERE id = :id
            """),
            self._params(rule),
        )
        return (result.rowcount if hasattr(result, "rowcount") else 1) > 0

    def delete(self, rule_id: str) -> bool:
        result = self._db.execute(text("DELETE FROM rules WHERE id = :id"), {"id": rule_id})
        return (result.rowcount if hasattr(result, "rowcount") else 1) > 0

    @staticmethod
    def _params(rule: Rule) -> dict:
        return {
            "id": rule.id,
            "name": rule.name,
            "condition_field": rule.condition_field.value,
            "operator": rule.operator.value,
            "condition_value": rule.condition_value,
            "action": rule.action,
            "duration": rule.duration,
            "mode": rule.mode.value,
            "status": rule.status.value,
            "created_at": to_db_timestamp(rule.created_at),
            "updated_at": to_db_timestamp(rule.updated_at),
        }
