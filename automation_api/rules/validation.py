"""Validación de definiciones de regla.

Se ejecuta al crear o editar una regla. Una regla persistida ya tiene
campo, operador y acción válidos, así que la evaluación nunca falla por
ellos.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from ..errors import ValidationError
from .models import Operator, Rule, RuleAction, RuleMode, RuleStatus, TelemetryField


def _parse_enum(enum_cls, raw: str, field: str):
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(field, f"'{raw}' is not one of: {allowed}") from None


def validate_rule_definition(
    *,
    rule_id: str,
    name: str,
    condition_field: str,
    operator: str,
    condition_value: float,
    action: str,
    duration: Optional[float] = None,
    mode: str = RuleMode.MANUAL.value,
    status: str = RuleStatus.ACTIVE.value,
    created_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
) -> Rule:
    """Construye una Rule validada o lanza ValidationError.

    Raises:
        ValidationError: campo/operador/acción/modo/estado desconocidos,
            nombre vacío, umbral no finito o duración no positiva.
    """
    if not name or not name.strip():
        raise ValidationError("name", "name is required")

    field = _parse_enum(TelemetryField, condition_field, "conditionField")
    op = _parse_enum(Operator, operator, "operator")
    rule_action = _parse_enum(RuleAction, action, "action")
    rule_mode = _parse_enum(RuleMode, mode, "mode")
    rule_status = _parse_enum(RuleStatus, status, "status")

    threshold = float(condition_value)
    if not math.isfinite(threshold):
        raise ValidationError("conditionValue", "threshold must be a finite number")

    if duration is not None:
        duration = float(duration)
        if not math.isfinite(duration) or duration <= 0:
            raise ValidationError("duration", "duration must be a positive number of minutes")

    return Rule(
        id=rule_id,
        name=name.strip(),
        condition_field=field,
        operator=op,
        condition_value=threshold,
        action=rule_action.value,
        duration=duration,
        mode=rule_mode,
        status=rule_status,
        created_at=created_at,
        updated_at=updated_at,
    )
