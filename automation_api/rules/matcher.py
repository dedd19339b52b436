"""Selección de reglas aplicables a una muestra de telemetría."""

from __future__ import annotations

import logging
from typing import Iterable, List

from .evaluator import evaluate
from .models import MatchedRule, Rule, TelemetrySample

logger = logging.getLogger(__name__)


def match(sample: TelemetrySample, rules: Iterable[Rule]) -> List[MatchedRule]:
    """Devuelve las reglas habilitadas cuya condición se cumple.

    Regla: solo participan reglas Active + Auto. Si la muestra no trae el
    campo de la regla, la regla se omite (no es error). El orden de
    entrada se preserva; no hay modelo de prioridad.
    """
    matched: List[MatchedRule] = []

    for rule in rules:
        if not rule.is_enabled:
            continue

        value = sample.value_of(rule.condition_field)
        if value is None:
            logger.debug(
                "[RULES] skip rule=%s field=%s missing in sample",
                rule.id, rule.condition_field.value,
            )
            continue

        if evaluate(value, rule.operator, rule.condition_value):
            matched.append(MatchedRule(rule=rule, observed_value=float(value)))

    return matched
