"""Módulo de reglas de automatización.

Estructura modular:
- models.py: Dataclasses y enums (Rule, TelemetrySample, Operator, ...)
- evaluator.py: Evaluador de umbrales (función pura)
- matcher.py: Selección de reglas que aplican a una muestra
- validation.py: Validación de reglas al crearlas/editarlas
"""

from .models import (
    MatchedRule,
    Operator,
    Rule,
    RuleAction,
    RuleMode,
    RuleStatus,
    TelemetryField,
    TelemetrySample,
)
from .evaluator import evaluate
from .matcher import match
from .validation import validate_rule_definition

__all__ = [
    "MatchedRule",
    "Operator",
    "Rule",
    "RuleAction",
    "RuleMode",
    "RuleStatus",
    "TelemetryField",
    "TelemetrySample",
    "evaluate",
    "match",
    "validate_rule_definition",
]
