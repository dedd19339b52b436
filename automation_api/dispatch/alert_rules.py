"""Reglas de negocio para alertas generadas por reglas de automatización."""

from __future__ import annotations

from datetime import datetime

from ..rules.models import MatchedRule
from .models import AlertRecord, AlertSeverity


# Cortes sobre la desviación relativa |valor - umbral| / max(|umbral|, 1)
_SEVERITY_CUTS = (
    (0.10, AlertSeverity.LOW),
    (0.25, AlertSeverity.MEDIUM),
    (0.50, AlertSeverity.HIGH),
)


class AlertRules:
    """Reglas para construir AlertRecord a partir de una regla que hizo match."""

    @staticmethod
    def get_severity(observed_value: float, threshold: float) -> AlertSeverity:
        """Severidad según cuánto se aleja el valor observado del umbral."""
        deviation = abs(observed_value - threshold) / max(abs(threshold), 1.0)
        if deviation != deviation:  # NaN
            return AlertSeverity.CRITICAL
        for cut, severity in _SEVERITY_CUTS:
            if deviation < cut:
                return severity
        return AlertSeverity.CRITICAL

    @staticmethod
    def get_type(severity: AlertSeverity) -> str:
        return "Critical" if severity == AlertSeverity.CRITICAL else "Warning"

    @staticmethod
    def build_message(matched: MatchedRule) -> str:
        rule = matched.rule
        return (
            f"{rule.name}: {rule.condition_field.value} {rule.operator.value} "
            f"{rule.condition_value:g} (observed {matched.observed_value:g})"
        )

    @classmethod
    def build_alert(cls, matched: MatchedRule, device_id: str, now: datetime) -> AlertRecord:
        severity = cls.get_severity(matched.observed_value, matched.rule.condition_value)
        return AlertRecord(
            type=cls.get_type(severity),
            message=cls.build_message(matched),
            severity=severity,
            threshold=matched.rule.condition_value,
            timestamp=now,
            device_id=device_id,
            rule_id=matched.rule.id,
        )
