"""Persistencia del núcleo de automatización (SQLAlchemy + SQL plano)."""

from . import alert_repository, scheduled_stop_repository, telemetry_repository
from .activity_log import ActivityEntry, ActivityLogger, ActivityType
from .rule_repository import RuleRepository

__all__ = [
    "ActivityEntry",
    "ActivityLogger",
    "ActivityType",
    "RuleRepository",
    "alert_repository",
    "scheduled_stop_repository",
    "telemetry_repository",
]
