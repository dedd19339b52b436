from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .devices.state_models import DeviceState
from .dispatch.models import AlertRecord, IrrigationCommand, ScheduledStop, SkippedAction
from .persistence.activity_log import ActivityEntry
from .pipelines.automation_cycle import CycleOutcome
from .rules.models import Rule, TelemetrySample


class _WireModel(BaseModel):
    # Nombres camelCase en el wire, snake_case en Python.
    model_config = ConfigDict(populate_by_name=True)


class TelemetryIn(_WireModel):
    device_id: Optional[str] = Field(default=None, alias="deviceId", min_length=1)
    soil_moisture: Optional[float] = Field(default=None, alias="soilMoisture")
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    light: Optional[float] = None
    water_level: Optional[float] = Field(default=None, alias="waterLevel")
    timestamp: Optional[datetime] = None


class TelemetryOut(_WireModel):
    device_id: str = Field(alias="deviceId")
    soil_moisture: Optional[float] = Field(default=None, alias="soilMoisture")
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    light: Optional[float] = None
    water_level: Optional[float] = Field(default=None, alias="waterLevel")
    timestamp: datetime

    @classmethod
    def from_sample(cls, sample: TelemetrySample) -> "TelemetryOut":
        return cls(
            device_id=sample.device_id,
            soil_moisture=sample.soil_moisture,
            temperature=sample.temperature,
            humidity=sample.humidity,
            light=sample.light,
            water_level=sample.water_level,
            timestamp=sample.timestamp,
        )


class RuleIn(_WireModel):
    # Validación semántica (enums, duración) en rules/validation.py
    name: str
    condition_field: str = Field(alias="conditionField")
    operator: str
    condition_value: float = Field(alias="conditionValue")
    action: str
    duration: Optional[float] = None
    mode: str = "Manual"
    status: str = "Active"


class RuleOut(_WireModel):
    id: str
    name: str
    condition_field: str = Field(alias="conditionField")
    operator: str
    condition_value: float = Field(alias="conditionValue")
    action: str
    duration: Optional[float] = None
    mode: str
    status: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_rule(cls, rule: Rule) -> "RuleOut":
        return cls(
            id=rule.id,
            name=rule.name,
            condition_field=rule.condition_field.value,
            operator=rule.operator.value,
            condition_value=rule.condition_value,
            action=rule.action,
            duration=rule.duration,
            mode=rule.mode.value,
            status=rule.status.value,
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )


class RuleDeleted(BaseModel):
    message: str
    id: str


class DeviceControlIn(_WireModel):
    action: Optional[Literal["ON", "OFF"]] = None
    auto_mode: Optional[bool] = Field(default=None, alias="autoMode")
    device_id: Optional[str] = Field(default=None, alias="deviceId", min_length=1)


class DeviceStatusOut(_WireModel):
    device_id: str = Field(alias="deviceId")
    is_irrigation_on: bool = Field(alias="isIrrigationOn")
    auto_mode: bool = Field(alias="autoMode")
    state: str
    total_water_usage: float = Field(alias="totalWaterUsage")
    last_run_duration: float = Field(alias="lastRunDuration")
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")

    @classmethod
    def from_state(cls, state: DeviceState) -> "DeviceStatusOut":
        return cls(
            device_id=state.device_id,
            is_irrigation_on=state.is_irrigation_on,
            auto_mode=state.auto_mode,
            state=state.operational_state.value,
            total_water_usage=state.total_water_usage,
            last_run_duration=state.last_run_duration,
            last_updated=state.last_updated,
        )


class AlertOut(_WireModel):
    id: str
    type: str
    message: str
    severity: str
    threshold: Optional[float] = None
    timestamp: datetime
    viewed: bool
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    rule_id: Optional[str] = Field(default=None, alias="ruleId")

    @classmethod
    def from_alert(cls, alert: AlertRecord) -> "AlertOut":
        return cls(
            id=alert.id,
            type=alert.type,
            message=alert.message,
            severity=alert.severity.value,
            threshold=alert.threshold,
            timestamp=alert.timestamp,
            viewed=alert.viewed,
            device_id=alert.device_id,
            rule_id=alert.rule_id,
        )


class ActivityLogOut(_WireModel):
    id: str
    action_type: str = Field(alias="actionType")
    entity: str
    entity_id: Optional[str] = Field(default=None, alias="entityId")
    description: Optional[str] = None
    user: str
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: ActivityEntry) -> "ActivityLogOut":
        return cls(
            id=entry.id,
            action_type=entry.action_type.value,
            entity=entry.entity,
            entity_id=entry.entity_id,
            description=entry.description,
            user=entry.user,
            timestamp=entry.timestamp,
        )


class CommandOut(_WireModel):
    rule_id: str = Field(alias="ruleId")
    rule_name: str = Field(alias="ruleName")
    action: Literal["ON", "OFF"]

    @classmethod
    def from_command(cls, command: IrrigationCommand) -> "CommandOut":
        return cls(
            rule_id=command.rule_id,
            rule_name=command.rule_name,
            action="ON" if command.turn_on else "OFF",
        )


class ScheduledStopOut(_WireModel):
    id: str
    rule_id: Optional[str] = Field(default=None, alias="ruleId")
    due_at: datetime = Field(alias="dueAt")

    @classmethod
    def from_stop(cls, stop: ScheduledStop) -> "ScheduledStopOut":
        return cls(id=stop.id, rule_id=stop.rule_id, due_at=stop.due_at)


class SkippedOut(_WireModel):
    rule_id: str = Field(alias="ruleId")
    action: str
    reason: str

    @classmethod
    def from_skipped(cls, skipped: SkippedAction) -> "SkippedOut":
        return cls(rule_id=skipped.rule_id, action=skipped.action, reason=skipped.reason)


class IngestResult(_WireModel):
    sample_id: str = Field(alias="sampleId")
    matched_rules: List[str] = Field(default_factory=list, alias="matchedRules")
    state_changed: bool = Field(default=False, alias="stateChanged")
    device: DeviceStatusOut
    commands: List[CommandOut] = Field(default_factory=list)
    alerts: List[AlertOut] = Field(default_factory=list)
    scheduled_stops: List[ScheduledStopOut] = Field(default_factory=list, alias="scheduledStops")
    skipped: List[SkippedOut] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: CycleOutcome) -> "IngestResult":
        result = outcome.dispatch
        return cls(
            sample_id=outcome.sample_id,
            matched_rules=outcome.matched_rule_ids,
            state_changed=bool(result and result.state_changed),
            device=DeviceStatusOut.from_state(outcome.state),
            commands=[CommandOut.from_command(c) for c in result.commands] if result else [],
            alerts=[AlertOut.from_alert(a) for a in result.alerts] if result else [],
            scheduled_stops=[ScheduledStopOut.from_stop(s) for s in result.scheduled_stops] if result else [],
            skipped=[SkippedOut.from_skipped(s) for s in result.skipped] if result else [],
        )
