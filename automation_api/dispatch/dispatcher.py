"""Action Dispatcher: traduce reglas que hicieron match en comandos y alertas.

Reglas de idempotencia:
1. Un comando de riego solo se aplica si cambia is_irrigation_on.
2. Como máximo UNA transición de riego por ciclo y dispositivo.
3. Una misma regla (por id) se despacha una sola vez por ciclo.
4. Las alertas siempre se agregan, nunca se deduplican entre ciclos.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Set

from ..devices.state_machine import DeviceStateMachine
from ..devices.state_models import DeviceState
from ..errors import UnknownAction
from ..rules.models import MatchedRule, RuleAction
from .alert_rules import AlertRules
from .models import DispatchResult, IrrigationCommand, ScheduledStop, SkippedAction

logger = logging.getLogger(__name__)


_IRRIGATION_ACTIONS = {
    RuleAction.START_IRRIGATION: True,
    RuleAction.STOP_IRRIGATION: False,
}


class ActionDispatcher:
    """Aplica las acciones de las reglas sobre el estado de un dispositivo."""

    def __init__(self, state_machine: DeviceStateMachine) -> None:
        self._state_machine = state_machine

    def dispatch(
        self,
        matched_rules: Iterable[MatchedRule],
        state: DeviceState,
        *,
        now: datetime,
    ) -> DispatchResult:
        """Despacha las reglas en orden sobre `state`.

        No persiste nada: el llamador guarda `result.state` solo si
        `result.state_changed` es True.
        """
        result = DispatchResult(state=state)
        seen: Set[str] = set()

        for matched in matched_rules:
            rule = matched.rule
            if rule.id in seen:
                result.skipped.append(SkippedAction(rule.id, rule.action, "duplicate_rule"))
                continue
            seen.add(rule.id)

            action = rule.parsed_action
            try:
                if action == RuleAction.SEND_ALERT:
                    result.alerts.append(AlertRules.build_alert(matched, state.device_id, now))
                elif action in _IRRIGATION_ACTIONS:
                    self._dispatch_irrigation(matched, _IRRIGATION_ACTIONS[action], result, now)
                else:
                    raise UnknownAction(rule.action)
            except UnknownAction as e:
                logger.warning("[DISPATCH] no-op rule=%s err=%s", rule.id, e)
                result.skipped.append(SkippedAction(rule.id, rule.action, "unknown_action"))

        logger.info(
            "[DISPATCH] device=%s matched=%d changed=%s commands=%d alerts=%d stops=%d skipped=%d",
            state.device_id,
            len(seen),
            result.state_changed,
            len(result.commands),
            len(result.alerts),
            len(result.scheduled_stops),
            len(result.skipped),
        )
        return result

    def _dispatch_irrigation(
        self,
        matched: MatchedRule,
        turn_on: bool,
        result: DispatchResult,
        now: datetime,
    ) -> None:
        rule = matched.rule
        current = result.state

        if not current.auto_mode:
            result.skipped.append(SkippedAction(rule.id, rule.action, "manual_mode"))
            return

        if result.state_changed:
            result.skipped.append(SkippedAction(rule.id, rule.action, "transition_already_applied"))
            return

        if current.is_irrigation_on == turn_on:
            result.skipped.append(
                SkippedAction(rule.id, rule.action, "already_on" if turn_on else "already_off")
            )
            return

        result.state = self._state_machine.apply_automatic(current, turn_on, now)
        result.state_changed = True
        result.commands.append(
            IrrigationCommand(
                device_id=current.device_id,
                turn_on=turn_on,
                rule_id=rule.id,
                rule_name=rule.name,
            )
        )

        if turn_on and rule.duration:
            result.scheduled_stops.append(
                ScheduledStop(
                    device_id=current.device_id,
                    rule_id=rule.id,
                    due_at=now + timedelta(minutes=rule.duration),
                    created_at=now,
                )
            )
