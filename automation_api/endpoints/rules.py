"""CRUD de reglas de automatización."""

from __future__ import annotations

import logging
from typing import List
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from common.db import get_db, utcnow

from ..auth import get_request_user, require_api_key
from ..errors import AutomationError, NotFoundError
from ..persistence.activity_log import ActivityLogger, ActivityType
from ..persistence.rule_repository import RuleRepository
from ..rules.validation import validate_rule_definition
from ..schemas import RuleDeleted, RuleIn, RuleOut

router = APIRouter(prefix="/api/rules", tags=["rules"], dependencies=[Depends(require_api_key)])
logger = logging.getLogger(__name__)


def _commit_or_rollback(db: Session, endpoint: str) -> None:
    try:
        db.commit()
    except Exception as e:
        logger.exception("DB error in %s err=%s", endpoint, type(e).__name__)
        db.rollback()
        raise HTTPException(status_code=500, detail=f"DB error: {type(e).__name__}")


@router.get("", response_model=List[RuleOut])
def list_rules(db: Session = Depends(get_db)):
    return [RuleOut.from_rule(r) for r in RuleRepository(db).list_rules()]


@router.post("", response_model=RuleOut, status_code=201)
def create_rule(payload: RuleIn, db: Session = Depends(get_db), user: str = Depends(get_request_user)):
    now = utcnow()
    rule = validate_rule_definition(
        rule_id=uuid4().hex,
        name=payload.name,
        condition_field=payload.condition_field,
        operator=payload.operator,
        condition_value=payload.condition_value,
        action=payload.action,
        duration=payload.duration,
        mode=payload.mode,
        status=payload.status,
        created_at=now,
        updated_at=now,
    )

    RuleRepository(db).create(rule)
    ActivityLogger(db).log(ActivityType.CREATE, "Rule", rule.id, f"Created rule: {rule.name}", user=user)
    _commit_or_rollback(db, "POST /api/rules")

    logger.info("[RULES] created id=%s name=%s", rule.id, rule.name)
    return RuleOut.from_rule(rule)


@router.put("/{rule_id}", response_model=RuleOut)
def update_rule(
    rule_id: str,
    payload: RuleIn,
    db: Session = Depends(get_db),
    user: str = Depends(get_request_user),
):
    repo = RuleRepository(db)
    existing = repo.get(rule_id)
    if existing is None:
        raise NotFoundError("Rule", rule_id)

    rule = validate_rule_definition(
        rule_id=rule_id,
        name=payload.name,
        condition_field=payload.condition_field,
        operator=payload.operator,
        condition_value=payload.condition_value,
        action=payload.action,
        duration=payload.duration,
        mode=payload.mode,
        status=payload.status,
        created_at=existing.created_at,
        updated_at=utcnow(),
    )

    try:
        if not repo.update(rule):
            raise NotFoundError("Rule", rule_id)
        ActivityLogger(db).log(ActivityType.UPDATE, "Rule", rule.id, f"Updated rule: {rule.name}", user=user)
    except AutomationError:
        db.rollback()
        raise
    _commit_or_rollback(db, "PUT /api/rules")

    logger.info("[RULES] updated id=%s name=%s", rule.id, rule.name)
    return RuleOut.from_rule(rule)


@router.delete("/{rule_id}", response_model=RuleDeleted)
def delete_rule(rule_id: str, db: Session = Depends(get_db), user: str = Depends(get_request_user)):
    repo = RuleRepository(db)
    existing = repo.get(rule_id)
    if existing is None or not repo.delete(rule_id):
        raise NotFoundError("Rule", rule_id)

    ActivityLogger(db).log(ActivityType.DELETE, "Rule", rule_id, f"Deleted rule: {existing.name}", user=user)
    _commit_or_rollback(db, "DELETE /api/rules")

    logger.info("[RULES] deleted id=%s", rule_id)
    return RuleDeleted(message="Rule deleted", id=rule_id)
