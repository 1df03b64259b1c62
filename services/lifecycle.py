"""
Risk record lifecycle.

Two flows share one status type:

* self-service: open, in progress, resolved, closed; the owner moves freely
  between them.
* evaluation: Submitted -> In Review -> Mitigated | Escalated. Leaving
  review requires a complete assessment, and a finished evaluation can be
  reopened (back to In Review) to revise it.

Every write of likelihood, impact or category goes through this module so
score and level always match their inputs.
"""
import enum
import logging
import random
import time
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from models.risk import RiskRecord
from services import scoring
from services.errors import NotFoundError, PreconditionError, RiskRegisterError, ValidationError

logger = logging.getLogger(__name__)

_UNSET = object()


class RiskFlow(str, enum.Enum):
    SELF_SERVICE = "self_service"
    EVALUATION = "evaluation"


class RiskStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    SUBMITTED = "Submitted"
    IN_REVIEW = "In Review"
    MITIGATED = "Mitigated"
    ESCALATED = "Escalated"


class Severity(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


FLOW_STATUSES: Dict[RiskFlow, FrozenSet[RiskStatus]] = {
    RiskFlow.SELF_SERVICE: frozenset(
        {RiskStatus.OPEN, RiskStatus.IN_PROGRESS, RiskStatus.RESOLVED, RiskStatus.CLOSED}
    ),
    RiskFlow.EVALUATION: frozenset(
        {RiskStatus.SUBMITTED, RiskStatus.IN_REVIEW, RiskStatus.MITIGATED, RiskStatus.ESCALATED}
    ),
}

INITIAL_STATUS = {
    RiskFlow.SELF_SERVICE: RiskStatus.OPEN,
    RiskFlow.EVALUATION: RiskStatus.SUBMITTED,
}

EVALUATION_OUTCOMES = frozenset({RiskStatus.MITIGATED, RiskStatus.ESCALATED})

TRANSITIONS: Dict[RiskStatus, FrozenSet[RiskStatus]] = {
    **{
        s: FLOW_STATUSES[RiskFlow.SELF_SERVICE] - {s}
        for s in FLOW_STATUSES[RiskFlow.SELF_SERVICE]
    },
    RiskStatus.SUBMITTED: frozenset({RiskStatus.IN_REVIEW}),
    RiskStatus.IN_REVIEW: EVALUATION_OUTCOMES,
    RiskStatus.MITIGATED: frozenset({RiskStatus.IN_REVIEW}),
    RiskStatus.ESCALATED: frozenset({RiskStatus.IN_REVIEW}),
}


def can_transition(current: RiskStatus, target: RiskStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def _parse(enum_cls, value, field):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field, f"{value!r} is not one of: {allowed}")


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(field, "is required")
    return str(value).strip()


def generate_code() -> str:
    return f"RISK-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"


def _commit(db: Session, record: RiskRecord):
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise PreconditionError(f"risk {record.code} was modified concurrently, reload and retry")
    db.refresh(record)
    return record


def refresh_score(record: RiskRecord):
    if record.likelihood is not None and record.impact is not None:
        result = scoring.score(record.category, record.likelihood, record.impact)
        record.score = result.score
        record.level = result.level.value
    else:
        record.score = None
        record.level = None


def get_risk(db: Session, code: str, for_update: bool = False) -> RiskRecord:
    query = db.query(RiskRecord).filter(RiskRecord.code == code)
    if for_update:
        query = query.with_for_update()
    record = query.first()
    if not record:
        raise NotFoundError("risk", code)
    return record


def list_risks(db: Session, status=None, category=None, flow=None, level=None):
    query = db.query(RiskRecord)
    if status:
        query = query.filter(RiskRecord.status == _parse(RiskStatus, status, "status").value)
    if category:
        query = query.filter(RiskRecord.category == scoring.parse_category(category).value)
    if flow:
        query = query.filter(RiskRecord.flow == _parse(RiskFlow, flow, "flow").value)
    if level:
        query = query.filter(RiskRecord.level == _parse(scoring.RiskLevel, level, "level").value)
    return query.order_by(RiskRecord.created_at.desc(), RiskRecord.id.desc()).all()


def create_risk(
    db: Session,
    *,
    title: str,
    description: str,
    category,
    flow=RiskFlow.EVALUATION,
    reporter_id: Optional[int] = None,
    likelihood=None,
    impact=None,
    treatment_plan: Optional[str] = None,
    review_date=None,
    owner_id: Optional[int] = None,
) -> RiskRecord:
    flow = _parse(RiskFlow, flow, "flow")
    code = generate_code()
    while db.query(RiskRecord).filter(RiskRecord.code == code).first():
        code = generate_code()
    record = RiskRecord(
        code=code,
        title=_require_text(title, "title"),
        description=_require_text(description, "description"),
        category=scoring.parse_category(category).value,
        flow=flow.value,
        status=INITIAL_STATUS[flow].value,
        treatment_plan=treatment_plan,
        review_date=review_date,
        owner_id=owner_id,
        reported_by_id=reporter_id,
    )
    if likelihood is not None or impact is not None:
        if flow is RiskFlow.EVALUATION:
            field = "likelihood" if likelihood is not None else "impact"
            raise ValidationError(field, "is assessed by the evaluator, not at submission")
        _apply_inputs(record, likelihood=likelihood, impact=impact)

    db.add(record)
    _commit(db, record)
    logger.info("Risk %s created (%s, %s) by %s", record.code, record.flow, record.category, reporter_id)
    return record


def _ensure_editable(record: RiskRecord):
    # evaluation-flow risks are scored by the evaluator, only while in review
    if record.flow == RiskFlow.EVALUATION.value and record.status != RiskStatus.IN_REVIEW.value:
        raise PreconditionError(
            f"risk {record.code} is {record.status}; open it for review before changing the assessment"
        )


def _apply_inputs(record: RiskRecord, category=_UNSET, likelihood=_UNSET, impact=_UNSET):
    if category is not _UNSET:
        new_category = scoring.parse_category(category).value
        if new_category != record.category:
            # the old impact value belongs to the old category's scale
            record.category = new_category
            record.impact = None
    if likelihood is not _UNSET:
        record.likelihood = None if likelihood is None else scoring.check_likelihood(likelihood)
    if impact is not _UNSET:
        record.impact = None if impact is None else scoring.check_impact(record.category, impact)
    refresh_score(record)


def update_assessment_inputs(
    db: Session, record: RiskRecord, category=_UNSET, likelihood=_UNSET, impact=_UNSET
) -> RiskRecord:
    """Change category, likelihood or impact and recompute (or clear) the score."""
    _ensure_editable(record)
    try:
        _apply_inputs(record, category=category, likelihood=likelihood, impact=impact)
    except RiskRegisterError:
        db.rollback()
        raise
    return _commit(db, record)


DETAIL_FIELDS = ("title", "description", "treatment_plan", "review_date", "owner_id")


def update_details(db: Session, record: RiskRecord, **fields) -> RiskRecord:
    """Edit descriptive fields. The code and the assessment are not editable here."""
    extra = sorted(set(fields) - set(DETAIL_FIELDS))
    if extra:
        raise ValidationError(extra[0], "cannot be changed here")
    for name in ("title", "description"):
        if name in fields:
            fields[name] = _require_text(fields[name], name)

    for name, value in fields.items():
        setattr(record, name, value)
    return _commit(db, record)


def set_status(db: Session, record: RiskRecord, status, actor_id: Optional[int] = None) -> RiskRecord:
    """Move a self-service record to another self-service status."""
    target = _parse(RiskStatus, status, "status")
    if RiskFlow(record.flow) is not RiskFlow.SELF_SERVICE:
        raise ValidationError("status", "evaluation records change status through review and evaluation")
    current = RiskStatus(record.status)
    if target is current:
        return record
    if not can_transition(current, target):
        raise ValidationError("status", f"cannot move from {current.value!r} to {target.value!r}")

    record.status = target.value
    _commit(db, record)
    logger.info("Risk %s: %s -> %s by %s", record.code, current.value, target.value, actor_id)
    return record


def open_for_review(db: Session, code: str, actor_id: int) -> RiskRecord:
    record = get_risk(db, code, for_update=True)
    current = RiskStatus(record.status)
    if RiskFlow(record.flow) is not RiskFlow.EVALUATION or not can_transition(current, RiskStatus.IN_REVIEW):
        db.rollback()
        raise PreconditionError(f"risk {code} is {current.value} and cannot be opened for review")

    record.status = RiskStatus.IN_REVIEW.value
    record.reviewed_by_id = actor_id
    record.reviewed_at = datetime.utcnow()
    _commit(db, record)
    logger.info("Risk %s: %s -> %s by %s", code, current.value, record.status, actor_id)
    return record


def evaluate(
    db: Session,
    code: str,
    *,
    actor_id: int,
    outcome,
    category,
    likelihood,
    impact,
    severity,
    assessment_notes: Optional[str],
    treatment_plan: Optional[str] = None,
) -> RiskRecord:
    """Record an evaluation and move the risk to Mitigated or Escalated.

    The row is locked, every input is validated and the score computed
    before anything is written, then status and assessment are committed
    together. A record still in Submitted is implicitly opened for review
    by the same actor.
    """
    record = get_risk(db, code, for_update=True)
    try:
        current = RiskStatus(record.status)
        if RiskFlow(record.flow) is not RiskFlow.EVALUATION or current not in (
            RiskStatus.SUBMITTED, RiskStatus.IN_REVIEW,
        ):
            raise PreconditionError(f"risk {code} is {current.value} and cannot be evaluated")

        target = _parse(RiskStatus, outcome, "outcome")
        if target not in EVALUATION_OUTCOMES:
            raise ValidationError("outcome", "must be Mitigated or Escalated")
        if category is None:
            raise ValidationError("category", "is required")
        if likelihood is None:
            raise ValidationError("likelihood", "is required")
        if impact is None:
            raise ValidationError("impact", "is required")
        if severity is None:
            raise ValidationError("severity", "is required")
        severity = _parse(Severity, severity, "severity")
        notes = _require_text(assessment_notes, "assessment_notes")
        result = scoring.score(category, likelihood, impact)
    except RiskRegisterError:
        db.rollback()
        raise

    now = datetime.utcnow()
    if current is RiskStatus.SUBMITTED:
        record.reviewed_by_id = actor_id
        record.reviewed_at = now
    record.category = scoring.parse_category(category).value
    record.likelihood = scoring.check_likelihood(likelihood)
    record.impact = scoring.check_impact(category, impact)
    record.score = result.score
    record.level = result.level.value
    record.severity = severity.value
    record.assessment_notes = notes
    if treatment_plan is not None:
        record.treatment_plan = treatment_plan
    record.evaluated_by_id = actor_id
    record.evaluated_at = now
    record.status = target.value
    _commit(db, record)

    logger.info(
        "Risk %s evaluated by %s: %s -> %s, score %s (%s)",
        code, actor_id, current.value, record.status, record.score, record.level,
    )
    return record


def delete_risk(db: Session, record: RiskRecord):
    if RiskFlow(record.flow) is RiskFlow.EVALUATION and record.evaluated_at is not None:
        raise PreconditionError(f"risk {record.code} has been evaluated and cannot be deleted")
    db.delete(record)
    db.commit()
    logger.info("Risk %s deleted", record.code)
