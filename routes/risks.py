from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from db import get_db
from dependencies.session import require_section
from models.schemas import (
    RiskCreateSchema, RiskUpdateSchema, RiskOut, AssessmentInputSchema, StatusSchema, EvaluationSchema,
)
from models.user import Account
from services import lifecycle, scoring
from services.role_catalog import RISK_MANAGEMENT

router = APIRouter()

risk_access = require_section(RISK_MANAGEMENT)


@router.get("/api/risk-matrix")
def risk_matrix():
    return scoring.matrix()


@router.get("/api/risks", response_model=List[RiskOut])
def list_risks(
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    flow: Optional[str] = Query(None),
    level: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    account: Account = Depends(risk_access),
):
    return lifecycle.list_risks(db, status=status, category=category, flow=flow, level=level)


@router.post("/api/risks", response_model=RiskOut, status_code=201)
def create_risk(payload: RiskCreateSchema, db: Session = Depends(get_db), account: Account = Depends(risk_access)):
    return lifecycle.create_risk(
        db,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        flow=payload.flow,
        reporter_id=account.id,
        likelihood=payload.likelihood,
        impact=payload.impact,
        treatment_plan=payload.treatment_plan,
        review_date=payload.review_date,
        owner_id=payload.owner_id if payload.owner_id is not None else account.id,
    )


@router.get("/api/risks/{code}", response_model=RiskOut)
def get_risk(code: str, db: Session = Depends(get_db), account: Account = Depends(risk_access)):
    return lifecycle.get_risk(db, code)


@router.put("/api/risks/{code}", response_model=RiskOut)
def update_risk(
    code: str, payload: RiskUpdateSchema, db: Session = Depends(get_db), account: Account = Depends(risk_access)
):
    record = lifecycle.get_risk(db, code)
    return lifecycle.update_details(db, record, **payload.model_dump(exclude_unset=True))


@router.put("/api/risks/{code}/assessment", response_model=RiskOut)
def update_assessment(
    code: str, payload: AssessmentInputSchema, db: Session = Depends(get_db), account: Account = Depends(risk_access)
):
    record = lifecycle.get_risk(db, code)
    return lifecycle.update_assessment_inputs(db, record, **payload.model_dump(exclude_unset=True))


@router.patch("/api/risks/{code}/status", response_model=RiskOut)
def change_status(
    code: str, payload: StatusSchema, db: Session = Depends(get_db), account: Account = Depends(risk_access)
):
    record = lifecycle.get_risk(db, code)
    return lifecycle.set_status(db, record, payload.status, actor_id=account.id)


@router.post("/api/risks/{code}/review", response_model=RiskOut)
def open_for_review(code: str, db: Session = Depends(get_db), account: Account = Depends(risk_access)):
    return lifecycle.open_for_review(db, code, actor_id=account.id)


@router.post("/api/risks/{code}/evaluate", response_model=RiskOut)
def evaluate(
    code: str, payload: EvaluationSchema, db: Session = Depends(get_db), account: Account = Depends(risk_access)
):
    return lifecycle.evaluate(db, code, actor_id=account.id, **payload.model_dump())


@router.delete("/api/risks/{code}")
def delete_risk(code: str, db: Session = Depends(get_db), account: Account = Depends(risk_access)):
    record = lifecycle.get_risk(db, code)
    lifecycle.delete_risk(db, record)
    return {"ok": True}
