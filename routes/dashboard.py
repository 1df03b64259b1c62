from fastapi import APIRouter, Depends
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from db import get_db
from dependencies.session import get_current_account, require_section
from models.risk import RiskRecord
from models.schemas import DashboardAccessOut
from models.user import Account, AccessStatus
from services.access_gate import accessible_sections
from services.role_catalog import OVERVIEW, SECTIONS

router = APIRouter()


@router.get("/api/user/dashboard-access", response_model=DashboardAccessOut)
def dashboard_access(account: Account = Depends(get_current_account)):
    sections = accessible_sections(account)
    return DashboardAccessOut(
        status=account.effective_status.value,
        role=account.role.name if account.role else None,
        sections=sections,
        section_details=[SECTIONS[s]._asdict() for s in sections if s in SECTIONS],
    )


@router.get("/api/dashboard/overview")
def overview(db: Session = Depends(get_db), account: Account = Depends(require_section(OVERVIEW))):
    total_risks = db.query(RiskRecord).count()
    by_level = dict(
        db.query(RiskRecord.level, func.count(RiskRecord.id))
        .filter(RiskRecord.level.isnot(None))
        .group_by(RiskRecord.level)
        .all()
    )
    by_status = dict(
        db.query(RiskRecord.status, func.count(RiskRecord.id)).group_by(RiskRecord.status).all()
    )
    pending_requests = db.query(Account).filter(
        or_(Account.status == AccessStatus.PENDING.value, Account.status.is_(None))
    ).count()

    return {
        "total_risks": total_risks,
        "risks_by_level": by_level,
        "risks_by_status": by_status,
        "unscored_risks": total_risks - sum(by_level.values()),
        "pending_requests": pending_requests,
    }
