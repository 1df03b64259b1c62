from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from config.mail import send_access_decision
from db import get_db
from dependencies.session import require_section
from models.schemas import (
    AccountOut, ApproveSchema, BulkApproveSchema, BulkRejectSchema, BulkItemOut, RoleCreateSchema, RoleOut,
)
from models.user import Account, AccessStatus
from services import access_requests, role_catalog
from services.errors import describe

router = APIRouter(prefix="/api/admin")

requests_access = require_section(role_catalog.PENDING_REQUESTS)
users_access = require_section(role_catalog.USER_MANAGEMENT)


def _role_out(role) -> RoleOut:
    return RoleOut(
        id=role.id,
        name=role.name,
        description=role.description,
        default_sections=role_catalog.default_sections(role.name),
        in_catalog=role.name in role_catalog.ROLE_CATALOG,
    )


def _bulk_out(results) -> List[BulkItemOut]:
    out = []
    for r in results:
        if r.ok:
            send_access_decision(r.account)
        out.append(BulkItemOut(
            account_id=r.account_id,
            ok=r.ok,
            account=AccountOut.from_account(r.account) if r.ok else None,
            error=describe(r.error) if r.error else None,
        ))
    return out


@router.get("/roles", response_model=List[RoleOut])
def list_roles(db: Session = Depends(get_db), account: Account = Depends(users_access)):
    return [_role_out(r) for r in access_requests.list_roles(db)]


@router.post("/roles", response_model=RoleOut, status_code=201)
def create_role(payload: RoleCreateSchema, db: Session = Depends(get_db), account: Account = Depends(users_access)):
    return _role_out(access_requests.create_role(db, payload.name, payload.description))


@router.get("/dashboard-sections")
def dashboard_sections(account: Account = Depends(users_access)):
    return [s._asdict() for s in role_catalog.SECTIONS.values()]


@router.get("/access-requests", response_model=List[AccountOut])
def list_access_requests(
    status: AccessStatus = Query(AccessStatus.PENDING),
    db: Session = Depends(get_db),
    account: Account = Depends(requests_access),
):
    return [AccountOut.from_account(a) for a in access_requests.list_accounts(db, status)]


@router.post("/access-requests/{account_id}/approve", response_model=AccountOut)
def approve(
    account_id: int, payload: ApproveSchema, db: Session = Depends(get_db), account: Account = Depends(requests_access)
):
    approved = access_requests.approve(db, account_id, payload.role, payload.sections, approver_id=account.id)
    send_access_decision(approved)
    return AccountOut.from_account(approved)


@router.post("/access-requests/{account_id}/reject", response_model=AccountOut)
def reject(account_id: int, db: Session = Depends(get_db), account: Account = Depends(requests_access)):
    rejected = access_requests.reject(db, account_id, approver_id=account.id)
    send_access_decision(rejected)
    return AccountOut.from_account(rejected)


@router.post("/access-requests/bulk-approve", response_model=List[BulkItemOut])
def bulk_approve(payload: BulkApproveSchema, db: Session = Depends(get_db), account: Account = Depends(requests_access)):
    results = access_requests.bulk_approve(
        db, payload.account_ids, payload.role, payload.sections, approver_id=account.id
    )
    return _bulk_out(results)


@router.post("/access-requests/bulk-reject", response_model=List[BulkItemOut])
def bulk_reject(payload: BulkRejectSchema, db: Session = Depends(get_db), account: Account = Depends(requests_access)):
    return _bulk_out(access_requests.bulk_reject(db, payload.account_ids, approver_id=account.id))
