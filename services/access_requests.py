"""
Access requests: a registered account waits in ``pending`` until an
approver binds a role to it (approve) or turns it down (reject).

Approval snapshots the role's default sections, or the approver's own
selection, onto the account. The access gate reads only that snapshot.
"""
import logging
import random
import string
from datetime import datetime, timezone
from typing import Iterable, List, NamedTuple, Optional, Union

from passlib.hash import bcrypt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from config import settings
from models.role import Role
from models.user import Account, AccessStatus
from services import role_catalog
from services.errors import NotFoundError, PreconditionError, RiskRegisterError, ValidationError

logger = logging.getLogger(__name__)

RoleRef = Union[int, str]


class BulkResult(NamedTuple):
    account_id: int
    ok: bool
    account: Optional[Account] = None
    error: Optional[RiskRegisterError] = None


def generate_employee_id() -> str:
    return "EMP-" + "".join(random.choices(string.ascii_uppercase + string.digits, k=6))


def get_account(db: Session, account_id: int, for_update: bool = False) -> Account:
    query = db.query(Account).filter(Account.id == account_id)
    if for_update:
        query = query.with_for_update()
    account = query.first()
    if not account:
        raise NotFoundError("account", account_id)
    return account


def get_role(db: Session, role: RoleRef) -> Role:
    if isinstance(role, int) or (isinstance(role, str) and role.isdigit()):
        found = db.query(Role).filter(Role.id == int(role)).first()
    else:
        found = db.query(Role).filter(Role.name == role).first()
    if not found:
        raise NotFoundError("role", role)
    return found


def list_roles(db: Session) -> List[Role]:
    return db.query(Role).order_by(Role.id).all()


def create_role(db: Session, name: str, description: Optional[str] = None) -> Role:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name", "is required")
    if db.query(Role).filter(Role.name == name).first():
        raise ValidationError("name", f"role {name!r} already exists")
    role = Role(name=name, description=description)
    db.add(role)
    db.commit()
    db.refresh(role)
    logger.info("Role %r created", name)
    return role


def list_accounts(db: Session, status=AccessStatus.PENDING) -> List[Account]:
    status = AccessStatus(status)
    query = db.query(Account)
    if status is AccessStatus.PENDING:
        query = query.filter(or_(Account.status == status.value, Account.status.is_(None)))
    else:
        query = query.filter(Account.status == status.value)
    return query.order_by(Account.created_at, Account.id).all()


def register(db: Session, *, email: str, password: str, first_name: str, last_name: str) -> Account:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValidationError("email", "is not a valid address")
    if not password:
        raise ValidationError("password", "is required")
    for field, value in (("first_name", first_name), ("last_name", last_name)):
        if not (value or "").strip():
            raise ValidationError(field, "is required")
    if db.query(Account).filter(Account.email == email).first():
        raise ValidationError("email", "is already registered")

    employee_id = generate_employee_id()
    while db.query(Account).filter(Account.employee_id == employee_id).first():
        employee_id = generate_employee_id()

    account = Account(
        email=email,
        employee_id=employee_id,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        password=bcrypt.hash(password),
        status=AccessStatus.PENDING.value,
        granted_sections=[],
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Account %s registered as %s, awaiting approval", account.id, employee_id)
    return account


def create_admin(db: Session, email: str, password: str) -> Account:
    """Register and approve a SystemAdmin, so a fresh install has someone to approve others.

    An existing account with that email is returned unchanged.
    """
    existing = db.query(Account).filter(Account.email == (email or "").strip().lower()).first()
    if existing:
        return existing
    account = register(db, email=email, password=password, first_name="System", last_name="Administrator")
    account = approve(db, account.id, "SystemAdmin")
    logger.info("Bootstrap administrator %s created", account.email)
    return account


def authenticate(db: Session, email: str, password: str) -> Optional[Account]:
    account = db.query(Account).filter(Account.email == (email or "").strip().lower()).first()
    if not account or not bcrypt.verify(password, account.password):
        return None
    return account


def approve(
    db: Session,
    account_id: int,
    role: RoleRef,
    section_overrides: Optional[Iterable[str]] = None,
    approver_id: Optional[int] = None,
) -> Account:
    try:
        account = get_account(db, account_id, for_update=True)
        if account.effective_status is AccessStatus.APPROVED:
            raise PreconditionError(f"account {account_id} is already approved")
        bound = get_role(db, role)
        if section_overrides is None:
            sections = role_catalog.default_sections(bound.name)
        else:
            sections = list(dict.fromkeys(section_overrides))
            unknown = role_catalog.unknown_sections(sections)
            if unknown:
                raise ValidationError("sections", f"unknown dashboard sections: {', '.join(unknown)}")
    except RiskRegisterError:
        db.rollback()
        raise

    account.role_id = bound.id
    account.granted_sections = sections
    account.status = AccessStatus.APPROVED.value
    account.status_changed_at = datetime.now(timezone.utc)
    account.decided_by_id = approver_id
    db.commit()
    db.refresh(account)
    logger.info("Account %s approved as %r with sections %s by %s", account_id, bound.name, sections, approver_id)
    return account


def reject(db: Session, account_id: int, approver_id: Optional[int] = None) -> Account:
    """Reject a pending account or revoke an approved one.

    The role binding is cleared and the section snapshot is left in place.
    A later approve reseeds sections from the new role unless the approver
    passes overrides, e.g. the kept snapshot.
    """
    try:
        account = get_account(db, account_id, for_update=True)
        if account.effective_status is AccessStatus.REJECTED:
            raise PreconditionError(f"account {account_id} is already rejected")
    except RiskRegisterError:
        db.rollback()
        raise

    account.role_id = None
    account.status = AccessStatus.REJECTED.value
    account.status_changed_at = datetime.now(timezone.utc)
    account.decided_by_id = approver_id
    db.commit()
    db.refresh(account)
    logger.info("Account %s rejected by %s", account_id, approver_id)
    return account


def _run_bulk(action: str, account_ids: Iterable[int], fn) -> List[BulkResult]:
    results = []
    for account_id in account_ids:
        try:
            results.append(BulkResult(account_id, True, account=fn(account_id)))
        except RiskRegisterError as e:
            results.append(BulkResult(account_id, False, error=e))
    failed = sum(1 for r in results if not r.ok)
    logger.info("Bulk %s: %d ok, %d failed", action, len(results) - failed, failed)
    return results


def bulk_approve(
    db: Session,
    account_ids: Iterable[int],
    role: Optional[RoleRef] = None,
    section_overrides: Optional[Iterable[str]] = None,
    approver_id: Optional[int] = None,
) -> List[BulkResult]:
    role = settings.DEFAULT_ROLE if role is None else role
    overrides = None if section_overrides is None else list(section_overrides)
    return _run_bulk(
        "approve", account_ids,
        lambda account_id: approve(db, account_id, role, overrides, approver_id=approver_id),
    )


def bulk_reject(db: Session, account_ids: Iterable[int], approver_id: Optional[int] = None) -> List[BulkResult]:
    return _run_bulk("reject", account_ids, lambda account_id: reject(db, account_id, approver_id=approver_id))
