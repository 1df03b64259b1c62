import logging
from typing import NamedTuple, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from db import get_db
from models.user import Account
from services.access_gate import can_access

logger = logging.getLogger(__name__)


class SessionContext(NamedTuple):
    account_id: int
    # informational; never used for access decisions
    role: Optional[str] = None


def get_session_context(request: Request) -> SessionContext:
    user = getattr(request.state, "user", None)
    if user is None and "session" in request.scope:
        user = request.session.get("user")
    if not isinstance(user, dict) or "account_id" not in user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return SessionContext(account_id=user["account_id"], role=user.get("role"))


def get_current_account(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Account:
    account = db.query(Account).filter(Account.id == ctx.account_id).first()
    if not account:
        raise HTTPException(status_code=401, detail="Account not found")
    return account


def require_section(section: str):
    """Dependency factory: the current account, if it may see ``section``."""

    def dependency(account: Account = Depends(get_current_account)) -> Account:
        if not can_access(account, section):
            logger.warning("Account %s denied section %r", account.id, section)
            raise HTTPException(status_code=403, detail=f"Access denied to section {section!r}")
        return account

    return dependency
