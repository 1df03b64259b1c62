import logging

from fastapi import APIRouter, Request, Depends, HTTPException
from sqlalchemy.orm import Session

from db import get_db
from models.schemas import RegisterSchema, LoginSchema, AccountOut
from models.user import AccessStatus
from services import access_requests

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth")


@router.post("/register", status_code=201)
def register(payload: RegisterSchema, db: Session = Depends(get_db)):
    account = access_requests.register(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return {
        "message": "Registration received. An administrator has to approve the account before you can sign in.",
        "account": AccountOut.from_account(account),
    }


@router.post("/login")
def login(request: Request, payload: LoginSchema, db: Session = Depends(get_db)):
    account = access_requests.authenticate(db, payload.email, payload.password)
    if not account:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if account.effective_status is not AccessStatus.APPROVED:
        raise HTTPException(status_code=403, detail=f"Account is {account.effective_status.value}")

    request.session["user"] = {
        "account_id": account.id,
        "role": account.role.name if account.role else None,
    }
    logger.info("Account %s signed in", account.id)
    return {"account": AccountOut.from_account(account)}


@router.get("/logout")
def logout(request: Request):
    request.session.clear()
    return {"ok": True}
