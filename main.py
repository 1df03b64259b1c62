import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from config import settings
from db import init_db
from middleware.auth import InjectUserMiddleware
from routes import auth, risks, access_requests, dashboard
from services.errors import NotFoundError, PreconditionError, ValidationError, describe

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Risk Register")

# added last runs first: the session has to be loaded before InjectUserMiddleware reads it
app.add_middleware(InjectUserMiddleware)
app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY)

init_db()

app.include_router(auth.router)
app.include_router(risks.router)
app.include_router(access_requests.router)
app.include_router(dashboard.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content=describe(exc))


@app.exception_handler(PreconditionError)
async def precondition_error_handler(request: Request, exc: PreconditionError):
    return JSONResponse(status_code=409, content=describe(exc))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content=describe(exc))


@app.get("/health")
def health():
    return {"status": "ok"}
