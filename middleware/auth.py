from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

PUBLIC_PATHS = ["/api/auth", "/api/risk-matrix", "/health", "/docs", "/openapi.json"]


class InjectUserMiddleware(BaseHTTPMiddleware):
    """Puts the session user on request.state and turns away anonymous API calls."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        user = None
        if "session" in request.scope:
            user_val = request.session.get("user")
            if isinstance(user_val, dict):
                user = user_val

        request.state.user = user

        if not user and path.startswith("/api") and not any(path.startswith(p) for p in PUBLIC_PATHS):
            return JSONResponse(status_code=401, content={"error": "Not authenticated"})

        return await call_next(request)
