"""
Access Gate Middleware - 每个请求先经过访问控制
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .gate import AccessGate, GateAction
from .deps import SESSION_COOKIE_NAME

logger = logging.getLogger(__name__)


class AccessGateMiddleware(BaseHTTPMiddleware):
    """Applies AccessGate decisions and exposes verified claims on ``request.state.session``."""

    def __init__(self, app, gate: AccessGate):
        super().__init__(app)
        self.gate = gate

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        decision = self.gate.evaluate(
            path,
            request.method,
            request.cookies.get(SESSION_COOKIE_NAME),
        )

        if decision.action is GateAction.REDIRECT:
            logger.debug(f"Gate redirect {request.method} {path} -> {decision.location}")
            return RedirectResponse(url=decision.location, status_code=decision.status_code)

        if decision.action is GateAction.DENY:
            logger.info(f"Gate denied {request.method} {path}: {decision.status_code}")
            return JSONResponse({"error": decision.error.detail}, status_code=decision.status_code)

        request.state.session = decision.claims
        return await call_next(request)
