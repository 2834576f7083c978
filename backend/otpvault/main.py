"""
otpvault - 应用入口

Key material is loaded once here and handed to the Cipher and SessionCodec;
a missing or malformed key aborts start-up.
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from otpvault.common.config import SecurityConfig, Settings
from otpvault.common.database import DatabaseManager
from otpvault.common.encryption import Cipher
from otpvault.common.errors import AccessError, DecryptError
from otpvault.common.logging_config import setup_logging
from otpvault.domains.auth.gate import AccessGate
from otpvault.domains.auth.middleware import AccessGateMiddleware
from otpvault.domains.auth.session import SessionCodec
from otpvault.domains.otp.totp import TotpEngine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    settings: Settings = app.state.settings
    setup_logging(
        log_level=settings.log_level,
        log_dir=settings.log_dir,
        log_file_prefix="otpvault",
    )
    logger.info(f"🚀 {settings.app_name} {settings.app_version} starting ({settings.environment})")

    db: DatabaseManager = app.state.db
    await db.initialize()
    logger.info("✅ Database initialization completed")

    if settings.superadmin_email and settings.superadmin_password:
        from otpvault.domains.admin.service import UserService

        async with db.get_session() as session:
            await UserService(bcrypt_rounds=settings.bcrypt_rounds).ensure_superadmin(
                session, settings.superadmin_email, settings.superadmin_password
            )
        logger.info("✅ Superadmin account ensured")

    yield

    logger.info("Application shutting down...")
    await db.dispose()


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse({"error": message}, status_code=400)

    @app.exception_handler(AccessError)
    async def access_error_handler(request: Request, exc: AccessError):
        logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}")
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(DecryptError)
    async def decrypt_error_handler(request: Request, exc: DecryptError):
        logger.error(f"Decrypt failed on {request.method} {request.url.path}: {exc}")
        return JSONResponse({"error": "Stored secret could not be decrypted"}, status_code=500)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    构建 FastAPI 应用

    Raises:
        ConfigError: ENCRYPTION_KEY 缺失或不是 32 字节
    """
    settings = settings or Settings()
    security = SecurityConfig.from_settings(settings)

    cipher = Cipher(security.encryption_key)
    codec = SessionCodec(security.signing_key)
    gate = AccessGate(codec)

    app = FastAPI(
        title=settings.app_name,
        description="Personal credential vault with live TOTP codes",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.security = security
    app.state.cipher = cipher
    app.state.codec = codec
    app.state.totp = TotpEngine()
    app.state.gate = gate
    app.state.db = DatabaseManager(settings.database_url, echo=settings.debug)

    app.add_middleware(AccessGateMiddleware, gate=gate)
    register_exception_handlers(app)

    @app.get("/")
    async def root():
        """根路径"""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/health")
    async def health_check():
        """健康检查端点"""
        return {"status": "healthy", "database": app.state.db.available}

    from otpvault.domains.auth.api import router as auth_router
    from otpvault.domains.vault.api import router as vault_router
    from otpvault.domains.admin.api import users_router, settings_router

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(vault_router, prefix="/api/accounts", tags=["accounts"])
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(settings_router, prefix="/api/settings", tags=["settings"])

    logger.info("✅ Routers registered (auth, accounts, users, settings)")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "otpvault.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8888,
        log_level="info",
    )
