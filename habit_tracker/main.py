"""Application factory and server entry point."""

from datetime import timedelta

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habit_tracker import __version__
from habit_tracker.auth import router as auth_router
from habit_tracker.config import Settings, get_settings
from habit_tracker.database import get_engine, get_session_factory, init_db
from habit_tracker.errors import register_error_handlers
from habit_tracker.logconfig import setup_logging
from habit_tracker.routes import router as habits_router
from habit_tracker.security import PasswordHasher
from habit_tracker.tokens import TokenService

log = structlog.get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API: logging, database, auth services, middleware and routes."""
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    engine = get_engine(settings.DATABASE_URL)
    init_db(engine)

    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG, version=__version__)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = get_session_factory(engine)
    app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.token_service = TokenService(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        lifetime=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_error_handlers(app)

    @app.get("/ping")
    def ping():
        return {"message": "pong"}

    app.include_router(auth_router, prefix=settings.API_PREFIX)
    app.include_router(habits_router, prefix=settings.API_PREFIX)

    log.info("app_created", env=settings.APP_ENV, api_prefix=settings.API_PREFIX)
    return app


def run():
    settings = get_settings()
    uvicorn.run(
        "habit_tracker.main:create_app",
        factory=True,
        host=settings.APP_HOST,
        port=settings.APP_PORT,
    )


if __name__ == "__main__":
    run()
