from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

import structlog

from bloghub.auth import cleanup_expired_sessions
from bloghub.config import get_settings
from bloghub.database import SessionLocal, init_db
from bloghub.errors import register_error_handlers
from bloghub.routers import about_router, admin_router, auth_router, posts_router, profile_router
from bloghub.users import ensure_admin

settings = get_settings()
logger = structlog.get_logger()

VERSION = "1.0.0"


def bootstrap(db):
    """
    Startup housekeeping: drop sessions that expired while the app was down
    and create the configured administrator, if any.
    """
    cleanup_expired_sessions(db)

    admin_fields = (
        settings.admin_username,
        settings.admin_email,
        settings.admin_phone,
        settings.admin_password,
    )
    if all(admin_fields):
        ensure_admin(db, *admin_fields)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create tables, run startup housekeeping, then serve.
    """
    logger.info("bloghub.starting", version=VERSION, environment=settings.environment)
    init_db()
    db = SessionLocal()
    try:
        bootstrap(db)
    finally:
        db.close()
    yield
    logger.info("bloghub.shutdown")


app = FastAPI(
    title="BlogHub",
    description="Blogging platform API with cookie sessions and an admin back office",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register routers
app.include_router(auth_router.router)
app.include_router(profile_router.router)
app.include_router(posts_router.router)
app.include_router(about_router.router)
app.include_router(admin_router.router)


@app.get("/")
async def root():
    """
    Liveness probe with the running version.
    """
    return {
        "status": "running",
        "version": VERSION
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bloghub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
