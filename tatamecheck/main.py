import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .db import create_db_and_tables
from .routers import auth, finance, professor, student

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    log.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)

    app.include_router(auth.router, prefix="/api")
    app.include_router(student.router, prefix="/api")
    app.include_router(professor.router, prefix="/api")
    app.include_router(finance.router, prefix="/api")

    @app.get("/api/test", tags=["health"])
    def health():
        return {"message": f"{settings.APP_NAME} API is running", "version": settings.APP_VERSION}

    return app


app = create_app()
