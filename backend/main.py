import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import Settings, settings as default_settings
from core.logging_config import configure_logging
from db.database import build_engine, build_session_maker, create_db_and_tables
from db.migrations import add_missing_item_columns
from routers.checkinout import router as checkinout_router
from routers.files import router as files_router
from routers.items import router as items_router
from routers.reports import router as reports_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(settings.database_url, echo=settings.database_echo)
        await create_db_and_tables(engine)
        await add_missing_item_columns(engine)
        app.state.engine = engine
        app.state.session_maker = build_session_maker(engine)
        logger.info("Database initialized (%s)", settings.database_url)
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("Database connection closed")

    app = FastAPI(
        title="Inventory Check-In/Check-Out API",
        description="API for tracking inventory items, check-in/check-out events, photos and receipts",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origin.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health():
        return {
            "success": True,
            "message": "Inventory Management System API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    app.include_router(items_router, prefix="/api", tags=["items"])
    app.include_router(checkinout_router, prefix="/api", tags=["checkin-checkout"])
    app.include_router(reports_router, prefix="/api", tags=["reports"])
    app.include_router(files_router, prefix="/api", tags=["files"])

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=default_settings.port, reload=True)
