"""
Main FastAPI application
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jourj.config import get_settings
from jourj.database import engine, create_tables
from jourj.services.event_store import EventStoreRegistry
from jourj.utils.logger import configure_logging
from jourj.api import auth, events, tasks, timeline, people, vendors, documents, planning, dashboard

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Database tables created")

    app.state.stores = EventStoreRegistry()

    yield

    await app.state.stores.close_all()
    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(timeline.router, prefix="/api/timeline", tags=["Timeline"])
app.include_router(people.router, prefix="/api/people", tags=["People"])
app.include_router(vendors.router, prefix="/api/vendors", tags=["Vendors"])
app.include_router(documents.router, prefix="/api/documents", tags=["Documents"])
app.include_router(planning.router, prefix="/api/planning", tags=["Planning"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "jourj.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
