from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from planner.api.routes import router as api_router
from planner.config.settings import get_settings
from planner.engine.alerts import OverloadWatcher
from planner.storage.database import SessionLocal, init_db
from planner.storage.repositories import load_workspace
from planner.storage.store import WorkspaceStore
from planner.utils.logging_config import setup_logging


# Setup logging
logger = setup_logging()
settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Resource workload allocation engine: per-member daily hours, workload levels and overload detection",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.store = WorkspaceStore()
app.state.overload_watcher = OverloadWatcher()
app.state.overload_watcher.attach(app.state.store)


# Initialize database and hydrate the workspace on startup
@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.app_name}...")
    init_db()
    logger.info("Database initialized")
    db = SessionLocal()
    try:
        load_workspace(db, app.state.store)
    finally:
        db.close()
    logger.info(f"Heatmap cache enabled: {settings.cache_enabled}")

@app.on_event("shutdown")
async def shutdown_event():
    app.state.overload_watcher.detach()
    logger.info(f"Shutting down {settings.app_name}...")

app.include_router(api_router, prefix="/api/v1", tags=["workload"])


@app.get("/health", tags=["health"])
def health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "ok", "app": settings.app_name, "version": "1.0.0"}
