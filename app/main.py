from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.api.routes import router as api_router
from app.config.settings import get_settings
from app.storage.database import SessionLocal, init_db
from app.storage.seed import seed_db
from app.utils.logging_config import setup_logging


# Setup logging
logger = setup_logging()
settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Project portfolio dashboard: strategic alignment, what-if scenarios and resource leveling",
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

# Initialize and seed database on startup
@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.app_name}...")
    init_db()
    db = SessionLocal()
    try:
        seed_db(db)
    finally:
        db.close()
    logger.info("Database initialized")
    logger.info(f"Suggestion limit: {settings.max_suggestions}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.app_name}...")

app.include_router(api_router, prefix="/api/v1", tags=["portfolio"])


@app.get("/health", tags=["health"])
def health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "ok", "app": settings.app_name, "version": "1.0.0"}
