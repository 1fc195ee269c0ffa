from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings, logger
from app.routers import api_projects, api_time_entries, system

# --- App Initialization ---
app = FastAPI(
    title="Field Projects",
    description="Finds the construction projects near a field worker's position.",
    version="1.0.0",
)

# --- Add Middleware ---
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).strip() for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"CORS enabled for origins: {settings.BACKEND_CORS_ORIGINS}")
else:
    logger.warning("CORS is not configured. BACKEND_CORS_ORIGINS is empty.")


# --- Include Routers ---
app.include_router(api_projects.router)
app.include_router(api_time_entries.router)
app.include_router(system.router)

logger.info("All application routers included.")
