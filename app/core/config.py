import logging
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from typing import List

# Load .env file explicitly for flexibility
load_dotenv()


class Settings(BaseSettings):
    """Application configuration settings."""

    APP_ENV: str = "development"
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None  # anon public key
    PROJECTS_TABLE: str = "projects"
    TIME_ENTRIES_TABLE: str = "time_entries"
    DEFAULT_TASK: str = "Work on project"
    DEFAULT_SEARCH_RADIUS_METERS: float = 500.0
    OPENCAGE_API_KEY: str | None = None
    GEOCODER_LANGUAGE: str = "de"

    # --- CORS ---
    BACKEND_CORS_ORIGINS: List[str] = ["*"]  # Adjust for production

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )


# Instantiate settings
settings = Settings()

# --- Basic Logging Setup ---
log_level = logging.DEBUG if settings.APP_ENV == "development" else logging.INFO
logging.basicConfig(
    level=log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger("fieldops")

# --- Initial Config Logging ---
logger.info(f"Application environment: {settings.APP_ENV}")
if settings.SUPABASE_URL and settings.SUPABASE_KEY:
    logger.info("Supabase configured: URL and Key found.")
else:
    logger.critical(
        "Supabase URL or Key NOT configured. Project lookups will fail until they are set."
    )

if settings.DEFAULT_SEARCH_RADIUS_METERS < 0:
    logger.warning(
        f"DEFAULT_SEARCH_RADIUS_METERS is negative ({settings.DEFAULT_SEARCH_RADIUS_METERS}); nearby searches without an explicit radius will be rejected."
    )

logger.info(f"Projects table: {settings.PROJECTS_TABLE}")
logger.info(f"Default search radius: {settings.DEFAULT_SEARCH_RADIUS_METERS} m")
logger.info(f"CORS origins: {settings.BACKEND_CORS_ORIGINS}")
