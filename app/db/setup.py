from fastapi import HTTPException, status
from supabase import create_client, Client as SupabaseClient

from app.core.config import settings, logger


# --- Supabase Client Setup ---
_supabase_url = settings.SUPABASE_URL
_supabase_key = settings.SUPABASE_KEY


def get_base_supabase_client() -> SupabaseClient:
    """
    Returns a base Supabase client initialized with the ANON key.
    This is created PER REQUEST and is configured with the caller's token in get_db.
    """
    if not _supabase_url or not _supabase_key:
        logger.critical("Supabase URL or Anon Key not configured for base client.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Core database config missing.",
        )
    try:
        client = create_client(_supabase_url, _supabase_key)
        logger.debug("Created new base Supabase client instance for request.")
        return client
    except Exception as e:
        logger.error(
            f"Failed to create base Supabase client instance: {e}", exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to initialize database client.",
        )
