import asyncio
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer

from supabase import Client as SupabaseClient
from supabase import AuthApiError
from pydantic import ValidationError

from app.core.config import logger
from app.models.auth import UserInToken
from app.db.setup import get_base_supabase_client

# The mobile client signs in directly against Supabase and sends its access token.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token", auto_error=False)


def _token_from_cookie(request: Request) -> str | None:
    token_cookie = request.cookies.get("access_token")
    if not token_cookie:
        return None

    if token_cookie.lower().startswith("bearer "):
        parts = token_cookie.split(maxsplit=1)
        if len(parts) == 2 and parts[1]:
            return parts[1]
        logger.warning(
            f"get_access_token: Malformed Bearer token in cookie: '{token_cookie}'"
        )
        return None
    return token_cookie


async def get_access_token(
    request: Request,
    header_token: str | None = Depends(oauth2_scheme),
) -> str | None:
    """
    Extracts the Supabase access token from the Authorization header,
    falling back to the 'access_token' cookie. Returns None if neither is present.
    """
    if header_token:
        return header_token
    return _token_from_cookie(request)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _auth_service_failure() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error during authentication.",
    )


def _token_rejected(api_error: AuthApiError) -> bool:
    # expired sessions from the app come back as 403 with "token is expired"
    message = (api_error.message or "").lower()
    return (
        getattr(api_error, "status", None) in (401, 403)
        or "invalid jwt" in message
        or "token is expired" in message
    )


async def get_current_user(
    token: str | None = Depends(get_access_token),
    base_db: SupabaseClient = Depends(get_base_supabase_client),
) -> UserInToken:
    """
    Resolves the employee signed in on the device from their Supabase access token.
    401 for a missing, expired or unknown token; 500 if Supabase auth misbehaves.
    """
    if token is None:
        raise _unauthorized()

    try:
        response = await asyncio.to_thread(base_db.auth.get_user, token)
    except AuthApiError as api_error:
        if _token_rejected(api_error):
            logger.info(f"Auth: Supabase rejected token ({api_error.message})")
            raise _unauthorized() from api_error
        logger.error(f"Auth: Supabase auth error: {api_error}", exc_info=True)
        raise _auth_service_failure() from api_error
    except Exception as e:
        logger.error(f"Auth: Token lookup failed: {e}", exc_info=True)
        raise _auth_service_failure() from e

    employee = response.user if response else None
    if not employee or not employee.id:
        logger.warning("Auth: Token accepted but Supabase returned no user.")
        raise _unauthorized()

    try:
        return UserInToken(id=employee.id, email=employee.email)
    except (ValidationError, AttributeError) as e:
        logger.error(f"Auth: Unusable Supabase user record: {e}")
        raise _unauthorized() from e


async def get_current_active_user(
    current_user: UserInToken = Depends(get_current_user),
) -> UserInToken:
    # Placeholder for future checks (e.g., deactivated employees)
    return current_user


async def get_db(
    token: str | None = Depends(get_access_token),
    request_client: SupabaseClient = Depends(get_base_supabase_client),
    current_user: UserInToken = Depends(get_current_active_user),
) -> SupabaseClient:
    """
    Provides a Supabase client configured with the caller's JWT so that
    row level security policies on the projects table apply. Requires authentication.
    """
    if token is None:
        logger.error(
            "get_db: Reached dependency logic but token is None despite active user dependency."
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated (token missing)",
        )

    logger.debug(f"get_db: Scoping Supabase client to user {current_user.id}")
    try:
        request_client.postgrest.auth(token)
    except Exception as e:
        logger.error(
            f"get_db: Unexpected error setting auth token on Supabase client: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to configure database client for authenticated access.",
        )

    return request_client
