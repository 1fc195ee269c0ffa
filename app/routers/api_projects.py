from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
from supabase import Client as SupabaseClient

from app.crud import projects as crud_projects
from app.models import projects as models_projects
from app.models.auth import UserInToken
from app.auth.dependencies import get_current_active_user, get_db
from app.core.config import settings, logger
from app.core.errors import DataSourceError, InvalidSearchError
from app.services.proximity import find_nearby

router = APIRouter(prefix="/api/v1/projects", tags=["API - Projects"])


async def get_project_source(
    db: SupabaseClient = Depends(get_db),
) -> crud_projects.ProjectLocationSource:
    return crud_projects.SupabaseProjectSource(db)


@router.get("/nearby", response_model=models_projects.NearbySearchResponse)
async def nearby_projects_api(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(
        settings.DEFAULT_SEARCH_RADIUS_METERS,
        ge=0,
        description="Search radius in meters",
    ),
    source: crud_projects.ProjectLocationSource = Depends(get_project_source),
    current_user: UserInToken = Depends(get_current_active_user),
):
    """Projects within `radius` meters of the given position, nearest first."""
    logger.info(
        f"API Nearby projects request by user {current_user.id}: ({latitude}, {longitude}) r={radius}"
    )
    try:
        nearby = await find_nearby(source, latitude, longitude, radius)
    except InvalidSearchError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from e
    except DataSourceError as e:
        logger.error(f"API Nearby projects failed for user {current_user.id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not load projects: {e.message}",
        ) from e

    return models_projects.NearbySearchResponse(
        position=models_projects.UserPosition(latitude=latitude, longitude=longitude),
        radius_meters=radius,
        count=len(nearby),
        projects=nearby,
    )


@router.get("/", response_model=models_projects.ProjectList)
async def list_projects_api(
    search: Optional[str] = Query(
        None, description="Matches external id, address, postal code or city"
    ),
    db: SupabaseClient = Depends(get_db),
    current_user: UserInToken = Depends(get_current_active_user),
):
    """All projects, for manual selection when no position is available."""
    logger.info(f"API List projects request by user {current_user.id}, search={search!r}")
    try:
        projects = await crud_projects.list_projects(db=db, search=search)
    except DataSourceError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not load projects: {e.message}",
        ) from e
    return models_projects.ProjectList(count=len(projects), projects=projects)
