from fastapi import APIRouter, Depends, HTTPException, status
from typing import Optional
from supabase import Client as SupabaseClient

from app.crud import projects as crud_projects
from app.crud import time_entries as crud_time_entries
from app.models import time_entries as models_time_entries
from app.models.auth import UserInToken
from app.auth.dependencies import get_current_active_user, get_db
from app.core.config import logger
from app.core.errors import DataSourceError
from app.services.geocoding import reverse_geocode

router = APIRouter(prefix="/api/v1/time-entries", tags=["API - Time Entries"])


def _bad_gateway(e: DataSourceError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Time tracking unavailable: {e.message}",
    )


async def _labelled(
    location: Optional[models_time_entries.TimeEntryLocation],
) -> Optional[models_time_entries.TimeEntryLocation]:
    if location is None or location.address:
        return location
    label = await reverse_geocode(location.latitude, location.longitude)
    return location.model_copy(update={"address": label.display_name})


@router.get("/active", response_model=Optional[models_time_entries.TimeEntry])
async def active_time_entry_api(
    db: SupabaseClient = Depends(get_db),
    current_user: UserInToken = Depends(get_current_active_user),
):
    """The caller's running time entry, or null when clocked out."""
    try:
        return await crud_time_entries.get_active_entry(db, current_user.id)
    except DataSourceError as e:
        raise _bad_gateway(e) from e


@router.post(
    "/clock-in",
    response_model=models_time_entries.TimeEntry,
    status_code=status.HTTP_201_CREATED,
)
async def clock_in_api(
    clock_in: models_time_entries.ClockInRequest,
    db: SupabaseClient = Depends(get_db),
    current_user: UserInToken = Depends(get_current_active_user),
):
    """Starts a time entry on a project, usually one picked from the nearby search."""
    logger.info(
        f"API Clock in request by user {current_user.id} on project {clock_in.project_id}"
    )
    try:
        if await crud_time_entries.get_active_entry(db, current_user.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Already clocked in. Clock out first.",
            )
        project = await crud_projects.get_project(db, clock_in.project_id)
        if project is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Project not found or access denied",
            )
        location = await _labelled(clock_in.location)
        return await crud_time_entries.clock_in(
            db,
            employee_id=current_user.id,
            project=project,
            task=clock_in.task,
            location=location,
        )
    except DataSourceError as e:
        logger.error(f"API Clock in failed for user {current_user.id}: {e.message}")
        raise _bad_gateway(e) from e


@router.post("/clock-out", response_model=models_time_entries.TimeEntry)
async def clock_out_api(
    clock_out: models_time_entries.ClockOutRequest,
    db: SupabaseClient = Depends(get_db),
    current_user: UserInToken = Depends(get_current_active_user),
):
    """Closes the caller's running time entry and records the worked hours."""
    logger.info(f"API Clock out request by user {current_user.id}")
    try:
        entry = await crud_time_entries.get_active_entry(db, current_user.id)
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No active time entry to clock out.",
            )
        location = await _labelled(clock_out.location)
        return await crud_time_entries.clock_out(db, entry, location=location)
    except DataSourceError as e:
        logger.error(f"API Clock out failed for user {current_user.id}: {e.message}")
        raise _bad_gateway(e) from e
