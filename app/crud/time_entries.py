import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from supabase import Client as SupabaseClient

from app.core.config import settings, logger
from app.core.errors import DataSourceError
from app.crud.projects import execute_query
from app.models.projects import ProjectLocation
from app.models.time_entries import TimeEntry, TimeEntryLocation


def duration_hours(start_time: datetime, end_time: datetime) -> float:
    """Worked hours between two timestamps, rounded to 2 decimals."""
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)
    if end_time.tzinfo is None:
        end_time = end_time.replace(tzinfo=timezone.utc)
    return round((end_time - start_time).total_seconds() / 3600, 2)


def _location_payload(location: Optional[TimeEntryLocation]) -> Dict[str, Any] | None:
    return location.model_dump(mode="json") if location else None


def _to_entry(row: Dict[str, Any]) -> TimeEntry:
    try:
        return TimeEntry(**row)
    except Exception as validation_error:
        raise DataSourceError(
            f"Malformed time entry {row.get('id')}: {validation_error}"
        ) from validation_error


async def get_active_entry(
    db: SupabaseClient, employee_id: uuid.UUID
) -> TimeEntry | None:
    """The employee's open entry (no end_time yet), newest first."""
    query = (
        db.table(settings.TIME_ENTRIES_TABLE)
        .select("*")
        .eq("employee", str(employee_id))
        .is_("end_time", "null")
        .order("start_time", desc=True)
        .limit(1)
    )
    rows = await execute_query(query, f"checking active time entry for {employee_id}")
    if not rows:
        logger.debug(f"CRUD: No active time entry for employee {employee_id}.")
        return None
    return _to_entry(rows[0])


async def clock_in(
    db: SupabaseClient,
    employee_id: uuid.UUID,
    project: ProjectLocation,
    task: Optional[str] = None,
    location: Optional[TimeEntryLocation] = None,
    now: Optional[datetime] = None,
) -> TimeEntry:
    start_time = now or datetime.now(timezone.utc)
    body = {
        "employee": str(employee_id),
        "start_time": start_time.isoformat(),
        "task": task or settings.DEFAULT_TASK,
        "project_id": project.id,
        "project_external_id": project.external_id,
        "project_address": project.display_address,
        "location": _location_payload(location),
    }
    logger.info(
        f"CRUD: Clocking in employee {employee_id} on project {project.external_id or project.id}"
    )

    query = db.table(settings.TIME_ENTRIES_TABLE).insert(
        body, returning="representation"
    )
    rows = await execute_query(query, f"clocking in employee {employee_id}")
    if not rows:
        raise DataSourceError("Clock in returned no time entry")
    return _to_entry(rows[0])


async def clock_out(
    db: SupabaseClient,
    entry: TimeEntry,
    location: Optional[TimeEntryLocation] = None,
    now: Optional[datetime] = None,
) -> TimeEntry:
    end_time = now or datetime.now(timezone.utc)
    body = {
        "end_time": end_time.isoformat(),
        "duration": duration_hours(entry.start_time, end_time),
        "end_location": _location_payload(location),
    }
    logger.info(
        f"CRUD: Clocking out time entry {entry.id} after {body['duration']} h"
    )

    query = (
        db.table(settings.TIME_ENTRIES_TABLE)
        .update(body, returning="representation")
        .eq("id", entry.id)
    )
    rows = await execute_query(query, f"clocking out time entry {entry.id}")
    if not rows:
        raise DataSourceError(f"Time entry {entry.id} could not be closed")
    return _to_entry(rows[0])
