import asyncio
from typing import Any, Dict, Iterable, List, Optional, Protocol
from supabase import Client as SupabaseClient
from postgrest import APIResponse, APIError  # type: ignore

from app.core.config import settings, logger
from app.core.errors import DataSourceError
from app.models.projects import ProjectLocation


# plz/stadt are the legacy German column names still populated by older imports
PROJECT_COLUMNS = (
    "id, external_id, address, zipcode, city, plz, stadt, latitude, longitude, status"
)


class ProjectLocationSource(Protocol):
    """Anything that can hand the proximity finder its candidate projects."""

    async def fetch_candidates(self) -> List[ProjectLocation]: ...


def _row_to_location(row: Dict[str, Any]) -> ProjectLocation:
    return ProjectLocation(
        id=row.get("id"),
        external_id=row.get("external_id"),
        address=row.get("address") or "",
        zipcode=row.get("zipcode") or row.get("plz") or "",
        city=row.get("city") or row.get("stadt") or "",
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        status=row.get("status"),
    )


def _rows_to_locations(rows: Iterable[Dict[str, Any]]) -> List[ProjectLocation]:
    locations: List[ProjectLocation] = []
    for row in rows:
        try:
            locations.append(_row_to_location(row))
        except Exception as validation_error:
            raise DataSourceError(
                f"Malformed project row {row.get('id')}: {validation_error}"
            ) from validation_error
    return locations


async def execute_query(query, description: str) -> List[Dict[str, Any]]:
    try:
        response: APIResponse = await asyncio.to_thread(query.execute)
    except APIError as api_error:
        err_msg = getattr(api_error, "message", None) or str(api_error)
        logger.error(f"CRUD: PostgREST error while {description}: {err_msg}")
        raise DataSourceError(err_msg) from api_error
    except Exception as e:
        logger.error(
            f"CRUD: Unexpected error while {description}: {e}", exc_info=True
        )
        raise DataSourceError(str(e) or e.__class__.__name__) from e
    return response.data or []


class SupabaseProjectSource:
    """Reads coordinate-bearing projects from the Supabase projects table."""

    def __init__(self, db: SupabaseClient, table_name: str | None = None):
        self.db = db
        self.table_name = table_name or settings.PROJECTS_TABLE

    async def fetch_candidates(self) -> List[ProjectLocation]:
        query = (
            self.db.table(self.table_name)
            .select(PROJECT_COLUMNS)
            .not_.is_("latitude", "null")
            .not_.is_("longitude", "null")
        )
        rows = await execute_query(query, "fetching projects with coordinates")
        logger.debug(f"CRUD: Fetched {len(rows)} projects with coordinates.")
        return _rows_to_locations(rows)


class InMemoryProjectSource:
    """Fixed list of projects; keeps only those with both coordinates, like the table query."""

    def __init__(self, records: Iterable[ProjectLocation]):
        self.records = list(records)

    async def fetch_candidates(self) -> List[ProjectLocation]:
        return [record for record in self.records if record.has_coordinates]


async def get_project(db: SupabaseClient, project_id: str) -> ProjectLocation | None:
    query = (
        db.table(settings.PROJECTS_TABLE)
        .select(PROJECT_COLUMNS)
        .eq("id", project_id)
        .limit(1)
    )
    rows = await execute_query(query, f"fetching project {project_id}")
    if not rows:
        logger.debug(f"CRUD: Project {project_id} not found.")
        return None
    return _rows_to_locations(rows)[0]


def _matches(project: ProjectLocation, needle: str) -> bool:
    haystack = (
        project.external_id or "",
        project.address,
        project.zipcode,
        project.city,
    )
    return any(needle in value.lower() for value in haystack)


async def list_projects(
    db: SupabaseClient, search: Optional[str] = None
) -> List[ProjectLocation]:
    """All projects for manual selection, newest external id first."""
    query = (
        db.table(settings.PROJECTS_TABLE)
        .select(PROJECT_COLUMNS)
        .order("external_id", desc=True)
    )
    rows = await execute_query(query, "listing projects")
    projects = _rows_to_locations(rows)

    needle = search.strip().lower() if search else ""
    if needle:
        projects = [p for p in projects if _matches(p, needle)]
    logger.info(
        f"CRUD: Listing {len(projects)} projects (search={search!r}, fetched={len(rows)})."
    )
    return projects
