"""
Nearby-project search.

Distances are great-circle distances on a sphere of radius 6,371 km (haversine).
"""

import math
from typing import Iterable, List

from app.core.config import logger
from app.core.errors import DataSourceError, InvalidSearchError
from app.crud.projects import ProjectLocationSource
from app.models.projects import NearbyProject, ProjectLocation

EARTH_RADIUS_METERS = 6_371_000.0
DEFAULT_RADIUS_METERS = 500.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two (lat, lon) points in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    # float rounding can push a just outside [0, 1] for antipodal or out-of-range points
    a = max(0.0, min(1.0, a))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _validate_search(
    user_latitude: float, user_longitude: float, radius_meters: float
) -> None:
    if not (math.isfinite(user_latitude) and math.isfinite(user_longitude)):
        raise InvalidSearchError(
            f"User position must be finite, got ({user_latitude}, {user_longitude})"
        )
    if not math.isfinite(radius_meters) or radius_meters < 0:
        raise InvalidSearchError(
            f"Search radius must be a non-negative number of meters, got {radius_meters}"
        )


def rank_by_distance(
    user_latitude: float,
    user_longitude: float,
    candidates: Iterable[ProjectLocation],
    radius_meters: float,
) -> List[NearbyProject]:
    """
    Attaches the distance from the user to every candidate, drops those farther
    than radius_meters (the boundary itself is kept) and orders the rest
    nearest-first. Equal distances keep their input order.
    """
    ranked: List[NearbyProject] = []
    for candidate in candidates:
        if not candidate.has_coordinates:
            continue
        distance = haversine_distance(
            user_latitude, user_longitude, candidate.latitude, candidate.longitude
        )
        if distance <= radius_meters:
            ranked.append(NearbyProject(**candidate.model_dump(), distance=distance))

    ranked.sort(key=lambda project: project.distance)
    return ranked


async def find_nearby(
    source: ProjectLocationSource,
    user_latitude: float,
    user_longitude: float,
    radius_meters: float = DEFAULT_RADIUS_METERS,
) -> List[NearbyProject]:
    """
    Finds the projects within radius_meters of the user, nearest first.

    Reads the candidate set from source exactly once. Raises DataSourceError
    if that read fails and InvalidSearchError for a negative or non-finite
    radius or a non-finite position.
    """
    _validate_search(user_latitude, user_longitude, radius_meters)
    logger.info(
        f"Proximity: Finding projects within {radius_meters} m of ({user_latitude}, {user_longitude})"
    )

    try:
        candidates = await source.fetch_candidates()
    except DataSourceError:
        raise
    except Exception as e:
        logger.error(f"Proximity: Candidate fetch failed: {e}", exc_info=True)
        raise DataSourceError(str(e) or e.__class__.__name__) from e

    if not candidates:
        logger.info("Proximity: No projects with coordinates found.")
        return []

    nearby = rank_by_distance(user_latitude, user_longitude, candidates, radius_meters)
    logger.info(
        f"Proximity: {len(nearby)} of {len(candidates)} projects within radius."
    )
    return nearby
