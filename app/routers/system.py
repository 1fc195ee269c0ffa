from fastapi import APIRouter, Query, status

from app.services.geocoding import reverse_geocode
from app.models.general import GeocodeResult
from app.core.config import logger

router = APIRouter(tags=["System"])


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Health Check",
)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok"}


@router.get(
    "/api/v1/geocode/reverse",
    response_model=GeocodeResult,
    summary="Label a position with an address",
)
async def reverse_geocode_endpoint(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
):
    """Street address for a position, or its coordinates when none is known."""
    logger.info(f"API Reverse geocoding request for ({latitude}, {longitude})")
    return await reverse_geocode(latitude, longitude)
