import asyncio
from opencage.geocoder import OpenCageGeocode, RateLimitExceededError

from app.core.config import settings, logger
from app.models.general import GeocodeResult

# --- Geocoder Setup ---
geocoder: OpenCageGeocode | None = None
if not settings.OPENCAGE_API_KEY:
    logger.warning(
        "OPENCAGE_API_KEY is not set. Reverse geocoding will fall back to coordinates."
    )
else:
    try:
        geocoder = OpenCageGeocode(settings.OPENCAGE_API_KEY)
        logger.info("OpenCage Geocoder initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize OpenCage Geocoder: {e}", exc_info=True)


def coordinate_label(latitude: float, longitude: float) -> str:
    return f"{latitude:.6f}, {longitude:.6f}"


def _fallback(latitude: float, longitude: float) -> GeocodeResult:
    return GeocodeResult(
        latitude=latitude,
        longitude=longitude,
        display_name=coordinate_label(latitude, longitude),
    )


def _result_from_components(
    latitude: float, longitude: float, best_result: dict
) -> GeocodeResult:
    components = best_result.get("components", {})
    city = components.get(
        "city",
        components.get("town", components.get("village", components.get("county"))),
    )
    road = components.get("road")
    house_number = components.get("house_number")
    street_address = " ".join(filter(None, [road, house_number]))
    zipcode = components.get("postcode")

    locality = " ".join(filter(None, [zipcode, city]))
    display_name = ", ".join(filter(None, [street_address, locality]))

    return GeocodeResult(
        latitude=latitude,
        longitude=longitude,
        address=street_address or None,
        zipcode=zipcode,
        city=city,
        country=components.get("country"),
        display_name=display_name
        or best_result.get("formatted")
        or coordinate_label(latitude, longitude),
    )


async def reverse_geocode(latitude: float, longitude: float) -> GeocodeResult:
    """
    Labels a position with a street address using OpenCage.
    Never raises: on any failure the label is the raw coordinates.
    """
    if not geocoder:
        logger.debug("Reverse geocoding skipped: OpenCage Geocoder not initialized.")
        return _fallback(latitude, longitude)

    try:
        logger.debug(f"Reverse geocoding ({latitude}, {longitude}) with OpenCage")
        # Run synchronous reverse_geocode call in a separate thread
        results = await asyncio.to_thread(
            geocoder.reverse_geocode,
            latitude,
            longitude,
            language=settings.GEOCODER_LANGUAGE,
            limit=1,
            no_annotations=1,
        )
    except RateLimitExceededError:
        logger.error("OpenCage API rate limit exceeded.")
        return _fallback(latitude, longitude)
    except Exception as e:
        logger.error(
            f"OpenCage reverse geocoding error for ({latitude}, {longitude}): {e}",
            exc_info=True,
        )
        return _fallback(latitude, longitude)

    if not results:
        logger.info(f"Reverse geocoding returned no results for ({latitude}, {longitude})")
        return _fallback(latitude, longitude)

    result = _result_from_components(latitude, longitude, results[0])
    logger.debug(f"OpenCage reverse geocoding successful: {result.display_name}")
    return result
