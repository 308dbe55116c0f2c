from functools import lru_cache
import logging
from typing import Optional

from routemate.core.settings import get_settings
from routemate.models.location import BoundingBox
from routemate.repositories.base import RouteStore
from routemate.repositories.maps.google_maps import GoogleMapsRepository
from routemate.repositories.memory import InMemoryRouteStore
from routemate.repositories.messaging.line import LineMessagingRepository
from routemate.repositories.sheets.google_sheets import GoogleSheetsRepository
from routemate.services.geocoding import GeocodingService
from routemate.services.normalizer import AddressNormalizer
from routemate.services.notification import NotificationService
from routemate.services.optimization import RouteOptimizationService
from routemate.services.planner import RoutePlanner

logger = logging.getLogger(__name__)


@lru_cache()
def get_route_store() -> RouteStore:
    """Get the process-wide RouteStore instance."""
    return InMemoryRouteStore()


@lru_cache()
def get_maps_repository() -> Optional[GoogleMapsRepository]:
    """Get GoogleMapsRepository instance, or None in simulation mode."""
    settings = get_settings()
    if settings.maps_simulated:
        return None
    try:
        return GoogleMapsRepository(
            api_key=settings.GOOGLE_MAPS_API_KEY,
            language=settings.GEOCODE_LANGUAGE,
            region=settings.GEOCODE_REGION,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except ValueError as e:
        # googlemaps.Client rejects keys that are not shaped like API keys
        logger.error(f"Google Maps client could not be created, falling back to simulation: {e}")
        return None


@lru_cache()
def get_line_repository() -> Optional[LineMessagingRepository]:
    """Get LineMessagingRepository instance, or None in simulation mode."""
    settings = get_settings()
    if settings.messaging_simulated:
        return None
    return LineMessagingRepository(
        access_token=settings.LINE_CHANNEL_ACCESS_TOKEN,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


@lru_cache()
def get_sheets_repository() -> GoogleSheetsRepository:
    return GoogleSheetsRepository(timeout=get_settings().HTTP_TIMEOUT_SECONDS)


@lru_cache()
def get_geocoding_service() -> GeocodingService:
    settings = get_settings()
    return GeocodingService(
        maps_repository=get_maps_repository(),
        fallback_box=BoundingBox(
            lat_min=settings.FALLBACK_LAT_MIN,
            lat_max=settings.FALLBACK_LAT_MAX,
            lng_min=settings.FALLBACK_LNG_MIN,
            lng_max=settings.FALLBACK_LNG_MAX,
        ),
        delay_seconds=settings.GEOCODE_DELAY_SECONDS,
        simulate=settings.maps_simulated,
    )


@lru_cache()
def get_optimization_service() -> RouteOptimizationService:
    return RouteOptimizationService(
        maps_repository=get_maps_repository(),
        simulate=get_settings().maps_simulated,
    )


@lru_cache()
def get_route_planner() -> RoutePlanner:
    """Get RoutePlanner instance."""
    return RoutePlanner(
        store=get_route_store(),
        normalizer=AddressNormalizer(),
        geocoding_service=get_geocoding_service(),
        optimization_service=get_optimization_service(),
        sheets_repository=get_sheets_repository(),
    )


@lru_cache()
def get_notification_service() -> NotificationService:
    """Get NotificationService instance."""
    return NotificationService(store=get_route_store(), line_repository=get_line_repository())
