import asyncio
from typing import List, Optional
import googlemaps
import googlemaps.exceptions
from routemate.models.location import GeoLocation
from routemate.models.route import DirectionsLeg, DirectionsResult
import logging

logger = logging.getLogger(__name__)

# Custom Exception Hierarchy
class MapsServiceError(Exception):
    """Base class for Google Maps service errors."""
    pass

class GeocodingError(MapsServiceError):
    """Error during geocoding."""
    pass

class DirectionsError(MapsServiceError):
    """Error retrieving directions."""
    pass


class GoogleMapsRepository:
    def __init__(
        self,
        api_key: Optional[str] = None,
        language: str = "zh-TW",
        region: str = "tw",
        timeout: float = 10.0,
        client: Optional[googlemaps.Client] = None,
    ):
        """Initialize Google Maps client."""
        logger.info("Initializing Google Maps client")
        self.client = client or googlemaps.Client(key=api_key, timeout=timeout)
        self.language = language
        self.region = region

    async def geocode(self, address: str) -> GeoLocation:
        """Convert address to coordinates using Google Maps API."""
        logger.info(f"Attempting to geocode address: '{address}'")
        try:
            result = await asyncio.to_thread(
                self.client.geocode, address, language=self.language, region=self.region
            )
            if not result:
                logger.warning(f"No geocoding results found for address: '{address}'")
                raise GeocodingError(f"No results found for address: {address}")

            location_data = result[0]["geometry"]["location"]
            geo_location = GeoLocation(
                latitude=location_data["lat"],
                longitude=location_data["lng"],
                address=result[0].get("formatted_address"),
            )
            logger.info(
                f"Successfully geocoded '{address}' to: lat={geo_location.latitude}, lng={geo_location.longitude}"
            )
            return geo_location
        except GeocodingError:
            raise
        except googlemaps.exceptions.ApiError as e:
            logger.error(f"Google Maps API error while geocoding '{address}': {e}")
            raise GeocodingError(f"API error during geocoding for '{address}': {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error while geocoding '{address}': {e}", exc_info=True)
            raise GeocodingError(f"Unexpected error during geocoding for '{address}': {e}") from e

    async def get_directions(
        self,
        origin: GeoLocation,
        destination: GeoLocation,
        waypoints: Optional[List[GeoLocation]] = None,
        mode: str = "driving",
        optimize_waypoints: bool = True,
    ) -> DirectionsResult:
        """Get a driving route through the waypoints, letting Google reorder them."""
        logger.info(
            f"Attempting to get directions from origin='{origin}' to destination='{destination}' via mode='{mode}'"
            f"{(' with ' + str(len(waypoints)) + ' waypoints') if waypoints else ''}."
        )

        waypoints_formatted: Optional[List[str]] = None
        if waypoints:
            waypoints_formatted = [f"{w.latitude},{w.longitude}" for w in waypoints]

        try:
            directions_result = await asyncio.to_thread(
                self.client.directions,
                origin=f"{origin.latitude},{origin.longitude}",
                destination=f"{destination.latitude},{destination.longitude}",
                mode=mode,
                waypoints=waypoints_formatted,
                optimize_waypoints=bool(waypoints_formatted) and optimize_waypoints,
                language=self.language,
                units="metric",
            )

            if not directions_result:
                logger.warning(f"No route found for origin='{origin}', destination='{destination}'")
                raise DirectionsError(f"No route found between {origin} and {destination}")

            # Get the first (usually optimal) route
            route = directions_result[0]
            legs = [
                DirectionsLeg(
                    distance_meters=int(leg["distance"]["value"]),
                    duration_seconds=int(leg["duration"]["value"]),
                )
                for leg in route["legs"]
            ]
            if not legs:
                raise DirectionsError("Route returned without legs")

            result = DirectionsResult(legs=legs, waypoint_order=route.get("waypoint_order", []))
            logger.info(
                f"Successfully found route: {len(legs)} legs, distance={result.total_meters / 1000:.1f}km, "
                f"duration={result.total_seconds / 60:.0f}min, waypoint_order={result.waypoint_order}"
            )
            return result
        except DirectionsError:
            raise
        except googlemaps.exceptions.ApiError as e:
            logger.error(f"Google Maps API error while getting directions: {e}")
            raise DirectionsError(f"API error while getting directions: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error while getting directions: {e}", exc_info=True)
            raise DirectionsError(f"Unexpected error while getting directions: {e}") from e
