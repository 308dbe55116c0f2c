import logging
import math
import random
from typing import List, Optional, Sequence

from routemate.models.location import GeoLocation
from routemate.models.route import DirectionsResult, RouteMetrics
from routemate.models.stops import Address
from routemate.repositories.maps.google_maps import GoogleMapsRepository, MapsServiceError

logger = logging.getLogger(__name__)

DISTANCE_UNIT = "公里"
DURATION_UNIT = "分鐘"


def format_metrics(total_meters: int, total_seconds: int) -> RouteMetrics:
    """Kilometres to one decimal place, minutes rounded up."""
    km = total_meters / 1000
    minutes = math.ceil(total_seconds / 60)
    return RouteMetrics(distance=f"{km:.1f} {DISTANCE_UNIT}", duration=f"{minutes} {DURATION_UNIT}")


class RouteOptimizationService:
    """Ask Google Directions for an optimized route and summarize it.

    Always returns metrics: in simulation mode, or whenever the call cannot
    be made or fails, plausible synthetic values are used instead.
    """

    def __init__(
        self,
        maps_repository: Optional[GoogleMapsRepository],
        simulate: bool = False,
        rng: Optional[random.Random] = None,
    ):
        self.maps_repository = maps_repository
        self.simulate = simulate or maps_repository is None
        self.rng = rng or random.Random()

    def fallback_metrics(self) -> RouteMetrics:
        return RouteMetrics(
            distance=f"{self.rng.randint(5, 24)} {DISTANCE_UNIT}",
            duration=f"{self.rng.randint(10, 39)} {DURATION_UNIT}",
        )

    @staticmethod
    def _to_location(address: Address) -> GeoLocation:
        return GeoLocation(latitude=float(address.lat), longitude=float(address.lng), address=address.address)

    async def optimize(self, addresses: Sequence[Address]) -> RouteMetrics:
        """Summarize a canonically ordered, geocoded stop list."""
        if len(addresses) < 2:
            return format_metrics(0, 0)
        if self.simulate:
            return self.fallback_metrics()

        try:
            locations: List[GeoLocation] = [self._to_location(a) for a in addresses]
        except (TypeError, ValueError) as e:
            logger.warning(f"Stops are missing usable coordinates, using fallback metrics: {e}")
            return self.fallback_metrics()

        try:
            result: DirectionsResult = await self.maps_repository.get_directions(
                origin=locations[0],
                destination=locations[-1],
                waypoints=locations[1:-1],
                optimize_waypoints=True,
            )
        except MapsServiceError as e:
            logger.warning(f"Route optimization failed, using fallback metrics: {e}")
            return self.fallback_metrics()

        return format_metrics(result.total_meters, result.total_seconds)
