import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional

from routemate.core.exceptions import NotFoundError, ValidationError
from routemate.models.route import RouteWithAddresses
from routemate.models.stops import NormalizedStop, StopInput
from routemate.repositories.base import RouteStore
from routemate.repositories.sheets.google_sheets import GoogleSheetsRepository
from routemate.services.geocoding import GeocodingService
from routemate.services.links import build_maps_url
from routemate.services.normalizer import AddressNormalizer, read_csv_records
from routemate.services.optimization import RouteOptimizationService

logger = logging.getLogger(__name__)

MANUAL_ROUTE_PREFIX = "路線"
CSV_ROUTE_PREFIX = "CSV匯入"
SHEET_ROUTE_PREFIX = "Sheet匯入"


class RoutePlanner:
    """Runs a planning request end to end.

    normalize -> create route and addresses -> geocode -> store coordinates ->
    re-read canonical order -> optimize -> build link -> store results.
    Input is validated before anything is written.
    """

    def __init__(
        self,
        store: RouteStore,
        normalizer: AddressNormalizer,
        geocoding_service: GeocodingService,
        optimization_service: RouteOptimizationService,
        sheets_repository: Optional[GoogleSheetsRepository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.normalizer = normalizer
        self.geocoding_service = geocoding_service
        self.optimization_service = optimization_service
        self.sheets_repository = sheets_repository
        self.clock = clock

    def _route_name(self, prefix: str) -> str:
        return f"{prefix} {self.clock().strftime('%Y/%m/%d %H:%M:%S')}"

    async def plan_manual(
        self, start_point: StopInput, waypoints: List[StopInput], end_point: StopInput
    ) -> RouteWithAddresses:
        stops = self.normalizer.normalize_manual(start_point, waypoints, end_point)
        return await self.plan(stops, self._route_name(MANUAL_ROUTE_PREFIX))

    async def plan_from_records(
        self, records: Iterable[Mapping[str, Any]], prefix: str = CSV_ROUTE_PREFIX
    ) -> RouteWithAddresses:
        stops = self.normalizer.normalize_records(records)
        return await self.plan(stops, self._route_name(prefix))

    async def plan_from_csv(self, content: bytes) -> RouteWithAddresses:
        return await self.plan_from_records(read_csv_records(content), CSV_ROUTE_PREFIX)

    async def plan_from_sheet(self, url: str) -> RouteWithAddresses:
        if self.sheets_repository is None:
            raise ValidationError("Spreadsheet import is not available")
        content = await self.sheets_repository.fetch_csv(url)
        return await self.plan_from_records(read_csv_records(content), SHEET_ROUTE_PREFIX)

    async def plan(self, stops: List[NormalizedStop], name: str) -> RouteWithAddresses:
        if not stops:
            raise ValidationError("no usable address rows")

        route = await self.store.create_route(name=name)
        logger.info(f"Planning route {route.id} '{name}' with {len(stops)} stops")

        created = [
            await self.store.create_address(
                route_id=route.id,
                address=stop.address,
                note=stop.note,
                is_start_point=stop.is_start_point,
                is_end_point=stop.is_end_point,
                sequence=stop.sequence,
            )
            for stop in stops
        ]

        geocoded = await self.geocoding_service.geocode_addresses(created)
        # Each write targets its own address id
        await asyncio.gather(
            *(self.store.update_address_coordinates(a.id, a.lat, a.lng) for a in geocoded)
        )

        addresses = await self.store.get_addresses_by_route_id(route.id)
        metrics = await self.optimization_service.optimize(addresses)
        maps_url = build_maps_url(addresses)

        updated = await self.store.update_route(
            route.id,
            {"distance": metrics.distance, "duration": metrics.duration, "maps_url": maps_url},
        )
        logger.info(f"Route {route.id} planned: {metrics.distance}, {metrics.duration}")
        return RouteWithAddresses.build(updated, addresses)

    async def get_route(self, route_id: int) -> RouteWithAddresses:
        route = await self.store.get_route(route_id)
        if route is None:
            raise NotFoundError(f"Route {route_id} not found")
        addresses = await self.store.get_addresses_by_route_id(route_id)
        return RouteWithAddresses.build(route, addresses)

    async def list_routes(self) -> List[RouteWithAddresses]:
        routes = await self.store.get_all_routes()
        return [
            RouteWithAddresses.build(route, await self.store.get_addresses_by_route_id(route.id))
            for route in routes
        ]
