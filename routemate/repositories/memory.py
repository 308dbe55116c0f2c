import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from routemate.models.recipient import Recipient
from routemate.models.route import Route
from routemate.models.stops import Address
from routemate.repositories.base import RouteStore
from routemate.services.ordering import order_stops

logger = logging.getLogger(__name__)

# Recipients every fresh store starts with: (name, LINE recipient id)
DEFAULT_RECIPIENTS: Tuple[Tuple[str, str], ...] = (
    ("運輸部門群組", "transport_group_1"),
    ("配送人員", "delivery_staff"),
    ("主管", "managers"),
)

# Fields a partial route update may touch; id and createdAt are immutable
ROUTE_UPDATABLE_FIELDS = frozenset({"name", "distance", "duration", "maps_url", "line_notification_sent"})


class InMemoryRouteStore(RouteStore):
    """Process-local store backed by insertion-ordered dicts with auto-increment ids."""

    def __init__(self, recipients: Iterable[Tuple[str, str]] = DEFAULT_RECIPIENTS):
        self._routes: Dict[int, Route] = {}
        self._addresses: Dict[int, Address] = {}
        self._recipients: Dict[int, Recipient] = {}

        self._route_next_id = 1
        self._address_next_id = 1
        self._recipient_next_id = 1

        # Single mutation point per entity type
        self._route_lock = asyncio.Lock()
        self._address_lock = asyncio.Lock()
        self._recipient_lock = asyncio.Lock()

        for name, recipient_id in recipients:
            self._add_recipient(name, recipient_id, True)

    # Route operations
    async def create_route(
        self,
        name: str,
        distance: str = "",
        duration: str = "",
        maps_url: str = "",
        line_notification_sent: bool = False,
    ) -> Route:
        async with self._route_lock:
            route = Route(
                id=self._route_next_id,
                name=name,
                distance=distance,
                duration=duration,
                maps_url=maps_url,
                created_at=datetime.now(),
                line_notification_sent=line_notification_sent,
            )
            self._routes[route.id] = route
            self._route_next_id += 1
        logger.debug(f"Created route {route.id} '{name}'")
        return route

    async def get_route(self, route_id: int) -> Optional[Route]:
        return self._routes.get(route_id)

    async def get_all_routes(self) -> List[Route]:
        # Ties on createdAt fall back to the later id first
        return sorted(self._routes.values(), key=lambda r: (r.created_at, r.id), reverse=True)

    async def update_route(self, route_id: int, changes: Dict[str, Any]) -> Optional[Route]:
        unknown = set(changes) - ROUTE_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update route fields: {sorted(unknown)}")
        async with self._route_lock:
            route = self._routes.get(route_id)
            if route is None:
                return None
            updated = route.model_copy(update=changes)
            self._routes[route_id] = updated
        return updated

    async def update_route_notification_status(self, route_id: int, sent: bool) -> Optional[Route]:
        return await self.update_route(route_id, {"line_notification_sent": sent})

    # Address operations
    async def create_address(
        self,
        route_id: int,
        address: str,
        note: str = "",
        is_start_point: bool = False,
        is_end_point: bool = False,
        sequence: Optional[int] = None,
        lat: Optional[str] = None,
        lng: Optional[str] = None,
    ) -> Address:
        async with self._address_lock:
            created = Address(
                id=self._address_next_id,
                address=address,
                note=note,
                is_start_point=is_start_point,
                is_end_point=is_end_point,
                route_id=route_id,
                sequence=sequence,
                lat=lat,
                lng=lng,
            )
            self._addresses[created.id] = created
            self._address_next_id += 1
        return created

    async def get_addresses_by_route_id(self, route_id: int) -> List[Address]:
        return order_stops(a for a in self._addresses.values() if a.route_id == route_id)

    async def update_address_coordinates(self, address_id: int, lat: str, lng: str) -> Optional[Address]:
        async with self._address_lock:
            address = self._addresses.get(address_id)
            if address is None:
                return None
            updated = address.model_copy(update={"lat": lat, "lng": lng})
            self._addresses[address_id] = updated
        return updated

    # Recipient operations
    def _add_recipient(self, recipient_name: str, recipient_id: str, is_active: bool) -> Recipient:
        recipient = Recipient(
            id=self._recipient_next_id,
            recipient_name=recipient_name,
            recipient_id=recipient_id,
            is_active=is_active,
        )
        self._recipients[recipient.id] = recipient
        self._recipient_next_id += 1
        return recipient

    async def create_recipient(self, recipient_name: str, recipient_id: str, is_active: bool = True) -> Recipient:
        async with self._recipient_lock:
            return self._add_recipient(recipient_name, recipient_id, is_active)

    async def get_all_recipients(self) -> List[Recipient]:
        return list(self._recipients.values())

    async def get_active_recipients(self) -> List[Recipient]:
        return [r for r in self._recipients.values() if r.is_active]

    async def get_recipient(self, recipient_pk: int) -> Optional[Recipient]:
        return self._recipients.get(recipient_pk)
