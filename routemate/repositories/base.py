from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from routemate.models.recipient import Recipient
from routemate.models.route import Route
from routemate.models.stops import Address


class RouteStore(ABC):
    """Persistence boundary for routes, their addresses and notification recipients.

    Implementations own identity assignment. ``get_addresses_by_route_id``
    must return addresses in canonical travel order.
    """

    # Route operations
    @abstractmethod
    async def create_route(
        self,
        name: str,
        distance: str = "",
        duration: str = "",
        maps_url: str = "",
        line_notification_sent: bool = False,
    ) -> Route:
        """Create a route and assign its id and creation time."""
        pass

    @abstractmethod
    async def get_route(self, route_id: int) -> Optional[Route]:
        pass

    @abstractmethod
    async def get_all_routes(self) -> List[Route]:
        """All routes, newest first."""
        pass

    @abstractmethod
    async def update_route(self, route_id: int, changes: Dict[str, Any]) -> Optional[Route]:
        """Apply a partial update; returns None when the route does not exist."""
        pass

    @abstractmethod
    async def update_route_notification_status(self, route_id: int, sent: bool) -> Optional[Route]:
        pass

    # Address operations
    @abstractmethod
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
        pass

    @abstractmethod
    async def get_addresses_by_route_id(self, route_id: int) -> List[Address]:
        pass

    @abstractmethod
    async def update_address_coordinates(self, address_id: int, lat: str, lng: str) -> Optional[Address]:
        pass

    # Recipient operations
    @abstractmethod
    async def create_recipient(self, recipient_name: str, recipient_id: str, is_active: bool = True) -> Recipient:
        pass

    @abstractmethod
    async def get_all_recipients(self) -> List[Recipient]:
        pass

    @abstractmethod
    async def get_active_recipients(self) -> List[Recipient]:
        pass

    @abstractmethod
    async def get_recipient(self, recipient_pk: int) -> Optional[Recipient]:
        pass
