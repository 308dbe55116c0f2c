import logging
from typing import List, Optional

from routemate.core.exceptions import NotFoundError
from routemate.models.recipient import Recipient
from routemate.models.route import Route
from routemate.models.stops import Address
from routemate.repositories.base import RouteStore
from routemate.repositories.messaging.line import LineMessagingRepository

logger = logging.getLogger(__name__)


def build_default_message(route: Route, addresses: List[Address]) -> str:
    """Summary pushed when the caller does not supply its own text."""
    start = next((a.address for a in addresses if a.is_start_point), None)
    end = next((a.address for a in addresses if a.is_end_point), None)
    if start is None:
        start = addresses[0].address if addresses else "起點"
    if end is None:
        end = addresses[-1].address if addresses else "終點"

    return (
        "🚗 路徑規劃結果\n\n"
        f"從: {start}\n"
        f"到: {end}\n"
        f"總距離: {route.distance or '計算中'}\n"
        f"預估時間: {route.duration or '計算中'}\n"
        f"地址數量: {len(addresses)} 個地點\n\n"
        f"Google Maps 路線連結:\n{route.maps_url or '連結生成中'}"
    )


class NotificationService:
    """Push route summaries to LINE recipients and record that it happened."""

    def __init__(self, store: RouteStore, line_repository: Optional[LineMessagingRepository]):
        self.store = store
        self.line_repository = line_repository

    @property
    def simulated(self) -> bool:
        return self.line_repository is None

    async def list_recipients(self) -> List[Recipient]:
        return await self.store.get_all_recipients()

    async def _get_recipient(self, recipient_id: str) -> Recipient:
        try:
            recipient_pk = int(recipient_id)
        except (TypeError, ValueError):
            raise NotFoundError(f"LINE recipient '{recipient_id}' not found") from None
        recipient = await self.store.get_recipient(recipient_pk)
        if recipient is None:
            raise NotFoundError(f"LINE recipient '{recipient_id}' not found")
        return recipient

    async def send_route_notification(self, route_id: int, recipient_id: str, message: Optional[str] = None) -> Route:
        """Push a route summary; the route is marked notified only after a successful push.

        Raises NotFoundError for an unknown route or recipient and lets
        NotificationError from the push propagate.
        """
        route = await self.store.get_route(route_id)
        if route is None:
            raise NotFoundError(f"Route {route_id} not found")
        recipient = await self._get_recipient(recipient_id)

        addresses = await self.store.get_addresses_by_route_id(route.id)
        text = message or build_default_message(route, addresses)

        if self.simulated:
            logger.warning(
                f"LINE access token not configured; simulating push to '{recipient.recipient_id}':\n{text}"
            )
        else:
            await self.line_repository.push_text(recipient.recipient_id, text)

        updated = await self.store.update_route_notification_status(route.id, True)
        logger.info(f"Route {route.id} notification sent to '{recipient.recipient_name}'")
        return updated
