from typing import Iterable
from urllib.parse import quote

from routemate.models.stops import Address
from routemate.services.ordering import order_stops

MAPS_DIRECTIONS_BASE_URL = "https://www.google.com/maps/dir/"
# Punctuation kept literal in path segments, alongside quote()'s own safe set
URI_COMPONENT_SAFE = "!~*'()"


def build_maps_url(addresses: Iterable[Address], base_url: str = MAPS_DIRECTIONS_BASE_URL) -> str:
    """Google Maps directions link with one path segment per stop, in travel order.

    A stop contributes ``lat,lng`` when it has both, its address otherwise.
    No stops, no link.
    """
    ordered = order_stops(addresses)
    if not ordered:
        return ""

    url = base_url
    for address in ordered:
        location = f"{address.lat},{address.lng}" if address.has_coordinates else address.address
        url += quote(location, safe=URI_COMPONENT_SAFE) + "/"
    return url
