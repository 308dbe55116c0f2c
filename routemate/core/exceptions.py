"""Domain error hierarchy.

Errors raised by the external map client are defined next to it in
``routemate.repositories.maps.google_maps`` and never leave the gateways;
everything here is meant to reach the caller of a pipeline step.
"""


class RouteMateError(Exception):
    """Base class for route planning errors."""
    pass


class ValidationError(RouteMateError):
    """Input is malformed or holds no usable addresses."""
    pass


class NotFoundError(RouteMateError):
    """A route or notification recipient does not exist."""
    pass


class NotificationError(RouteMateError):
    """The messaging push failed."""
    pass


class GeocodingBatchError(RouteMateError):
    """The geocoding batch itself could not be processed."""
    pass


class SheetImportError(RouteMateError):
    """A spreadsheet could not be downloaded."""
    pass
