from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from routemate.models.stops import Address


class RouteMetrics(BaseModel):
    distance: str = Field(..., description="Human-readable total distance")
    duration: str = Field(..., description="Human-readable total driving time")


class DirectionsLeg(BaseModel):
    distance_meters: int = Field(..., ge=0)
    duration_seconds: int = Field(..., ge=0)


class DirectionsResult(BaseModel):
    legs: List[DirectionsLeg]
    waypoint_order: List[int] = Field(default_factory=list)

    @property
    def total_meters(self) -> int:
        return sum(leg.distance_meters for leg in self.legs)

    @property
    def total_seconds(self) -> int:
        return sum(leg.duration_seconds for leg in self.legs)


class Route(BaseModel):
    id: int
    name: str
    distance: Optional[str] = ""
    duration: Optional[str] = ""
    maps_url: Optional[str] = Field("", alias="mapsUrl")
    created_at: datetime = Field(..., alias="createdAt")
    line_notification_sent: bool = Field(False, alias="lineNotificationSent")

    class Config:
        populate_by_name = True


class RouteWithAddresses(Route):
    addresses: List[Address] = Field(default_factory=list)

    @classmethod
    def build(cls, route: Route, addresses: List[Address]) -> "RouteWithAddresses":
        return cls(**route.model_dump(), addresses=addresses)
