from typing import Optional
from pydantic import BaseModel, Field


class StopInput(BaseModel):
    """One manually entered location."""

    address: str = Field(..., min_length=1, description="Free-text address")
    note: Optional[str] = Field(None, description="Optional annotation")


class NormalizedStop(BaseModel):
    """A stop produced by the normalizer, not yet persisted."""

    address: str
    note: str = ""
    is_start_point: bool = Field(False, alias="isStartPoint")
    is_end_point: bool = Field(False, alias="isEndPoint")
    sequence: int = 0

    class Config:
        populate_by_name = True


class Address(BaseModel):
    """A persisted stop belonging to a route."""

    id: int
    address: str
    lat: Optional[str] = None
    lng: Optional[str] = None
    note: Optional[str] = ""
    is_start_point: bool = Field(False, alias="isStartPoint")
    is_end_point: bool = Field(False, alias="isEndPoint")
    route_id: int = Field(..., alias="routeId")
    sequence: Optional[int] = None

    @property
    def has_coordinates(self) -> bool:
        return bool(self.lat) and bool(self.lng)

    class Config:
        populate_by_name = True
