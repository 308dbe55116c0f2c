import random
from typing import Optional, Tuple
from pydantic import BaseModel, Field


class GeoLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None

    def as_text(self) -> Tuple[str, str]:
        """Latitude and longitude as decimal strings, the form stops are stored in."""
        return str(self.latitude), str(self.longitude)


class BoundingBox(BaseModel):
    """Rectangle that synthetic coordinates are drawn from."""

    lat_min: float = Field(..., ge=-90, le=90)
    lat_max: float = Field(..., ge=-90, le=90)
    lng_min: float = Field(..., ge=-180, le=180)
    lng_max: float = Field(..., ge=-180, le=180)

    def random_point(self, rng: random.Random) -> Tuple[str, str]:
        lat = rng.uniform(self.lat_min, self.lat_max)
        lng = rng.uniform(self.lng_min, self.lng_max)
        return f"{lat:.6f}", f"{lng:.6f}"

    def contains(self, lat: float, lng: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lng_min <= lng <= self.lng_max
