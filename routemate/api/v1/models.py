from typing import List, Optional
from pydantic import BaseModel, Field

from routemate.models.stops import StopInput


# Request Models
class AddressInput(BaseModel):
    start_point: StopInput = Field(..., alias="startPoint", description="Where the route starts")
    waypoints: List[StopInput] = Field(default_factory=list, description="Stops in between, in order")
    end_point: StopInput = Field(..., alias="endPoint", description="Where the route ends")

    class Config:
        populate_by_name = True


class SheetImportRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Share link of a public Google Sheet")


class NotificationRequest(BaseModel):
    route_id: int = Field(..., alias="routeId")
    recipient_id: str = Field(..., alias="recipientId", min_length=1, description="Recipient record id")
    message: Optional[str] = Field(None, description="Custom text; a route summary is sent when omitted")

    class Config:
        populate_by_name = True


# Response Models
class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
