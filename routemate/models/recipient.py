from pydantic import BaseModel, Field


class Recipient(BaseModel):
    """A LINE user or group that route summaries can be pushed to."""

    id: int
    recipient_name: str = Field(..., alias="recipientName")
    recipient_id: str = Field(..., alias="recipientId")
    is_active: bool = Field(True, alias="isActive")

    class Config:
        populate_by_name = True
