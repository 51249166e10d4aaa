from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    message: str


# Members
class MemberCreate(BaseModel):
    email: str = Field(min_length=1)
    name: str


class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    email: str
    qr_url: str = Field(serialization_alias="qrUrl")
    email_sent: bool = Field(serialization_alias="emailSent")
    created_at: datetime = Field(serialization_alias="createdAt")


# Check-in
class CheckinRequest(BaseModel):
    email: Optional[str] = None
    # Opaque OAuth credential forwarded to the attendance sheet client:
    # either a bare access token or a token dict with access_token/refresh_token
    token: Optional[Union[str, Dict[str, Any]]] = None
