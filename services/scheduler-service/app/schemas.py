from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HostStatus(BaseModel):
    id: str
    name: str
    email: str
    connected: bool


class HostInfo(BaseModel):
    id: str
    name: str
    email: str


class SlotResponse(CamelModel):
    start_time: datetime


class BookSlotRequest(CamelModel):
    start_time: datetime
    guest_name: str = Field(min_length=1)
    guest_email: str = Field(min_length=3)
    topic: str = Field(min_length=1)


class BookingResponse(CamelModel):
    booking_id: str
    start_time: datetime
    assigned_host: HostInfo
    guest_name: str
    guest_email: str
    topic: str
    meeting_link: Optional[str] = None


class ErrorResponse(BaseModel):
    detail: str
    error: str


HostStatusList = List[HostStatus]
SlotList = List[SlotResponse]
