from datetime import date

from fastapi import APIRouter, Query, Request, status

from .assignment import AssignmentEngine
from .availability import AvailabilityEngine
from .domain import BookingRequest
from .schemas import (
    BookSlotRequest,
    BookingResponse,
    ErrorResponse,
    HostInfo,
    HostStatusList,
    SlotList,
    SlotResponse,
)

router = APIRouter(prefix="/api")


def _availability(request: Request) -> AvailabilityEngine:
    return request.app.state.availability


def _assignment(request: Request) -> AssignmentEngine:
    return request.app.state.assignment


@router.get("/hosts", response_model=HostStatusList)
async def list_host_statuses(request: Request):
    return request.app.state.registry.statuses()


@router.get(
    "/slots",
    response_model=SlotList,
    responses={503: {"model": ErrorResponse}},
)
async def list_available_slots(request: Request, day: date = Query(alias="date")):
    slots = await _availability(request).list_available_slots(day)
    return [SlotResponse(start_time=s.start) for s in slots]


@router.post(
    "/book",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def book_slot(data: BookSlotRequest, request: Request):
    booking = await _assignment(request).book_slot(BookingRequest(
        start_time=data.start_time,
        guest_name=data.guest_name,
        guest_email=data.guest_email,
        topic=data.topic,
    ))
    return BookingResponse(
        booking_id=booking.id,
        start_time=booking.start_time,
        assigned_host=HostInfo(id=booking.host.id, name=booking.host.name, email=booking.host.email),
        guest_name=booking.guest_name,
        guest_email=booking.guest_email,
        topic=booking.topic,
        meeting_link=booking.meeting_link,
    )
