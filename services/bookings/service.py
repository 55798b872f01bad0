"""Booking lifecycle: pricing, ownership and status transitions."""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, FrozenSet, List

from common.exceptions import (
    InvalidStatusTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from common.mappers import booking_to_response, bookings_to_response
from common.models import Booking, BookingStatus
from common.repositories import BookingRepository, RoomRepository
from common.schemas import BookingRequest, BookingResponse

logger = logging.getLogger(__name__)

# Statuses each status may move to. Nothing ever returns to PENDING.
ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}


def calculate_total_price(price_per_night: float, adults: int, children: int, nights: int) -> float:
    """Nightly rate times paying guests times nights; infants stay free."""
    return price_per_night * (adults + children) * nights


class BookingService:
    def __init__(
        self,
        bookings: BookingRepository,
        rooms: RoomRepository,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.bookings = bookings
        self.rooms = rooms
        self.today = today

    def create_booking(self, user_id: int, request: BookingRequest) -> BookingResponse:
        room = self.rooms.get(request.room_id)
        if room is None:
            raise NotFoundError.for_entity("Room", request.room_id)

        nights = (request.check_out - request.check_in).days
        if nights <= 0:
            raise ValidationFailedError("Number of nights must be greater than 0")

        adults = request.adults_count or 0
        children = request.children_count or 0
        if adults + children <= 0:
            raise ValidationFailedError("At least one adult or child is required")

        booking = Booking(
            user_id=user_id,
            room_id=room.id,
            check_in=request.check_in,
            check_out=request.check_out,
            total_price=calculate_total_price(room.price, adults, children, nights),
            status=BookingStatus.PENDING,
            adults_count=adults,
            children_count=children,
            infants_count=request.infants_count or 0,
        )
        booking = self.bookings.save(booking)
        logger.info("Booking %s created for user %s, room %s, %d nights", booking.id, user_id, room.id, nights)
        return booking_to_response(booking)

    def cancel_booking(self, user_id: int, booking_id: int) -> BookingResponse:
        return self._transition(user_id, booking_id, BookingStatus.CANCELLED)

    def confirm_booking(self, user_id: int, booking_id: int) -> BookingResponse:
        return self._transition(user_id, booking_id, BookingStatus.CONFIRMED)

    def get_upcoming_bookings(self, user_id: int) -> List[BookingResponse]:
        return bookings_to_response(self.bookings.list_upcoming(user_id, self.today()))

    def get_past_bookings(self, user_id: int) -> List[BookingResponse]:
        # Every confirmed booking, whatever its dates.
        return bookings_to_response(self.bookings.list_by_status(user_id, BookingStatus.CONFIRMED))

    def get_booking_by_id(self, booking_id: int) -> BookingResponse:
        return booking_to_response(self._load(booking_id))

    def get_user_bookings(self, user_id: int) -> List[BookingResponse]:
        return bookings_to_response(self.bookings.list_by_user(user_id))

    def _load(self, booking_id: int) -> Booking:
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError.for_entity("Booking", booking_id)
        return booking

    def _transition(self, user_id: int, booking_id: int, target: BookingStatus) -> BookingResponse:
        booking = self._load(booking_id)
        if booking.user_id != user_id:
            action = "cancel" if target is BookingStatus.CANCELLED else "confirm"
            raise PermissionDeniedError(f"You are not allowed to {action} this booking")
        if target not in ALLOWED_TRANSITIONS[booking.status]:
            raise InvalidStatusTransitionError(
                f"Cannot change booking status from {booking.status.value} to {target.value}"
            )

        previous = booking.status
        booking.status = target
        booking = self.bookings.save(booking)
        logger.info("Booking %s moved from %s to %s", booking.id, previous.value, target.value)
        return booking_to_response(booking)
