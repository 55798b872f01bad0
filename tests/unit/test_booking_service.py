"""Unit tests for the booking lifecycle."""
from datetime import date, timedelta

import pytest

from common.exceptions import (
    InvalidStatusTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from common.models import BookingStatus
from common.repositories import BookingRepository, RoomRepository
from common.schemas import BookingRequest
from services.bookings.service import ALLOWED_TRANSITIONS, BookingService, calculate_total_price


@pytest.fixture()
def service(db_session):
    return BookingService(BookingRepository(db_session), RoomRepository(db_session), today=lambda: date(2025, 6, 1))


def request_for(room_id: int, check_in: date, nights: int, adults=2, children=1, infants=None) -> BookingRequest:
    return BookingRequest(
        room_id=room_id,
        check_in=check_in,
        check_out=check_in + timedelta(days=nights),
        adults_count=adults,
        children_count=children,
        infants_count=infants,
    )


class TestPricing:
    def test_reference_example(self):
        assert calculate_total_price(100, adults=2, children=1, nights=3) == 900

    def test_children_pay_like_adults(self):
        assert calculate_total_price(50, adults=1, children=2, nights=1) == calculate_total_price(50, 3, 0, 1)


class TestCreateBooking:
    def test_creates_pending_booking(self, service, make_user, make_room):
        guest = make_user()
        room = make_room(price=100)

        booking = service.create_booking(guest.id, request_for(room.id, date(2025, 7, 1), nights=3, infants=2))

        assert booking.total_price == 900
        assert booking.status is BookingStatus.PENDING
        assert booking.infants_count == 2
        assert booking.nights == 3

    def test_missing_counts_are_zero(self, service, make_user, make_room):
        guest = make_user()
        room = make_room(price=40)

        booking = service.create_booking(guest.id, request_for(room.id, date(2025, 7, 1), 2, adults=1, children=None))

        assert booking.children_count == 0
        assert booking.total_price == 80

    @pytest.mark.parametrize("nights", [0, -1])
    def test_rejects_non_positive_nights(self, service, make_user, make_room, nights):
        guest = make_user()
        room = make_room()

        with pytest.raises(ValidationFailedError):
            service.create_booking(guest.id, request_for(room.id, date(2025, 7, 1), nights))

    def test_unknown_room(self, service, make_user):
        with pytest.raises(NotFoundError):
            service.create_booking(make_user().id, request_for(42, date(2025, 7, 1), 1))


class TestTransitions:
    def test_transition_table_never_returns_to_pending(self):
        assert all(BookingStatus.PENDING not in targets for targets in ALLOWED_TRANSITIONS.values())

    def test_owner_can_confirm(self, service, make_user, make_room):
        guest = make_user()
        booking = service.create_booking(guest.id, request_for(make_room().id, date(2025, 7, 1), 1))

        confirmed = service.confirm_booking(guest.id, booking.booking_id)

        assert confirmed.status is BookingStatus.CONFIRMED
        assert service.get_booking_by_id(booking.booking_id).status is BookingStatus.CONFIRMED

    def test_non_owner_is_refused(self, service, make_user, make_room):
        guest = make_user()
        other = make_user()
        booking = service.create_booking(guest.id, request_for(make_room().id, date(2025, 7, 1), 1))

        with pytest.raises(PermissionDeniedError):
            service.cancel_booking(other.id, booking.booking_id)
        with pytest.raises(PermissionDeniedError):
            service.confirm_booking(other.id, booking.booking_id)

    def test_cancelled_is_terminal(self, service, make_user, make_room):
        guest = make_user()
        booking = service.create_booking(guest.id, request_for(make_room().id, date(2025, 7, 1), 1))
        service.cancel_booking(guest.id, booking.booking_id)

        with pytest.raises(InvalidStatusTransitionError):
            service.confirm_booking(guest.id, booking.booking_id)
        with pytest.raises(InvalidStatusTransitionError):
            service.cancel_booking(guest.id, booking.booking_id)


class TestQueries:
    def test_upcoming_uses_check_out_after_today(self, service, make_user, make_room):
        guest = make_user()
        room = make_room()
        # Ends today: not upcoming. Ends tomorrow: upcoming.
        service.create_booking(guest.id, request_for(room.id, date(2025, 5, 30), 2))
        service.create_booking(guest.id, request_for(room.id, date(2025, 5, 31), 2))

        upcoming = service.get_upcoming_bookings(guest.id)

        assert [b.check_out for b in upcoming] == [date(2025, 6, 2)]

    def test_past_returns_confirmed_regardless_of_date(self, service, make_user, make_room):
        guest = make_user()
        room = make_room()
        future = service.create_booking(guest.id, request_for(room.id, date(2026, 1, 1), 1))
        service.create_booking(guest.id, request_for(room.id, date(2024, 1, 1), 1))
        service.confirm_booking(guest.id, future.booking_id)

        past = service.get_past_bookings(guest.id)

        assert [b.booking_id for b in past] == [future.booking_id]

    def test_user_bookings_and_missing_id(self, service, make_user, make_room):
        guest = make_user()
        service.create_booking(guest.id, request_for(make_room().id, date(2025, 7, 1), 1))

        assert len(service.get_user_bookings(guest.id)) == 1
        assert service.get_user_bookings(guest.id + 100) == []
        with pytest.raises(NotFoundError):
            service.get_booking_by_id(999)
