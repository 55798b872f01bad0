"""Entity to response-schema conversion."""
from typing import Iterable, List

from .models import Booking, Hotel, Review, Room, User
from .schemas import BookingResponse, HotelResponse, ReviewResponse, RoomResponse, UserResponse


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        user_id=user.id,
        full_name=user.full_name,
        email=user.email,
        phone_number=user.phone_number,
        date_of_birth=user.date_of_birth,
        gender=user.gender,
        enabled=user.enabled,
        created_at=user.created_at,
    )


def hotel_to_response(hotel: Hotel) -> HotelResponse:
    images = list(hotel.images or [])
    main = next((image for image in images if image.is_main), images[0] if images else None)
    return HotelResponse(
        hotel_id=hotel.id,
        hotel_name=hotel.hotel_name,
        address=hotel.address,
        city=hotel.city,
        country=hotel.country,
        description=hotel.description,
        price_per_night=hotel.price_per_night,
        main_image_url=main.image_url if main else None,
        image_urls=[image.image_url for image in images],
        owner_name=hotel.owner.full_name if hotel.owner else None,
    )


def room_to_response(room: Room) -> RoomResponse:
    return RoomResponse(
        room_id=room.id,
        hotel_id=room.hotel_id,
        hotel_name=room.hotel.hotel_name if room.hotel else None,
        room_name=room.room_name,
        room_type=room.room_type,
        price=room.price,
        capacity=room.capacity,
        description=room.description,
        is_available=room.is_available,
    )


def booking_to_response(booking: Booking) -> BookingResponse:
    room = booking.room
    hotel = room.hotel if room else None
    return BookingResponse(
        booking_id=booking.id,
        user_id=booking.user_id,
        room_id=booking.room_id,
        room_name=room.room_name if room else None,
        hotel_id=room.hotel_id if room else None,
        hotel_name=hotel.hotel_name if hotel else None,
        check_in=booking.check_in,
        check_out=booking.check_out,
        nights=(booking.check_out - booking.check_in).days,
        total_price=booking.total_price,
        status=booking.status,
        adults_count=booking.adults_count or 0,
        children_count=booking.children_count or 0,
        infants_count=booking.infants_count or 0,
        created_at=booking.created_at,
    )


def review_to_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        review_id=review.id,
        user_id=review.user_id,
        user_full_name=review.user.full_name if review.user else None,
        room_id=review.room_id,
        rating=review.rating,
        comment=review.comment,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


def bookings_to_response(bookings: Iterable[Booking]) -> List[BookingResponse]:
    return [booking_to_response(booking) for booking in bookings]


def reviews_to_response(reviews: Iterable[Review]) -> List[ReviewResponse]:
    return [review_to_response(review) for review in reviews]
