"""Hotel catalogue and rooms."""
from __future__ import annotations

import logging
from typing import List, Optional

from common.cache import ListingCache
from common.exceptions import NotFoundError, PermissionDeniedError
from common.mappers import hotel_to_response, room_to_response
from common.models import Hotel, HotelImage, Room
from common.repositories import HotelImageRepository, HotelRepository, RoomRepository
from common.schemas import HotelCreate, HotelResponse, RoomCreate, RoomResponse

logger = logging.getLogger(__name__)

HOTEL_LISTINGS = "hotels"


class HotelService:
    def __init__(
        self,
        hotels: HotelRepository,
        images: HotelImageRepository,
        cache: ListingCache[List[HotelResponse]],
    ) -> None:
        self.hotels = hotels
        self.images = images
        self.cache = cache

    def list_hotels(self) -> List[HotelResponse]:
        return self.cache.get_or_load(
            (HOTEL_LISTINGS, "all"),
            lambda: [hotel_to_response(hotel) for hotel in self.hotels.list_all()],
        )

    def search_hotels(self, keyword: Optional[str] = None, city: Optional[str] = None) -> List[HotelResponse]:
        keyword = (keyword or "").strip() or None
        city = (city or "").strip() or None
        key = (HOTEL_LISTINGS, "search", (keyword or "").lower(), (city or "").lower())
        return self.cache.get_or_load(
            key,
            lambda: [hotel_to_response(hotel) for hotel in self.hotels.search(keyword, city)],
        )

    def get_hotel(self, hotel_id: int) -> HotelResponse:
        return hotel_to_response(self._load(hotel_id))

    def create_hotel(self, owner_id: int, request: HotelCreate) -> HotelResponse:
        hotel = self.hotels.add(
            Hotel(
                owner_id=owner_id,
                hotel_name=request.hotel_name,
                address=request.address,
                city=request.city,
                country=request.country,
                description=request.description,
                price_per_night=request.price_per_night,
            )
        )
        urls = list(dict.fromkeys(request.image_urls))
        if request.main_image_url and request.main_image_url not in urls:
            urls.insert(0, request.main_image_url)
        main_url = request.main_image_url or (urls[0] if urls else None)
        for url in urls:
            self.images.add(HotelImage(hotel_id=hotel.id, image_url=url, is_main=url == main_url))

        hotel = self.hotels.save(hotel)
        self.cache.invalidate(HOTEL_LISTINGS)
        logger.info("Hotel %s created by user %s with %d images", hotel.id, owner_id, len(urls))
        return hotel_to_response(hotel)

    def _load(self, hotel_id: int) -> Hotel:
        hotel = self.hotels.get(hotel_id)
        if hotel is None:
            raise NotFoundError.for_entity("Hotel", hotel_id)
        return hotel


class RoomService:
    def __init__(self, rooms: RoomRepository, hotels: HotelRepository) -> None:
        self.rooms = rooms
        self.hotels = hotels

    def list_rooms(self, hotel_id: int) -> List[RoomResponse]:
        if self.hotels.get(hotel_id) is None:
            raise NotFoundError.for_entity("Hotel", hotel_id)
        return [room_to_response(room) for room in self.rooms.list_by_hotel(hotel_id)]

    def get_room(self, room_id: int) -> RoomResponse:
        room = self.rooms.get(room_id)
        if room is None:
            raise NotFoundError.for_entity("Room", room_id)
        return room_to_response(room)

    def create_room(self, owner_id: int, hotel_id: int, request: RoomCreate) -> RoomResponse:
        hotel = self.hotels.get(hotel_id)
        if hotel is None:
            raise NotFoundError.for_entity("Hotel", hotel_id)
        if hotel.owner_id != owner_id:
            raise PermissionDeniedError("Only the hotel owner can add rooms")

        room = self.rooms.save(Room(hotel_id=hotel_id, **request.model_dump()))
        logger.info("Room %s added to hotel %s", room.id, hotel_id)
        return room_to_response(room)
