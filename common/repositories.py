"""Persistence gateway: thin query wrappers around a SQLAlchemy session.

Repositories hold no business rules. ``add`` stages a row and flushes it so the
generated id is available; ``save`` commits the unit of work and refreshes the
row. A failed commit is rolled back before the database error propagates.
"""
from __future__ import annotations

from datetime import date
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .database import Base
from .models import Booking, BookingStatus, Hotel, HotelImage, Otp, Review, Room, User

ModelT = TypeVar("ModelT", bound=Base)


class SqlAlchemyRepository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, entity_id: int) -> Optional[ModelT]:
        return self.db.query(self.model).filter(self.model.id == entity_id).first()

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def save(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        self.db.refresh(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.commit()


class UserRepository(SqlAlchemyRepository[User]):
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_by_phone(self, phone_number: str) -> Optional[User]:
        return self.db.query(User).filter(User.phone_number == phone_number).first()

    def exists_by_email(self, email: str) -> bool:
        return self.db.query(self.db.query(User).filter(User.email == email).exists()).scalar()

    def exists_by_phone(self, phone_number: str) -> bool:
        return self.db.query(self.db.query(User).filter(User.phone_number == phone_number).exists()).scalar()


class OtpRepository(SqlAlchemyRepository[Otp]):
    model = Otp

    def get_by_user_id(self, user_id: int) -> Optional[Otp]:
        return self.db.query(Otp).filter(Otp.user_id == user_id).first()

    def discard_for_user(self, user_id: int) -> None:
        """Stage deletion of the user's code; committed with the next ``save``."""
        self.db.query(Otp).filter(Otp.user_id == user_id).delete(synchronize_session=False)
        self.db.flush()


class HotelRepository(SqlAlchemyRepository[Hotel]):
    model = Hotel

    def list_all(self) -> List[Hotel]:
        return self.db.query(Hotel).order_by(Hotel.id).all()

    def search(self, keyword: Optional[str] = None, city: Optional[str] = None) -> List[Hotel]:
        query = self.db.query(Hotel)
        if keyword:
            pattern = f"%{keyword}%"
            query = query.filter(
                or_(
                    Hotel.hotel_name.ilike(pattern),
                    Hotel.address.ilike(pattern),
                    Hotel.description.ilike(pattern),
                )
            )
        if city:
            query = query.filter(Hotel.city.ilike(f"%{city}%"))
        return query.order_by(Hotel.id).all()


class HotelImageRepository(SqlAlchemyRepository[HotelImage]):
    model = HotelImage

    def list_by_hotel(self, hotel_id: int) -> List[HotelImage]:
        return self.db.query(HotelImage).filter(HotelImage.hotel_id == hotel_id).order_by(HotelImage.id).all()


class RoomRepository(SqlAlchemyRepository[Room]):
    model = Room

    def list_by_hotel(self, hotel_id: int) -> List[Room]:
        return self.db.query(Room).filter(Room.hotel_id == hotel_id).order_by(Room.id).all()


class BookingRepository(SqlAlchemyRepository[Booking]):
    model = Booking

    def list_by_user(self, user_id: int) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        )

    def list_upcoming(self, user_id: int, today: date) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.user_id == user_id, Booking.check_out > today)
            .order_by(Booking.check_in, Booking.id)
            .all()
        )

    def list_by_status(self, user_id: int, booking_status: BookingStatus) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.user_id == user_id, Booking.status == booking_status)
            .order_by(Booking.check_in.desc(), Booking.id.desc())
            .all()
        )


class ReviewRepository(SqlAlchemyRepository[Review]):
    model = Review

    def list_by_room_newest_first(self, room_id: int) -> List[Review]:
        return (
            self.db.query(Review)
            .filter(Review.room_id == room_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    def list_by_user(self, user_id: int) -> List[Review]:
        return self.db.query(Review).filter(Review.user_id == user_id).all()

    def exists_by_user_and_room(self, user_id: int, room_id: int) -> bool:
        query = self.db.query(Review).filter(Review.user_id == user_id, Review.room_id == room_id)
        return self.db.query(query.exists()).scalar()
