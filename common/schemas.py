"""Pydantic schemas shared across the services.

Field names are snake_case in Python and camelCase on the wire; both spellings
are accepted on input.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from .models import BookingStatus

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class APIResponse(CamelModel, Generic[T]):
    success: bool
    message: str
    data: Optional[T] = None


class UserRegister(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone_number: str = Field(..., pattern=r"^\d{9,15}$")
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)


class OtpVerifyRequest(CamelModel):
    phone_number: str
    otp_code: str = Field(..., pattern=r"^\d{4,10}$")


class OtpResendRequest(CamelModel):
    phone_number: str


class SetPasswordRequest(CamelModel):
    phone_number: str
    password: str = Field(..., min_length=8)


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    user_id: int
    full_name: str
    email: str
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    enabled: bool
    created_at: datetime


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class HotelCreate(CamelModel):
    hotel_name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    price_per_night: Optional[float] = Field(None, ge=0)
    image_urls: List[str] = Field(default_factory=list)
    main_image_url: Optional[str] = None


class HotelResponse(CamelModel):
    hotel_id: int
    hotel_name: str
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    price_per_night: Optional[float] = None
    main_image_url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    owner_name: Optional[str] = None


class RoomCreate(CamelModel):
    room_name: str = Field(..., min_length=1, max_length=100)
    room_type: Optional[str] = Field(None, max_length=50)
    price: float = Field(..., ge=0)
    capacity: int = Field(2, ge=1)
    description: Optional[str] = None
    is_available: bool = True


class RoomResponse(CamelModel):
    room_id: int
    hotel_id: int
    hotel_name: Optional[str] = None
    room_name: str
    room_type: Optional[str] = None
    price: float
    capacity: int
    description: Optional[str] = None
    is_available: bool


class BookingRequest(CamelModel):
    room_id: int
    check_in: date
    check_out: date
    adults_count: Optional[int] = Field(None, ge=0)
    children_count: Optional[int] = Field(None, ge=0)
    infants_count: Optional[int] = Field(None, ge=0)


class BookingResponse(CamelModel):
    booking_id: int
    user_id: int
    room_id: int
    room_name: Optional[str] = None
    hotel_id: Optional[int] = None
    hotel_name: Optional[str] = None
    check_in: date
    check_out: date
    nights: int
    total_price: float
    status: BookingStatus
    adults_count: int
    children_count: int
    infants_count: int
    created_at: datetime


class ReviewRequest(CamelModel):
    room_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class ReviewUpdate(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class ReviewResponse(CamelModel):
    review_id: int
    user_id: int
    user_full_name: Optional[str] = None
    room_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
