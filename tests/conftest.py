import os
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")

from common.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from common.auth import get_password_hash  # noqa: E402
from common.database import Base, SessionLocal, engine  # noqa: E402
from common.models import Hotel, Room, User  # noqa: E402
from services.bookings.app import app as bookings_app  # noqa: E402
from services.hotels.app import app as hotels_app, hotel_listing_cache  # noqa: E402
from services.reviews.app import app as reviews_app  # noqa: E402
from services.users.app import app as users_app  # noqa: E402

DEFAULT_PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    hotel_listing_cache.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def users_client() -> Generator[TestClient, None, None]:
    with TestClient(users_app) as client:
        yield client


@pytest.fixture()
def hotels_client() -> Generator[TestClient, None, None]:
    with TestClient(hotels_app) as client:
        yield client


@pytest.fixture()
def bookings_client() -> Generator[TestClient, None, None]:
    with TestClient(bookings_app) as client:
        yield client


@pytest.fixture()
def reviews_client() -> Generator[TestClient, None, None]:
    with TestClient(reviews_app) as client:
        yield client


@pytest.fixture()
def make_user(db_session) -> Callable[..., User]:
    """Insert an activated user that can log in with DEFAULT_PASSWORD."""
    counter = {"value": 0}

    def factory(email: str | None = None, full_name: str = "Guest", enabled: bool = True) -> User:
        counter["value"] += 1
        user = User(
            full_name=full_name,
            email=email or f"guest{counter['value']}@example.com",
            phone_number=f"09000000{counter['value']:02d}",
            password_hash=get_password_hash(DEFAULT_PASSWORD),
            enabled=enabled,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture()
def make_room(db_session, make_user) -> Callable[..., Room]:
    """Insert a hotel owned by a fresh user plus one room at ``price`` per night."""

    def factory(price: float = 100.0, room_name: str = "Deluxe Double") -> Room:
        owner = make_user(full_name="Hotel Owner")
        hotel = Hotel(owner_id=owner.id, hotel_name="Seaside Hotel", city="Da Nang", country="Vietnam")
        db_session.add(hotel)
        db_session.flush()
        room = Room(hotel_id=hotel.id, room_name=room_name, room_type="double", price=price, capacity=4)
        db_session.add(room)
        db_session.commit()
        db_session.refresh(room)
        return room

    return factory


@pytest.fixture()
def login_headers(users_client) -> Callable[..., dict[str, str]]:
    def login(email: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
        response = users_client.post("/api/v1/auth/login", json={"email": email, "password": password})
        token = response.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return login
