from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from common.cache import ListingCache
from common.config import get_settings
from common.database import Base, engine, get_db
from common.dependencies import get_current_active_user
from common.exceptions import register_exception_handlers
from common.logging_middleware import add_audit_middleware
from common.models import User
from common.rate_limit import apply_rate_limiter, limiter
from common.repositories import HotelImageRepository, HotelRepository, RoomRepository
from common.responses import success_response
from common.schemas import APIResponse, HotelCreate, HotelResponse, RoomCreate, RoomResponse
from services.hotels.service import HotelService, RoomService

settings = get_settings()
hotel_listing_cache: ListingCache[List[HotelResponse]] = ListingCache(ttl=settings.hotel_cache_ttl)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Hotels Service", version="1.0.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    register_exception_handlers(fastapi_app)
    add_audit_middleware(fastapi_app, "hotels")
    Instrumentator().instrument(fastapi_app).expose(fastapi_app)
    return fastapi_app


app = create_app()
router = APIRouter(prefix=settings.api_prefix)


def get_hotel_service(db: Session = Depends(get_db)) -> HotelService:
    return HotelService(HotelRepository(db), HotelImageRepository(db), hotel_listing_cache)


def get_room_service(db: Session = Depends(get_db)) -> RoomService:
    return RoomService(RoomRepository(db), HotelRepository(db))


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "hotels"}


@router.get("/hotels", response_model=APIResponse[List[HotelResponse]], tags=["hotels"])
@limiter.limit("60/minute")
def list_hotels(request: Request, service: HotelService = Depends(get_hotel_service)):
    return success_response(service.list_hotels(), "Fetched hotels")


@router.get("/hotels/search", response_model=APIResponse[List[HotelResponse]], tags=["hotels"])
@limiter.limit("60/minute")
def search_hotels(
    request: Request,
    keyword: Optional[str] = None,
    city: Optional[str] = None,
    service: HotelService = Depends(get_hotel_service),
):
    return success_response(service.search_hotels(keyword, city), "Fetched matching hotels")


@router.get("/hotels/{hotel_id}", response_model=APIResponse[HotelResponse], tags=["hotels"])
@limiter.limit("60/minute")
def get_hotel(request: Request, hotel_id: int, service: HotelService = Depends(get_hotel_service)):
    return success_response(service.get_hotel(hotel_id), "Fetched hotel")


@router.post("/hotels", response_model=APIResponse[HotelResponse], tags=["hotels"])
@limiter.limit("10/minute")
def create_hotel(
    request: Request,
    body: HotelCreate,
    current_user: User = Depends(get_current_active_user),
    service: HotelService = Depends(get_hotel_service),
):
    return success_response(service.create_hotel(current_user.id, body), "Hotel created")


@router.get("/hotels/{hotel_id}/rooms", response_model=APIResponse[List[RoomResponse]], tags=["rooms"])
@limiter.limit("60/minute")
def list_rooms(request: Request, hotel_id: int, service: RoomService = Depends(get_room_service)):
    return success_response(service.list_rooms(hotel_id), "Fetched rooms")


@router.post("/hotels/{hotel_id}/rooms", response_model=APIResponse[RoomResponse], tags=["rooms"])
@limiter.limit("15/minute")
def create_room(
    request: Request,
    hotel_id: int,
    body: RoomCreate,
    current_user: User = Depends(get_current_active_user),
    service: RoomService = Depends(get_room_service),
):
    return success_response(service.create_room(current_user.id, hotel_id, body), "Room created")


@router.get("/rooms/{room_id}", response_model=APIResponse[RoomResponse], tags=["rooms"])
@limiter.limit("60/minute")
def get_room(request: Request, room_id: int, service: RoomService = Depends(get_room_service)):
    return success_response(service.get_room(room_id), "Fetched room")


app.include_router(router)
