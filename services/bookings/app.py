from contextlib import asynccontextmanager
from typing import List

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from common.config import get_settings
from common.database import Base, engine, get_db
from common.dependencies import get_current_active_user
from common.exceptions import register_exception_handlers
from common.logging_middleware import add_audit_middleware
from common.models import User
from common.rate_limit import apply_rate_limiter, limiter
from common.repositories import BookingRepository, RoomRepository
from common.responses import success_response
from common.schemas import APIResponse, BookingRequest, BookingResponse
from services.bookings.service import BookingService

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Bookings Service", version="1.0.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    register_exception_handlers(fastapi_app)
    add_audit_middleware(fastapi_app, "bookings")
    Instrumentator().instrument(fastapi_app).expose(fastapi_app)
    return fastapi_app


app = create_app()
router = APIRouter(prefix=f"{settings.api_prefix}/bookings", tags=["bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(BookingRepository(db), RoomRepository(db))


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "bookings"}


@router.post("", response_model=APIResponse[BookingResponse])
@limiter.limit("20/minute")
def create_booking(
    request: Request,
    body: BookingRequest,
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.create_booking(current_user.id, body), "Booking created")


@router.get("/me", response_model=APIResponse[List[BookingResponse]])
@limiter.limit("30/minute")
def list_my_bookings(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.get_user_bookings(current_user.id), "Fetched bookings")


@router.get("/me/upcoming", response_model=APIResponse[List[BookingResponse]])
@limiter.limit("30/minute")
def list_upcoming_bookings(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.get_upcoming_bookings(current_user.id), "Fetched upcoming bookings")


@router.get("/me/past", response_model=APIResponse[List[BookingResponse]])
@limiter.limit("30/minute")
def list_past_bookings(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.get_past_bookings(current_user.id), "Fetched past bookings")


@router.get("/{booking_id}", response_model=APIResponse[BookingResponse])
@limiter.limit("30/minute")
def get_booking(
    request: Request,
    booking_id: int,
    _: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.get_booking_by_id(booking_id), "Fetched booking")


@router.put("/{booking_id}/cancel", response_model=APIResponse[BookingResponse])
@limiter.limit("20/minute")
def cancel_booking(
    request: Request,
    booking_id: int,
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.cancel_booking(current_user.id, booking_id), "Booking cancelled")


@router.put("/{booking_id}/confirm", response_model=APIResponse[BookingResponse])
@limiter.limit("20/minute")
def confirm_booking(
    request: Request,
    booking_id: int,
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.confirm_booking(current_user.id, booking_id), "Booking confirmed")


app.include_router(router)
