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
from common.repositories import ReviewRepository, RoomRepository
from common.responses import success_response
from common.schemas import APIResponse, ReviewRequest, ReviewResponse, ReviewUpdate
from services.reviews.service import ReviewService

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Reviews Service", version="1.0.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    register_exception_handlers(fastapi_app)
    add_audit_middleware(fastapi_app, "reviews")
    Instrumentator().instrument(fastapi_app).expose(fastapi_app)
    return fastapi_app


app = create_app()
router = APIRouter(prefix=f"{settings.api_prefix}/reviews", tags=["reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(ReviewRepository(db), RoomRepository(db))


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "reviews"}


@router.post("", response_model=APIResponse[ReviewResponse])
@limiter.limit("30/minute")
def create_review(
    request: Request,
    body: ReviewRequest,
    current_user: User = Depends(get_current_active_user),
    service: ReviewService = Depends(get_review_service),
):
    return success_response(service.create_review(current_user.id, body), "Review submitted")


@router.get("/room/{room_id}", response_model=APIResponse[List[ReviewResponse]])
@limiter.limit("60/minute")
def room_reviews(request: Request, room_id: int, service: ReviewService = Depends(get_review_service)):
    return success_response(service.get_reviews_by_room_id(room_id), "Fetched room reviews")


@router.get("/me", response_model=APIResponse[List[ReviewResponse]])
@limiter.limit("30/minute")
def my_reviews(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    service: ReviewService = Depends(get_review_service),
):
    return success_response(service.get_reviews_by_user_id(current_user.id), "Fetched your reviews")


@router.get("/{review_id}", response_model=APIResponse[ReviewResponse])
@limiter.limit("60/minute")
def get_review(request: Request, review_id: int, service: ReviewService = Depends(get_review_service)):
    return success_response(service.get_review_by_id(review_id), "Fetched review")


@router.put("/{review_id}", response_model=APIResponse[ReviewResponse])
@limiter.limit("20/minute")
def update_review(
    request: Request,
    review_id: int,
    body: ReviewUpdate,
    current_user: User = Depends(get_current_active_user),
    service: ReviewService = Depends(get_review_service),
):
    return success_response(service.update_review(current_user.id, review_id, body), "Review updated")


app.include_router(router)
