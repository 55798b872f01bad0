from contextlib import asynccontextmanager

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
from common.repositories import OtpRepository, UserRepository
from common.responses import success_response
from common.schemas import (
    APIResponse,
    OtpResendRequest,
    OtpVerifyRequest,
    SetPasswordRequest,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from services.users.service import OtpService, UserService

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Users Service", version="1.0.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    register_exception_handlers(fastapi_app)
    add_audit_middleware(fastapi_app, "users")
    Instrumentator().instrument(fastapi_app).expose(fastapi_app)
    return fastapi_app


app = create_app()
router = APIRouter(prefix=settings.api_prefix)


def get_otp_service(db: Session = Depends(get_db)) -> OtpService:
    return OtpService(OtpRepository(db), UserRepository(db))


def get_user_service(db: Session = Depends(get_db), otp_service: OtpService = Depends(get_otp_service)) -> UserService:
    return UserService(UserRepository(db), otp_service)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "users"}


@router.post("/auth/register", response_model=APIResponse[UserResponse], tags=["auth"])
@limiter.limit("5/minute")
def register(request: Request, body: UserRegister, service: UserService = Depends(get_user_service)):
    user = service.register_user(body)
    return success_response(user, "Registration successful, an activation code has been sent")


@router.post("/auth/verify-otp", response_model=APIResponse[UserResponse], tags=["auth"])
@limiter.limit("10/minute")
def verify_otp(request: Request, body: OtpVerifyRequest, service: OtpService = Depends(get_otp_service)):
    user = service.verify_otp(body.otp_code, body.phone_number)
    return success_response(user, "Account activated")


@router.post("/auth/resend-otp", response_model=APIResponse, tags=["auth"])
@limiter.limit("3/minute")
def resend_otp(request: Request, body: OtpResendRequest, service: OtpService = Depends(get_otp_service)):
    service.resend_otp(body.phone_number)
    return success_response(None, "A new activation code has been sent")


@router.post("/auth/set-password", response_model=APIResponse, tags=["auth"])
@limiter.limit("5/minute")
def set_password(request: Request, body: SetPasswordRequest, service: UserService = Depends(get_user_service)):
    service.set_password(body)
    return success_response(None, "Password set successfully")


@router.post("/auth/login", response_model=APIResponse[TokenResponse], tags=["auth"])
@limiter.limit("10/minute")
def login(request: Request, body: UserLogin, service: UserService = Depends(get_user_service)):
    return success_response(service.login(body), "Login successful")


@router.get("/users/me", response_model=APIResponse[UserResponse], tags=["users"])
@limiter.limit("30/minute")
def read_me(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    service: UserService = Depends(get_user_service),
):
    return success_response(service.get_user(current_user.id), "Fetched current user")


app.include_router(router)
