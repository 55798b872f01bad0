"""Account registration, activation codes and login."""
from __future__ import annotations

import hmac
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

import pyotp
from sqlalchemy.exc import IntegrityError

from common.auth import authenticate_user, create_access_token, get_password_hash
from common.config import get_settings
from common.exceptions import AuthenticationError, NotFoundError, OtpError, ValidationFailedError
from common.mappers import user_to_response
from common.models import Otp, User
from common.repositories import OtpRepository, UserRepository
from common.schemas import SetPasswordRequest, TokenResponse, UserLogin, UserRegister, UserResponse

logger = logging.getLogger(__name__)

OtpSender = Callable[[str, str], None]


def log_otp_dispatch(phone_number: str, code: str) -> None:
    """Default sender used when no SMS gateway is configured."""
    logger.info("Activation code dispatched to %s", phone_number)
    logger.debug("Activation code for %s is %s", phone_number, code)


class OtpService:
    def __init__(self, otps: OtpRepository, users: UserRepository, sender: Optional[OtpSender] = None) -> None:
        self.otps = otps
        self.users = users
        self.sender = sender or log_otp_dispatch
        self.settings = get_settings()

    def generate_otp_code(self) -> str:
        return pyotp.TOTP(pyotp.random_base32(), digits=self.settings.otp_length).now()

    def create_otp(self, user: User) -> Otp:
        """Issue a fresh code for ``user``, replacing any previous one."""
        self.otps.discard_for_user(user.id)
        otp = Otp(
            user_id=user.id,
            code=self.generate_otp_code(),
            expires_at=datetime.utcnow() + timedelta(minutes=self.settings.otp_expire_minutes),
        )
        return self.otps.save(otp)

    def send_otp_sms(self, phone_number: str, code: str) -> None:
        self.sender(phone_number, code)

    def verify_otp(self, otp_code: str, phone_number: str) -> UserResponse:
        user = self._user_by_phone(phone_number)
        otp = self.otps.get_by_user_id(user.id)
        if otp is None:
            raise OtpError("No activation code was issued for this phone number")
        if otp.expires_at < datetime.utcnow():
            raise OtpError("Activation code has expired")
        if not hmac.compare_digest(otp.code.encode(), otp_code.encode()):
            raise OtpError("Invalid activation code")

        self.otps.discard_for_user(user.id)
        user.enabled = True
        user = self.users.save(user)
        logger.info("User %s activated", user.id)
        return user_to_response(user)

    def resend_otp(self, phone_number: str) -> None:
        user = self._user_by_phone(phone_number)
        if user.enabled:
            raise OtpError("Account is already activated")
        otp = self.create_otp(user)
        self.send_otp_sms(phone_number, otp.code)

    def delete_otp(self, user: User) -> None:
        otp = self.otps.get_by_user_id(user.id)
        if otp is not None:
            self.otps.delete(otp)

    def _user_by_phone(self, phone_number: str) -> User:
        user = self.users.get_by_phone(phone_number)
        if user is None:
            raise NotFoundError(f"User with phone number {phone_number} not found")
        return user


class UserService:
    def __init__(self, users: UserRepository, otp_service: OtpService) -> None:
        self.users = users
        self.otp_service = otp_service

    def register_user(self, request: UserRegister) -> UserResponse:
        if self.users.exists_by_email(request.email):
            raise ValidationFailedError("Email is already registered")
        if self.users.exists_by_phone(request.phone_number):
            raise ValidationFailedError("Phone number is already registered")

        user = User(
            full_name=request.full_name,
            email=request.email,
            phone_number=request.phone_number,
            date_of_birth=request.date_of_birth,
            gender=request.gender,
            enabled=False,
        )
        try:
            user = self.users.save(user)
        except IntegrityError as exc:
            raise ValidationFailedError("Email or phone number is already registered") from exc

        otp = self.otp_service.create_otp(user)
        self.otp_service.send_otp_sms(request.phone_number, otp.code)
        logger.info("Registered user %s, awaiting activation", user.id)
        return user_to_response(user)

    def set_password(self, request: SetPasswordRequest) -> None:
        user = self.users.get_by_phone(request.phone_number)
        if user is None:
            raise NotFoundError(f"User with phone number {request.phone_number} not found")
        if not user.enabled:
            raise ValidationFailedError("Account must be activated before setting a password")
        if user.password_hash is not None:
            raise ValidationFailedError("Password has already been set for this account")
        user.password_hash = get_password_hash(request.password)
        self.users.save(user)

    def login(self, request: UserLogin) -> TokenResponse:
        user = authenticate_user(self.users.db, request.email, request.password)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        if not user.enabled:
            raise AuthenticationError("Account is not activated")
        token = create_access_token({"sub": user.email, "user_id": user.id})
        return TokenResponse(access_token=token, user=user_to_response(user))

    def get_user(self, user_id: int) -> UserResponse:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError.for_entity("User", user_id)
        return user_to_response(user)
