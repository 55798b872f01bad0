"""Builders for the uniform success/error envelope."""
from typing import Any, Optional

from .schemas import APIResponse


def success_response(data: Any, message: str = "OK") -> APIResponse:
    return APIResponse(success=True, message=message, data=data)


def error_response(message: str, data: Optional[Any] = None) -> APIResponse:
    return APIResponse(success=False, message=message, data=data)
