"""API models package."""

from .errors import ErrorResponse
from .token import TokenPayload

__all__ = [
    "ErrorResponse",
    "TokenPayload",
]
