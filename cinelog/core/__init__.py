"""Core infrastructure modules."""

from .security import get_current_user
from .exceptions import (
    CinelogException,
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)
from .logging import setup_logging, get_logger

__all__ = [
    "get_current_user",
    "CinelogException",
    "ConflictError",
    "ForbiddenError",
    "InternalError",
    "InvalidArgumentError",
    "InvalidStateError",
    "NotFoundError",
    "UnauthorizedError",
    "setup_logging",
    "get_logger",
]
