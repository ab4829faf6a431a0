"""
Service-layer exceptions.

Each error kind carries the HTTP status the API layer renders it with, so
routes never have to interpret error kinds themselves.
"""
import logging
from functools import wraps
from typing import Callable, Any

from pymongo.errors import DuplicateKeyError, PyMongoError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base exception for service errors."""
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Bad input shape, length or format."""
    status_code = 400


class WeakPassword(ValidationError):
    """Password shorter than the minimum length."""


class DuplicateIdentity(ServiceError):
    """Email or username already belongs to another account."""
    status_code = 409


class InvalidCredentials(ServiceError):
    """Unknown email or wrong password; the two are not told apart."""
    status_code = 401


class NotFound(ServiceError):
    """Resource absent, or owned by somebody other than the caller."""
    status_code = 404


class MissingToken(ServiceError):
    """No bearer token on a protected route."""
    status_code = 401


class InvalidToken(ServiceError):
    """Bad signature or malformed token payload."""
    status_code = 403


class ExpiredToken(InvalidToken):
    """Valid signature, but the expiry has passed."""


class InternalError(ServiceError):
    status_code = 500


DUPLICATE_IDENTITY_MESSAGE = "User with this email or username already exists"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def handle_store_errors(func: Callable) -> Callable:
    """Decorator translating pymongo failures into service errors."""
    @wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except ServiceError:
            raise
        except DuplicateKeyError as e:
            logger.info(f"Unique index rejected write in {func.__name__}: {e}")
            raise DuplicateIdentity(DUPLICATE_IDENTITY_MESSAGE)
        except PyMongoError as e:
            logger.error(f"Store error in {func.__name__}: {e}", exc_info=True)
            raise InternalError(INTERNAL_ERROR_MESSAGE)
    return wrapper


def format_validation_error(exc) -> str:
    """Flatten a pydantic ValidationError into a single readable message."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", ()))
        parts.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
    return "; ".join(parts)
