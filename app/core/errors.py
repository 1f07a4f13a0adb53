"""Error taxonomy shared by the lead lifecycle services and the HTTP layer"""
import asyncio
import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import InterfaceError, OperationalError

logger = logging.getLogger(__name__)


class CRMError(Exception):
    code = "error"
    status_code = 400
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(CRMError):
    """Malformed input at the boundary. `details` maps field name to message."""

    code = "validation_error"
    status_code = 422

    @classmethod
    def from_pydantic(cls, errors: list) -> "ValidationError":
        details = {}
        for err in errors:
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            field = ".".join(loc) or "__root__"
            details.setdefault(field, err.get("msg", "Invalid value"))
        return cls("Invalid request data", details)


class InvalidStateError(CRMError):
    code = "invalid_state"
    status_code = 409


class NotFoundError(InvalidStateError):
    code = "not_found"
    status_code = 404

    def __init__(self, resource_name: str, resource_id: Any = None):
        if resource_id is not None:
            message = f"{resource_name} with id {resource_id} not found"
        else:
            message = f"{resource_name} not found"
        super().__init__(message, {"resource": resource_name, "id": resource_id})


class InvalidTransitionError(InvalidStateError):
    code = "invalid_transition"


class TransientIOError(CRMError):
    code = "store_unavailable"
    status_code = 503
    retryable = True


class PartialDataError(CRMError):
    """Never raised; attached to a degraded read as a warning."""

    code = "partial_data"
    status_code = 200


TRANSIENT_EXCEPTIONS = (OperationalError, InterfaceError, ConnectionError, asyncio.TimeoutError)


def catch_transient(func: Callable) -> Callable:
    """Turn store connectivity failures into a failed Result.

    The wrapped coroutine takes the session as its first argument (or `db=`).
    """
    from app.core.result import Result

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except TRANSIENT_EXCEPTIONS as e:
            logger.warning(f"Store unavailable in {func.__name__}: {e}")
            db = kwargs.get("db") or (args[0] if args else None)
            if db is not None:
                try:
                    await db.rollback()
                except Exception as rollback_error:
                    logger.error(f"Rollback failed after store error: {rollback_error}")
            return Result.failure(TransientIOError("Store temporarily unavailable, please retry"))

    return wrapper
