import functools
from typing import Any, Awaitable, Callable, TypeVar

from fastapi import status
from starlette.exceptions import HTTPException

from core.api_response import error_response
from core.logging_config import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def exception_handler(message: str) -> Callable[[F], F]:
    """
    Convert unexpected endpoint failures into a 500 ``{"error": message}``.

    ``HTTPException`` passes through to the application's handler.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception:
                logger.exception(f"{message} ({func.__name__})")
                return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

        return wrapper  # type: ignore[return-value]

    return decorator
