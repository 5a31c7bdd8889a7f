from typing import Any, Mapping, Optional, Sequence

from starlette.responses import JSONResponse

from core.logging_config import get_logger

logger = get_logger(__name__)


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    """The ``{"error": ...}`` body every failure path returns."""
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def validation_error_message(
    errors: Sequence[Mapping[str, Any]], default: str = "Invalid request data"
) -> str:
    """First pydantic error message, without the "Value error, " prefix."""
    if not errors:
        return default
    return str(errors[0].get("msg", default)).removeprefix("Value error, ")


def api_response(
    status_code: int,
    message: str,
    data: Optional[Any] = None,
    log_error: bool = False,
) -> JSONResponse:
    """
    Build a JSON response and log it.

    Status codes >= 400 produce an error body and are logged at error level
    when ``log_error`` is set, warning level otherwise.
    """
    log_message = f"API Response - Code: {status_code}, Message: {message}"

    if status_code >= 400:
        if log_error:
            logger.error(log_message)
        else:
            logger.warning(log_message)
        return error_response(status_code, message)

    logger.info(log_message)
    content: dict[str, Any] = {"message": message}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content)
