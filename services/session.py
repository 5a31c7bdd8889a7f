from typing import Any, Dict, Optional

from starlette.requests import HTTPConnection

from core.logging_config import get_logger
from db.models.user import User

logger = get_logger(__name__)

SESSION_USER_KEY = "user"


def _session(request: HTTPConnection) -> Optional[Dict[str, Any]]:
    # request.session asserts when SessionMiddleware is not installed
    if "session" not in request.scope:
        return None
    return request.session


async def resolve_session(request: HTTPConnection) -> Optional[Dict[str, Any]]:
    """
    Return the signed-cookie session's ``{"user": {id, email, role}}`` block,
    or None when there is no session or it carries no user.
    """
    session = _session(request)
    if not session:
        return None

    user = session.get(SESSION_USER_KEY)
    if not isinstance(user, dict) or not user.get("id"):
        return None

    return {"user": user}


def start_session(request: HTTPConnection, user: User) -> None:
    session = _session(request)
    if session is None:
        logger.warning("Session middleware is not installed; skipping session login.")
        return

    session[SESSION_USER_KEY] = {
        "id": user.id,
        "email": user.email,
        "role": user.role.value,
    }


def clear_session(request: HTTPConnection) -> None:
    session = _session(request)
    if session is not None:
        session.clear()
