"""
Request guards for back-office endpoints.

A guard wraps an async FastAPI endpoint (which must declare a
``request: Request`` parameter) and decides, before the endpoint runs,
whether the caller may proceed:

1. resolve a principal: cookie session first, then bearer/cookie token;
2. no principal -> 401;
3. principal fails the requirement -> 403;
4. otherwise attach the principal to ``request.state.user`` and return
   whatever the endpoint returns.

Resolution and authorization failures never escape the guard; they are
turned into ``{"error": ...}`` responses. Exceptions raised by the wrapped
endpoint itself are not the guard's business and propagate.
"""

import functools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

from fastapi import Request, status

from constants.permissions import Role
from core.api_response import error_response
from core.logging_config import get_logger
from schemas.auth import Principal
from services.permissions import PermissionPolicy, default_policy
from services.session import resolve_session
from utils.jwt import get_user_from_request

logger = get_logger(__name__)

Handler = Callable[..., Awaitable[Any]]
Resolver = Callable[[Request], Awaitable[Optional[Principal]]]

UNAUTHORIZED = "Unauthorized"
NO_VALID_AUTHENTICATION = "No valid authentication found"


async def session_principal(request: Request) -> Optional[Principal]:
    session = await resolve_session(request)
    if not session:
        return None

    user = session["user"]
    if not user.get("role"):
        return None

    return Principal(
        user_id=str(user["id"]),
        email=str(user.get("email") or ""),
        role=str(user["role"]),
        source="session",
    )


async def token_principal(request: Request) -> Optional[Principal]:
    payload = get_user_from_request(request)
    if payload is None:
        return None

    return Principal(
        user_id=payload.user_id,
        email=payload.email,
        role=payload.role,
        source="token",
    )


DEFAULT_RESOLVERS: Sequence[Resolver] = (session_principal, token_principal)


async def resolve_principal(
    request: Request, resolvers: Sequence[Resolver] = DEFAULT_RESOLVERS
) -> Optional[Principal]:
    """Try each resolver in order; the first principal found wins."""
    for resolver in resolvers:
        try:
            principal = await resolver(request)
        except Exception:
            # A broken session backend or key store must not let anyone in.
            logger.exception(f"Principal resolver {resolver.__name__} failed")
            continue
        if principal is not None:
            return principal
    return None


@dataclass(frozen=True)
class Requirement:
    """What a guarded endpoint demands of a resolved principal."""

    allows: Callable[[PermissionPolicy, str], bool]
    denied_message: str
    unauthenticated_message: str = NO_VALID_AUTHENTICATION


def authenticated() -> Requirement:
    return Requirement(
        allows=lambda policy, role: True,
        denied_message="",
        unauthenticated_message=UNAUTHORIZED,
    )


def permission(resource: str, action: str) -> Requirement:
    return Requirement(
        allows=lambda policy, role: policy.has_permission(role, resource, action),
        denied_message=f"Permission denied: {action} on {resource}",
    )


def minimum_role(required: Role) -> Requirement:
    return Requirement(
        allows=lambda policy, role: policy.has_role_or_higher(role, required),
        denied_message=f"Role {required.value} or higher required",
    )


def _find_request(args: tuple, kwargs: dict) -> Request:
    for value in (*kwargs.values(), *args):
        if isinstance(value, Request):
            return value
    raise TypeError("Guarded endpoints must declare a `request: Request` parameter.")


def guard(
    requirement: Requirement,
    policy: PermissionPolicy = default_policy,
    resolvers: Sequence[Resolver] = DEFAULT_RESOLVERS,
) -> Callable[[Handler], Handler]:
    """Build a decorator enforcing ``requirement`` on an async endpoint."""

    def decorator(handler: Handler) -> Handler:
        @functools.wraps(handler)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            request = _find_request(args, kwargs)

            principal = await resolve_principal(request, resolvers)
            if principal is None:
                logger.info(f"Rejected unauthenticated request to {request.url.path}")
                return error_response(
                    status.HTTP_401_UNAUTHORIZED, requirement.unauthenticated_message
                )

            if not requirement.allows(policy, principal.role):
                logger.warning(
                    f"Denied {principal.role} user {principal.user_id} on "
                    f"{request.url.path}: {requirement.denied_message}"
                )
                return error_response(status.HTTP_403_FORBIDDEN, requirement.denied_message)

            request.state.user = principal
            return await handler(*args, **kwargs)

        return wrapper

    return decorator


def with_auth(handler: Handler) -> Handler:
    return guard(authenticated())(handler)


def with_permission(
    resource: str,
    action: str,
    policy: PermissionPolicy = default_policy,
    resolvers: Sequence[Resolver] = DEFAULT_RESOLVERS,
) -> Callable[[Handler], Handler]:
    return guard(permission(resource, action), policy, resolvers)


def with_role(
    required: Role | str,
    policy: PermissionPolicy = default_policy,
    resolvers: Sequence[Resolver] = DEFAULT_RESOLVERS,
) -> Callable[[Handler], Handler]:
    return guard(minimum_role(Role(required)), policy, resolvers)


def with_admin(handler: Handler) -> Handler:
    return with_role(Role.ADMIN)(handler)


def with_manager_or_admin(handler: Handler) -> Handler:
    return with_role(Role.MANAGER)(handler)


def current_principal(request: Request) -> Principal:
    """The principal a guard attached; only valid inside a guarded endpoint."""
    principal = getattr(request.state, "user", None)
    if principal is None:
        raise RuntimeError("current_principal() called outside a guarded endpoint")
    return principal
