import math
from typing import Optional

from fastapi import status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse

from constants.permissions import Role
from core.api_response import api_response
from core.logging_config import get_logger
from db.models.user import User
from schemas.admin_user import (
    AdminUserSchema,
    PaginatedUserListResponse,
    PaginationInfo,
)
from schemas.auth import Principal, RegisterRequest
from utils.auth import hash_password, verify_password

logger = get_logger(__name__)


async def fetch_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def fetch_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def authenticate_user(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, None otherwise."""
    user = await fetch_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


async def register_user(db: AsyncSession, data: RegisterRequest) -> JSONResponse | User:
    if await fetch_user_by_email(db, data.email):
        return api_response(
            status_code=status.HTTP_409_CONFLICT,
            message="User with this email already exists",
        )

    if data.role and data.role != Role.USER.value:
        logger.warning(f"Ignoring requested role {data.role!r} on public registration")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=Role.USER,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return api_response(
            status_code=status.HTTP_409_CONFLICT,
            message="User with this email already exists",
        )
    await db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


async def ensure_admin_user(
    db: AsyncSession, email: str, password: str, name: str
) -> User:
    """Create the configured admin account unless it already exists."""
    existing = await fetch_user_by_email(db, email)
    if existing:
        return existing

    user = User(
        name=name,
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=Role.ADMIN,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"Seeded admin user {user.email}")
    return user


async def get_users(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    role: Optional[Role] = None,
) -> PaginatedUserListResponse:
    offset = (page - 1) * limit

    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role:
        conditions.append(User.role == role)

    query = select(User)
    count_query = select(func.count(User.id))
    if conditions:
        query = query.where(*conditions)
        count_query = count_query.where(*conditions)

    total = (await db.execute(count_query)).scalar_one()

    query = query.order_by(User.created_at.desc(), User.id).offset(offset).limit(limit)
    users = (await db.execute(query)).scalars().all()

    return PaginatedUserListResponse(
        users=[AdminUserSchema.model_validate(user) for user in users],
        pagination=PaginationInfo(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if limit else 0,
            has_next_page=page * limit < total,
            has_previous_page=page > 1,
        ),
    )


async def update_user_role(
    db: AsyncSession,
    actor: Principal,
    user_id: str,
    new_role: Role,
) -> JSONResponse | User:
    """
    Change another user's role.

    The caller has already passed the ``users:update`` permission check.
    On top of it, nobody may change their own role, and an ADMIN's role
    cannot be changed through this path at all.
    """
    target = await fetch_user_by_id(db, user_id)
    if not target:
        return api_response(
            status_code=status.HTTP_404_NOT_FOUND,
            message="User not found",
        )

    if target.id == actor.user_id:
        return api_response(
            status_code=status.HTTP_403_FORBIDDEN,
            message="Cannot modify your own role",
            log_error=True,
        )

    if target.role == Role.ADMIN:
        return api_response(
            status_code=status.HTTP_403_FORBIDDEN,
            message="Cannot modify admin user roles",
            log_error=True,
        )

    previous = target.role
    target.role = new_role
    await db.commit()
    await db.refresh(target)
    logger.info(
        f"User {actor.user_id} changed role of {target.id} "
        f"from {previous.value} to {new_role.value}"
    )
    return target
