from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse

from core.api_response import error_response, validation_error_message
from db.sessions.database import get_db
from schemas.admin_user import (
    AdminUserSchema,
    RoleUpdateRequest,
    RoleUpdateResponse,
    UserListQuery,
)
from services.user_service import get_users, update_user_role
from utils.exception_handlers import exception_handler
from utils.guards import current_principal, with_permission

router = APIRouter()

# Query values and bodies arrive unvalidated and are checked inside the
# handlers, so callers without credentials get 401/403 before any 400.


@router.get("", status_code=status.HTTP_200_OK)
@with_permission("users", "read")
@exception_handler("Failed to fetch users")
async def list_users(
    request: Request,
    page: Optional[str] = Query(None, description="Page number (starts from 1)"),
    limit: Optional[str] = Query(None, description="Users per page (max 100)"),
    search: Optional[str] = Query(None, description="Match against name or email"),
    role: Optional[str] = Query(None, description="Only users with this role"),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    raw = {"page": page, "limit": limit, "search": search, "role": role}
    try:
        params = UserListQuery.model_validate(
            {key: value for key, value in raw.items() if value is not None}
        )
    except ValidationError as exc:
        return error_response(status.HTTP_400_BAD_REQUEST, validation_error_message(exc.errors()))

    result = await get_users(
        db,
        page=params.page,
        limit=params.limit,
        search=params.search,
        role=params.role,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=result.model_dump(mode="json", by_alias=True),
    )


@router.patch(
    "/{user_id}",
    status_code=status.HTTP_200_OK,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": RoleUpdateRequest.model_json_schema(),
                    "example": {"role": "MANAGER"},
                }
            },
        }
    },
)
@with_permission("users", "update")
@exception_handler("Failed to update user role")
async def update_role(
    request: Request,
    user_id: str = Path(..., description="User ID"),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Update a user's role.

    Admins cannot change their own role, nor the role of another admin.
    """
    try:
        payload = await request.json()
        update_data = RoleUpdateRequest.model_validate(payload)
    except ValueError:
        # Malformed JSON and ValidationError are both ValueErrors
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid role specified")

    result = await update_user_role(
        db,
        actor=current_principal(request),
        user_id=user_id,
        new_role=update_data.role,
    )
    if isinstance(result, JSONResponse):
        return result

    body = RoleUpdateResponse(
        message="User role updated successfully",
        user=AdminUserSchema.model_validate(result),
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))
