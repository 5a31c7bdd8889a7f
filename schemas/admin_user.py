from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constants.permissions import NavigationItem, Role


class RoleUpdateRequest(BaseModel):
    role: Role = Field(..., title="Role", description="New role for the user.")

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, value: Any) -> Any:
        if isinstance(value, Role):
            return value
        if not isinstance(value, str) or value not in Role.__members__:
            raise ValueError("Invalid role specified")
        return value


class UserListQuery(BaseModel):
    page: int = Field(1, ge=1, description="Page number (starts from 1)")
    limit: int = Field(10, ge=1, le=100, description="Users per page (max 100)")
    search: Optional[str] = Field(None, description="Match against name or email")
    role: Optional[Role] = Field(None, description="Only users with this role")


class AdminUserSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: str
    role: Role
    created_at: Optional[datetime] = None


class PaginationInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    pages: int
    has_next_page: bool = Field(..., alias="hasNextPage")
    has_previous_page: bool = Field(..., alias="hasPreviousPage")


class PaginatedUserListResponse(BaseModel):
    users: List[AdminUserSchema]
    pagination: PaginationInfo


class RoleUpdateResponse(BaseModel):
    message: str
    user: AdminUserSchema


class NavigationItemDetails(BaseModel):
    name: str
    href: str
    icon: str
    required_permission: Optional[str] = None
    admin_only: bool = False

    @classmethod
    def from_item(cls, item: NavigationItem) -> "NavigationItemDetails":
        return cls(
            name=item.name,
            href=item.href,
            icon=item.icon,
            required_permission=str(item.required_permission) if item.required_permission else None,
            admin_only=item.admin_only,
        )


class NavigationResponse(BaseModel):
    role: str
    items: List[NavigationItemDetails]
    permissions: List[str]
