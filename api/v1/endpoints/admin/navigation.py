from fastapi import APIRouter, Request, status
from starlette.responses import JSONResponse

from schemas.admin_user import NavigationItemDetails, NavigationResponse
from services.permissions import get_accessible_nav_items, permissions_for
from utils.guards import current_principal, with_auth

router = APIRouter()


@router.get("/navigation", status_code=status.HTTP_200_OK)
@with_auth
async def navigation(request: Request) -> JSONResponse:
    """
    Sidebar entries and permission list for the caller's role.
    """
    principal = current_principal(request)
    body = NavigationResponse(
        role=principal.role,
        items=[
            NavigationItemDetails.from_item(item)
            for item in get_accessible_nav_items(principal.role)
        ],
        permissions=sorted(str(p) for p in permissions_for(principal.role)),
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))
