from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse

from core.api_response import error_response
from core.config import settings
from db.models.user import User
from db.sessions.database import get_db
from schemas.auth import LoginRequest, RegisterRequest, UserDetails
from services.session import clear_session, start_session
from services.user_service import authenticate_user, fetch_user_by_id, register_user
from utils.exception_handlers import exception_handler
from utils.guards import current_principal, with_auth
from utils.jwt import generate_token

router = APIRouter()


def _set_auth_cookie(response: JSONResponse, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_TOKEN_EXPIRE_SECONDS,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def _authenticated_response(user: User, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    token = generate_token(user_id=user.id, email=user.email, role=user.role)
    response = JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "user": UserDetails.model_validate(user).model_dump(mode="json"),
            "token": token,
        },
    )
    _set_auth_cookie(response, token)
    return response


@router.post("/register", status_code=status.HTTP_201_CREATED)
@exception_handler("Internal server error")
async def register(
    request: Request,
    register_data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Create a customer account. Public sign-up always yields a USER.
    """
    result = await register_user(db, register_data)
    if isinstance(result, JSONResponse):
        return result

    start_session(request, result)
    return _authenticated_response(result, status_code=status.HTTP_201_CREATED)


@router.post("/login")
@exception_handler("Internal server error")
async def login(
    request: Request,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Check credentials, open a cookie session and issue a 7-day auth token.
    """
    user = await authenticate_user(db, login_data.email, login_data.password)
    if not user:
        return error_response(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    start_session(request, user)
    return _authenticated_response(user)


@router.post("/logout")
async def logout(request: Request) -> JSONResponse:
    clear_session(request)
    response = JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"success": True, "message": "Logged out successfully"},
    )
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response


@router.get("/me")
@with_auth
@exception_handler("Internal server error")
async def me(request: Request, db: AsyncSession = Depends(get_db)) -> JSONResponse:
    principal = current_principal(request)
    user = await fetch_user_by_id(db, principal.user_id)
    if not user:
        return error_response(status.HTTP_404_NOT_FOUND, "User not found")

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "user": {
                **UserDetails.model_validate(user).model_dump(mode="json"),
                "createdAt": user.created_at.isoformat() if user.created_at else None,
            },
        },
    )
