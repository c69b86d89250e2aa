"""Auth Routes - register, login and current user via the hosted auth service."""

from fastapi import APIRouter, Depends, status

from marketdesk.api.dependencies import get_current_user, get_user_directory
from marketdesk.core.domain_types import AuthenticatedUser
from marketdesk.core.repository_protocols import UserDirectory
from marketdesk.schemas.auth import LoginRequest, RegisterRequest, UserResponse

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest, users: UserDirectory = Depends(get_user_directory),
):
    user = await users.sign_up(
        body.email, body.password,
        username=body.username, display_name=body.display_name,
    )
    return {"user": user}


@router.post("/login")
async def login(
    body: LoginRequest, users: UserDirectory = Depends(get_user_directory),
):
    result = await users.sign_in(body.email, body.password)
    return {"message": "Login successful", **result}


@router.get("/me", response_model=UserResponse)
async def me(user: AuthenticatedUser = Depends(get_current_user)):
    return UserResponse(id=user.id, email=user.email, metadata=user.metadata)
