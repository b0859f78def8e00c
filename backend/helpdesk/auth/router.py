# =============================================================================
# HELPDESK API - AUTH ROUTER
# =============================================================================
# ENDPOINTS:
# - POST /auth/register     - Create a customer account
# - POST /auth/login        - Login with email/password
# - POST /auth/logout       - Clear the auth cookie
# - GET  /auth/current-user - Current user
# =============================================================================

from fastapi import APIRouter, Depends, Response

from ..config import config
from ..database import get_db
from ..services import users
from ..utils.response import success_response
from .dependencies import get_current_user
from .models import Actor, LoginRequest, RegisterRequest, Role
from .security import create_access_token, get_token_expiration_seconds


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Access denied"}
    }
)


def _issue_token(response: Response, user: dict) -> str:
    """Create a JWT for user and set it as an http-only cookie."""
    token, _ = create_access_token(user["id"], user["email"], Role(user["role"]))
    response.set_cookie(
        key=config.AUTH_COOKIE_NAME,
        value=token,
        max_age=get_token_expiration_seconds(),
        httponly=True,
        samesite="lax",
    )
    return token


@router.post("/register", status_code=201)
async def register(data: RegisterRequest, response: Response, db=Depends(get_db)):
    """Create a customer account and log it in."""
    user = users.create_user(
        db,
        email=data.email,
        password=data.password,
        name=data.name,
        phone=data.phone,
        address=data.address,
        avatar=data.avatar,
        has_notifications=data.hasNotifications,
    )
    token = _issue_token(response, user)
    return success_response(
        data={"user": user, "token": token},
        message="User registered successfully"
    )


@router.post("/login")
async def login(data: LoginRequest, response: Response, db=Depends(get_db)):
    """Verify credentials, return the token and set the cookie."""
    user = users.authenticate(db, data.email, data.password)
    token = _issue_token(response, user)
    return success_response(
        data={"user": user, "token": token},
        message="Login successful"
    )


@router.post("/logout")
async def logout(response: Response, actor: Actor = Depends(get_current_user)):
    response.delete_cookie(config.AUTH_COOKIE_NAME)
    return success_response(message="Logged out successfully")


@router.get("/current-user")
async def current_user(actor: Actor = Depends(get_current_user), db=Depends(get_db)):
    return success_response(data=users.get_user(db, actor.id), message="Current user retrieved")
