from fastapi import APIRouter, Depends, Response
from app.core.dependencies import RequestContext, get_request_context, require_authenticated_context
from app.core.exceptions import AuthenticationError
from app.core.security import set_session_cookie, clear_session_cookie
from app.models.event import MessageResponse
from app.models.user import SignupRequest, LoginRequest, UserResponse
from app.services import users_service, sessions_service
from app.services.auth import PasswordAuthProvider, get_password_provider
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=UserResponse, status_code=201)
async def signup(data: SignupRequest, response: Response):
    """
    Create an account and sign in.

    400 with `errors` for malformed input, 400 "User already exists" for a
    registered email.
    """
    user, session_id = await users_service.create_user(data)
    set_session_cookie(response, session_id)
    return UserResponse(message="User created", user=user)


@router.post("/login", response_model=UserResponse)
async def login(
    data: LoginRequest,
    response: Response,
    provider: PasswordAuthProvider = Depends(get_password_provider)
):
    """
    Verify email + password and start a session.
    """
    user_id = await provider.authenticate({"email": data.email, "password": data.password})

    user = await users_service.get_user(user_id)
    if not user:
        raise AuthenticationError("Invalid email or password")

    session_id = await sessions_service.start_session(user_id)
    set_session_cookie(response, session_id)

    logger.info(f"User logged in: {user.email}")
    return UserResponse(message="Logged in", user=user)


@router.get("/logout", response_model=MessageResponse)
async def logout(response: Response, ctx: RequestContext = Depends(get_request_context)):
    """
    End the current session (if any) and clear the cookie.
    """
    if ctx.session_id:
        await sessions_service.end_session(ctx.session_id)
        logger.info(f"User logged out: {ctx.email}")

    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def get_current_user(ctx: RequestContext = Depends(require_authenticated_context)):
    """
    Get current authenticated user info.
    """
    user = await users_service.get_user(ctx.user_id)
    if not user:
        raise AuthenticationError("Not authenticated")
    return UserResponse(message="Authenticated", user=user)
