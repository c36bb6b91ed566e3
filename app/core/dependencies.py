from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, Request
from app.core.middleware import get_session_context
from app.core.exceptions import AuthenticationError


@dataclass(frozen=True)
class RequestContext:
    """
    Explicit per-request context carrying the authenticated principal.

    Routers resolve it once and hand it to the services, which decide
    for themselves whether an anonymous caller is acceptable.
    """
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    session_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "RequestContext":
        return cls()


def get_request_context(request: Request) -> RequestContext:
    """Dependency that builds the request context (may be anonymous)"""
    session = get_session_context(request)
    if not session.is_valid:
        return RequestContext.anonymous()
    return RequestContext(
        user_id=str(session.user_id),
        email=session.email,
        name=session.name,
        session_id=str(session.session_id)
    )


def require_authenticated_context(request: Request) -> RequestContext:
    """
    Dependency that requires a valid authenticated session.
    Raises AuthenticationError if not authenticated.
    """
    ctx = get_request_context(request)
    if not ctx.is_authenticated:
        raise AuthenticationError("Not authenticated")
    return ctx


def require_user_context(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    """
    Guard for routes that act on behalf of a user.

    Sub-dependencies run before the request body is validated, so an
    anonymous caller gets 401 whatever the payload looks like.
    """
    if not ctx.is_authenticated:
        raise AuthenticationError("User not authenticated")
    return ctx
