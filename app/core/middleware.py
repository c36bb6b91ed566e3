import logging
import time
from typing import Optional, Dict, Any
from fastapi import Request

logger = logging.getLogger(__name__)

# Paths that never need a session lookup
PUBLIC_PATHS = ['/', '/health', '/docs', '/redoc', '/openapi.json']


class SessionContext:
    """Session context object"""
    def __init__(self, session_data: Optional[Dict[str, Any]] = None):
        if session_data:
            self.session_id = session_data['session_id']
            self.user_id = session_data['user_id']
            self.email = session_data['email']
            self.name = session_data['name']
            self.expires_at = session_data['expires_at']
            self.is_valid = True
        else:
            self.session_id = None
            self.user_id = None
            self.email = None
            self.name = None
            self.expires_at = None
            self.is_valid = False


async def session_validation_middleware(request: Request, call_next):
    """
    Resolve the session cookie into request.state.session_context.
    Never rejects a request; endpoints decide whether a session is required.
    """
    path = request.url.path

    if path in PUBLIC_PATHS:
        request.state.session_context = SessionContext()
        return await call_next(request)

    from app.core.security import get_session_from_request
    try:
        session_data = await get_session_from_request(request)
        request.state.session_context = SessionContext(session_data)
    except Exception as e:
        logger.warning(f"Session validation error for path {path}: {e}")
        request.state.session_context = SessionContext()

    return await call_next(request)


def get_session_context(request: Request) -> SessionContext:
    """Helper function to get session context from request"""
    return getattr(request.state, 'session_context', SessionContext())


async def request_logging_middleware(request: Request, call_next):
    """Simple request logging middleware"""
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)
    session_context = getattr(request.state, 'session_context', None)
    user_id = getattr(session_context, 'user_id', None) or 'anonymous'

    logger.info(f"{request.method} {request.url.path} | {response.status_code} | {duration}ms | {user_id}")

    return response
