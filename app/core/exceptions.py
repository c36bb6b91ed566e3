from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
from typing import Dict, Any, List
from app.core.logging import log_request_context

logger = logging.getLogger(__name__)

class APIError(Exception):
    """Base API exception"""

    def __init__(self, message: str, status_code: int = 500, details: Dict[str, Any] = None,
                 errors: List[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.errors = errors
        super().__init__(self.message)

class ValidationError(APIError):
    """Malformed input"""

    def __init__(self, message: str = "Validation failed", details: Dict[str, Any] = None,
                 errors: List[Dict[str, Any]] = None):
        super().__init__(message, 400, details, errors)

class ConflictError(APIError):
    """Unique constraint violations, e.g. an email that is already registered"""

    def __init__(self, message: str = "Resource already exists", details: Dict[str, Any] = None):
        super().__init__(message, 400, details)

class AuthenticationError(APIError):
    """Missing session or bad credentials"""

    def __init__(self, message: str = "Authentication required", details: Dict[str, Any] = None):
        super().__init__(message, 401, details)

class NotFoundError(APIError):
    """Missing event/user"""

    def __init__(self, message: str = "Not found", details: Dict[str, Any] = None):
        super().__init__(message, 404, details)

class InsufficientInventoryError(APIError):
    """Requested ticket count exceeds remaining inventory"""

    def __init__(self, message: str = "Not enough tickets available", details: Dict[str, Any] = None):
        super().__init__(message, 400, details)

class DatabaseError(APIError):
    """Database operation errors"""

    def __init__(self, message: str = "Database operation failed", details: Dict[str, Any] = None):
        super().__init__(message, 500, details)

class ProviderError(APIError):
    """OAuth or music API provider failures"""

    def __init__(self, message: str = "Provider request failed", details: Dict[str, Any] = None):
        super().__init__(message, 500, details)

def _context_for(request: Request) -> Dict[str, Any]:
    session = getattr(request.state, 'session_context', None)
    return log_request_context(
        session_id=getattr(session, 'session_id', None),
        user_id=getattr(session, 'user_id', None)
    )

async def api_exception_handler(request: Request, exc: APIError):
    """Handle custom API exceptions with logging"""

    context = _context_for(request)
    context.update({
        "error_type": exc.__class__.__name__,
        "status_code": exc.status_code,
        "path": str(request.url.path),
        "method": request.method
    })

    if exc.status_code >= 500:
        logger.error(f"API Error: {exc.message}", extra={"context": context})
    else:
        logger.warning(f"API Error: {exc.message}", extra={"context": context})

    content = {
        "error": True,
        "message": exc.message,
        "details": exc.details,
        "timestamp": context["timestamp"]
    }
    if exc.errors:
        content["errors"] = exc.errors

    return JSONResponse(status_code=exc.status_code, content=content)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render request body/query validation failures as 400 {errors}"""

    errors = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(location),
            "message": err.get("msg", "Invalid value")
        })

    return await api_exception_handler(request, ValidationError("Validation failed", errors=errors))

async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""

    context = _context_for(request)
    context.update({
        "error_type": exc.__class__.__name__,
        "path": str(request.url.path),
        "method": request.method
    })

    logger.error(f"Unexpected error: {str(exc)}", extra={"context": context}, exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "message": "Internal server error",
            "timestamp": context["timestamp"]
        }
    )
