from fastapi import APIRouter, Depends
from app.core.dependencies import RequestContext, require_authenticated_context
from app.core.exceptions import NotFoundError
from app.models.dashboard import Dashboard
from app.services import dashboard_service

router = APIRouter()


@router.get("", response_model=Dashboard)
async def get_dashboard(ctx: RequestContext = Depends(require_authenticated_context)):
    """
    Account overview for the signed-in user.

    Shows:
    - Profile and linked streaming accounts
    - Engagement score
    - Every ticket the user owns
    - Events the user has purchases for
    """
    dashboard = await dashboard_service.get_dashboard(ctx.user_id)
    if not dashboard:
        raise NotFoundError("User not found")
    return dashboard
