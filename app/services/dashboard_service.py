import logging
from typing import Optional
from app.database import get_db_connection
from app.models.dashboard import Dashboard, DashboardTicket
from app.services import users_service
from app.services.events_service import row_to_event

logger = logging.getLogger(__name__)


async def get_dashboard(user_id: str) -> Optional[Dashboard]:
    """
    Account overview: profile, linked accounts, owned tickets and the
    events the user holds purchases for. Returns None if the user is gone.
    """
    user = await users_service.get_user(user_id)
    if not user:
        return None

    async with get_db_connection(use_transaction=False) as conn:
        tickets = await conn.fetch("""
            SELECT t.id, t.event_id, t.type, t.price, t.is_redeemed,
                   COALESCE(p.transaction_date, t.created_at) AS purchase_date
            FROM tickets t
            LEFT JOIN purchases p ON t.purchase_id = p.id
            WHERE t.user_id = $1
            ORDER BY purchase_date, t.id
        """, user_id)

        events = await conn.fetch("""
            SELECT e.*
            FROM events e
            WHERE e.id IN (SELECT DISTINCT event_id FROM purchases WHERE user_id = $1)
            ORDER BY e.date
        """, user_id)

    return Dashboard(
        name=user.name,
        email=user.email,
        streamingAccounts=user.streamingAccounts,
        engagementScore=user.engagementScore,
        ticketsPurchased=[
            DashboardTicket(
                id=t['id'],
                eventId=t['event_id'],
                type=t['type'],
                price=t['price'],
                purchaseDate=t['purchase_date'],
                isRedeemed=t['is_redeemed']
            )
            for t in tickets
        ],
        registeredEvents=[row_to_event(e) for e in events]
    )
