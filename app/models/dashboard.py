from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from app.models.event import Event
from app.models.purchase import TicketType
from app.models.user import StreamingAccount


class DashboardTicket(BaseModel):
    id: str
    eventId: str
    type: TicketType
    price: float
    purchaseDate: Optional[datetime] = None
    isRedeemed: bool = False


class Dashboard(BaseModel):
    """Account overview for the signed-in user"""
    name: str
    email: str
    streamingAccounts: List[StreamingAccount] = []
    engagementScore: int = 0
    ticketsPurchased: List[DashboardTicket] = []
    registeredEvents: List[Event] = []
