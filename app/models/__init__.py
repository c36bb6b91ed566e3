# Models module for FanPass API
from app.models.event import (
    Event, EventCreate, EventUpdate, NearbyEvent, GeoLocation, Pricing,
    EventCreatedResponse, EventUpdatedResponse, MessageResponse
)
from app.models.purchase import (
    Ticket, TicketSpec, TicketType, Purchase, PurchaseCreate,
    PurchaseLineItem, PurchaseTicketRef, PurchaseResponse, PurchaseStatus
)
from app.models.user import (
    User, UserResponse, SignupRequest, LoginRequest,
    LinkedAccount, StreamingAccount, StreamingProvider
)
from app.models.dashboard import Dashboard, DashboardTicket
from app.models.music import StreamingStats, MusicStatsResponse
