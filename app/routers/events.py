from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from app.core.dependencies import RequestContext, require_user_context
from app.core.exceptions import NotFoundError
from app.models.event import (
    Event, EventCreate, EventUpdate, NearbyEvent,
    EventCreatedResponse, EventUpdatedResponse, MessageResponse
)
from app.models.purchase import PurchaseCreate, PurchaseResponse
from app.services import events_service, purchase_service

router = APIRouter()


@router.get("", response_model=List[Event])
async def list_events(
    limit: Optional[int] = Query(None, ge=1, description="Page size; omit for every event"),
    offset: int = Query(0, ge=0)
):
    """
    List all events, soonest first.
    """
    return await events_service.get_events(limit=limit, offset=offset)


@router.get("/nearby", response_model=List[NearbyEvent])
async def list_nearby_events(
    lng: float = Query(..., ge=-180, le=180, description="Longitude"),
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    radius_km: float = Query(25, gt=0, le=20000),
    limit: int = Query(50, ge=1, le=200)
):
    """
    Events within `radius_km` of a point, closest first.
    """
    return await events_service.get_events_nearby(lng, lat, radius_km, limit=limit)


@router.get("/{event_id}", response_model=Event)
async def get_event(event_id: str):
    """
    Get event details by ID.
    """
    event = await events_service.get_event_by_id(event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


@router.post("", response_model=EventCreatedResponse, status_code=201)
async def create_event(data: EventCreate):
    """
    Create a new event.

    ```json
    {
        "title": "Summer Tour",
        "date": "2026-07-04T20:00:00Z",
        "venue": "Arena",
        "totalTickets": 500,
        "pricing": {"priorityPrice": 120, "generalPrice": 60},
        "location": {"type": "Point", "coordinates": [-73.98, 40.75]}
    }
    ```

    `generalTickets` defaults to `totalTickets`.
    """
    event = await events_service.create_event(data)
    return EventCreatedResponse(event=event)


@router.patch("/{event_id}", response_model=EventUpdatedResponse)
async def update_event(event_id: str, data: EventUpdate):
    """
    Update descriptive fields of an event. Ticket counters are not editable.
    """
    event = await events_service.update_event(event_id, data)
    if not event:
        raise NotFoundError("Event not found")
    return EventUpdatedResponse(event=event)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(event_id: str):
    """
    Delete an event. Tickets and purchases referencing it are kept.
    """
    deleted = await events_service.delete_event(event_id)
    if not deleted:
        raise NotFoundError("Event not found")
    return MessageResponse(message="Event deleted successfully")


@router.post("/{event_id}/purchase", response_model=PurchaseResponse, status_code=201)
async def purchase_tickets(
    event_id: str,
    data: PurchaseCreate,
    ctx: RequestContext = Depends(require_user_context)
):
    """
    Buy tickets for an event.

    ```json
    {
        "tickets": [{"ticket": {"type": "general", "price": 60}, "count": 2}],
        "totalAmount": 120,
        "currency": "USD"
    }
    ```

    401 without a session, 404 for an unknown event and 400 when fewer
    tickets remain than requested.
    """
    purchase = await purchase_service.create_purchase(ctx, event_id, data)
    return PurchaseResponse(purchase=purchase)
