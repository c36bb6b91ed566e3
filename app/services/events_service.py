import logging
import uuid
from typing import Optional, List
from app.database import get_db_connection
from app.core.exceptions import DatabaseError
from app.utils.money import to_decimal
from app.models.event import (
    Event, EventCreate, EventUpdate, NearbyEvent, GeoLocation, Pricing
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

# Great-circle distance from ($1 = lng, $2 = lat) to the event's point
HAVERSINE_SQL = f"""
    {EARTH_RADIUS_KM} * 2 * asin(sqrt(
        power(sin(radians(e.latitude - $2) / 2), 2) +
        cos(radians($2)) * cos(radians(e.latitude)) *
        power(sin(radians(e.longitude - $1) / 2), 2)
    ))
"""

# API field -> column, for the descriptive fields a PATCH may touch
UPDATABLE_COLUMNS = {
    'title': 'title',
    'date': 'date',
    'venue': 'venue',
    'artist': 'artist',
    'description': 'description',
    'salesOpen': 'sales_open',
}

PRICING_COLUMNS = {
    'priorityPrice': 'priority_price',
    'generalPrice': 'general_price',
}


def row_to_event(row, model=Event):
    """Map an events row onto the API model"""
    event_dict = {
        'id': row['id'],
        'title': row['title'],
        'date': row['date'],
        'venue': row['venue'],
        'artist': row['artist'],
        'description': row['description'],
        'totalTickets': row['total_tickets'],
        'generalTickets': row['general_tickets'],
        'soldTickets': row['sold_tickets'] or 0,
        'salesOpen': row['sales_open'] or False,
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }

    if row['priority_price'] is not None or row['general_price'] is not None:
        event_dict['pricing'] = Pricing(
            priorityPrice=row['priority_price'],
            generalPrice=row['general_price']
        )

    if row['longitude'] is not None and row['latitude'] is not None:
        event_dict['location'] = GeoLocation(coordinates=[row['longitude'], row['latitude']])

    if model is NearbyEvent:
        event_dict['distanceKm'] = round(float(row['distance_km']), 3)

    return model(**event_dict)


async def get_events(limit: Optional[int] = None, offset: int = 0) -> List[Event]:
    """All events, soonest first; `limit` is only applied when given"""
    query = "SELECT * FROM events ORDER BY date ASC OFFSET $1"
    params = [offset]

    if limit is not None:
        query += " LIMIT $2"
        params.append(limit)

    async with get_db_connection(use_transaction=False) as conn:
        rows = await conn.fetch(query, *params)
        return [row_to_event(row) for row in rows]


async def get_event_by_id(event_id: str) -> Optional[Event]:
    async with get_db_connection(use_transaction=False) as conn:
        row = await conn.fetchrow("SELECT * FROM events WHERE id = $1", event_id)
        return row_to_event(row) if row else None


async def get_events_nearby(longitude: float, latitude: float, radius_km: float, limit: int = 50) -> List[NearbyEvent]:
    """Events within radius_km of a point, closest first"""
    async with get_db_connection(use_transaction=False) as conn:
        rows = await conn.fetch(f"""
            SELECT * FROM (
                SELECT e.*, {HAVERSINE_SQL} AS distance_km
                FROM events e
                WHERE e.longitude IS NOT NULL AND e.latitude IS NOT NULL
                ORDER BY point(e.longitude, e.latitude) <-> point($1, $2)
            ) nearby
            WHERE distance_km <= $3
            ORDER BY distance_km
            LIMIT $4
        """, longitude, latitude, radius_km, limit)
        return [row_to_event(row, NearbyEvent) for row in rows]


async def create_event(data: EventCreate) -> Event:
    """Create a new event"""
    event_id = str(uuid.uuid4())
    pricing = data.pricing or Pricing()

    try:
        async with get_db_connection() as conn:
            row = await conn.fetchrow("""
                INSERT INTO events (
                    id, title, date, venue, artist, description,
                    total_tickets, general_tickets, sold_tickets,
                    priority_price, general_price, sales_open,
                    longitude, latitude, created_at, updated_at
                ) VALUES (
                    $1, $2, $3, $4, $5, $6, $7, $8, 0, $9, $10, $11, $12, $13, NOW(), NOW()
                )
                RETURNING *
            """,
                event_id,
                data.title,
                data.date,
                data.venue,
                data.artist,
                data.description,
                data.totalTickets,
                data.generalTickets,
                to_decimal(pricing.priorityPrice),
                to_decimal(pricing.generalPrice),
                data.salesOpen,
                data.location.longitude if data.location else None,
                data.location.latitude if data.location else None
            )
    except Exception as e:
        logger.error(f"Failed to create event {data.title}: {e}", exc_info=True)
        raise DatabaseError("Error creating event", {"error": str(e)})

    logger.info(f"Created event: {event_id} - {data.title}")
    return row_to_event(row)


async def update_event(event_id: str, data: EventUpdate) -> Optional[Event]:
    """Patch descriptive fields; returns None if the event does not exist"""
    update_data = data.model_dump(exclude_unset=True)

    update_fields = []
    params = []

    for field, value in update_data.items():
        if field in UPDATABLE_COLUMNS:
            update_fields.append(UPDATABLE_COLUMNS[field])
            params.append(value)
        elif field == 'pricing':
            # only the prices present in the payload are replaced; null clears both
            prices = value if value is not None else dict.fromkeys(PRICING_COLUMNS)
            for key, price in prices.items():
                update_fields.append(PRICING_COLUMNS[key])
                params.append(to_decimal(price))
        elif field == 'location':
            update_fields.extend(['longitude', 'latitude'])
            params.extend([
                data.location.longitude if data.location else None,
                data.location.latitude if data.location else None
            ])

    if not update_fields:
        return await get_event_by_id(event_id)

    assignments = [f"{column} = ${idx}" for idx, column in enumerate(update_fields, start=1)]
    assignments.append("updated_at = NOW()")

    try:
        async with get_db_connection() as conn:
            row = await conn.fetchrow(f"""
                UPDATE events
                SET {', '.join(assignments)}
                WHERE id = ${len(params) + 1}
                RETURNING *
            """, *params, event_id)
    except Exception as e:
        logger.error(f"Error updating event {event_id}: {e}")
        raise DatabaseError("Error updating event", {"error": str(e)})

    if not row:
        return None

    logger.info(f"Updated event {event_id}: {', '.join(update_data)}")
    return row_to_event(row)


async def delete_event(event_id: str) -> bool:
    """
    Delete an event row.

    Tickets and purchases keep their event_id reference; nothing cascades.
    """
    async with get_db_connection() as conn:
        result = await conn.execute("DELETE FROM events WHERE id = $1", event_id)

    deleted = result == "DELETE 1"
    if deleted:
        logger.info(f"Deleted event {event_id}")
    return deleted
