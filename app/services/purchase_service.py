"""
Ticket purchase processing.

A purchase runs as one database transaction:

1. read the event (404 if missing) and pre-check every line item,
2. decrement inventory with a single conditional UPDATE, which is the
   authority on availability under concurrency,
3. insert the purchase row and one ticket row per unit.

Any failure after step 1 rolls everything back, so inventory and ticket
rows can never disagree.
"""
import logging
import uuid
from datetime import datetime, timezone
from app.database import get_db_connection
from app.core.dependencies import RequestContext
from app.core.exceptions import (
    APIError, AuthenticationError, NotFoundError,
    InsufficientInventoryError, DatabaseError
)
from app.models.purchase import (
    Purchase, PurchaseCreate, PurchaseTicketRef, Ticket
)
from app.utils.money import to_decimal

logger = logging.getLogger(__name__)

NOT_ENOUGH_TICKETS = "Not enough tickets available"


async def _reserve_inventory(conn, event_id: str, count: int):
    """
    Atomically take `count` tickets from the event.

    Returns the updated row, or None when fewer than `count` remain.
    """
    return await conn.fetchrow("""
        UPDATE events
        SET general_tickets = general_tickets - $2,
            sold_tickets = sold_tickets + $2,
            updated_at = NOW()
        WHERE id = $1 AND general_tickets >= $2
        RETURNING id, general_tickets, sold_tickets
    """, event_id, count)


async def create_purchase(ctx: RequestContext, event_id: str, data: PurchaseCreate) -> Purchase:
    """Buy tickets for an event on behalf of the authenticated user"""
    if not ctx.is_authenticated:
        raise AuthenticationError("User not authenticated")

    requested = data.requested_count

    try:
        async with get_db_connection() as conn:
            event = await conn.fetchrow(
                "SELECT id, general_tickets FROM events WHERE id = $1",
                event_id
            )
            if not event:
                raise NotFoundError("Event not found")

            for item in data.tickets:
                if event['general_tickets'] < item.count:
                    raise InsufficientInventoryError(NOT_ENOUGH_TICKETS, {
                        "requested": item.count,
                        "available": event['general_tickets']
                    })

            updated = await _reserve_inventory(conn, event_id, requested)
            if not updated:
                raise InsufficientInventoryError(NOT_ENOUGH_TICKETS, {
                    "requested": requested,
                    "available": event['general_tickets']
                })

            purchase_id = str(uuid.uuid4())
            created_at = datetime.now(timezone.utc)
            transaction_date = data.transactionDate or created_at

            await conn.execute("""
                INSERT INTO purchases (
                    id, user_id, event_id, total_amount, currency, status,
                    transaction_date, payment_reference, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            """,
                purchase_id,
                ctx.user_id,
                event_id,
                to_decimal(data.totalAmount),
                data.currency,
                data.status.value,
                transaction_date,
                data.paymentReference,
                created_at
            )

            tickets = [
                Ticket(
                    id=str(uuid.uuid4()),
                    userId=ctx.user_id,
                    eventId=event_id,
                    purchaseId=purchase_id,
                    type=item.ticket.type,
                    price=item.ticket.price,
                    isRedeemed=item.ticket.isRedeemed,
                    createdAt=created_at
                )
                for item in data.tickets
                for _ in range(item.count)
            ]

            await conn.executemany("""
                INSERT INTO tickets (id, user_id, event_id, purchase_id, type, price, is_redeemed, created_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            """, [
                (t.id, t.userId, t.eventId, t.purchaseId, t.type.value,
                 to_decimal(t.price), t.isRedeemed, t.createdAt)
                for t in tickets
            ])
    except APIError:
        raise
    except Exception as e:
        logger.error(f"Purchase failed for event {event_id}: {e}", exc_info=True)
        raise DatabaseError("Error processing purchase", {"error": str(e)})

    logger.info(
        f"Purchase {purchase_id}: user {ctx.user_id} bought {requested} tickets for event {event_id} "
        f"({updated['general_tickets']} left)"
    )

    return Purchase(
        id=purchase_id,
        userId=ctx.user_id,
        eventId=event_id,
        tickets=[PurchaseTicketRef(ticket=t, count=1) for t in tickets],
        totalAmount=data.totalAmount,
        currency=data.currency,
        status=data.status,
        transactionDate=transaction_date,
        paymentReference=data.paymentReference
    )

