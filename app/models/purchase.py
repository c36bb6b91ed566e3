from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class TicketType(str, Enum):
    PRIORITY = "priority"
    GENERAL = "general"


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TicketSpec(BaseModel):
    """Ticket attributes copied onto every unit of a line item"""
    type: TicketType
    price: float = Field(..., ge=0)
    isRedeemed: bool = False


class PurchaseLineItem(BaseModel):
    ticket: TicketSpec
    count: int = Field(1, ge=1)


class PurchaseCreate(BaseModel):
    """Checkout request body"""
    tickets: List[PurchaseLineItem] = Field(..., min_length=1)
    totalAmount: float = Field(..., ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    status: PurchaseStatus = PurchaseStatus.PENDING
    transactionDate: Optional[datetime] = None
    paymentReference: Optional[str] = None

    @property
    def requested_count(self) -> int:
        return sum(item.count for item in self.tickets)


class Ticket(BaseModel):
    id: str
    userId: Optional[str] = None
    eventId: str
    purchaseId: Optional[str] = None
    type: TicketType
    price: float
    isRedeemed: bool = False
    createdAt: Optional[datetime] = None


class PurchaseTicketRef(BaseModel):
    """Reference entry derived from the ticket rows of a purchase"""
    ticket: Ticket
    count: int = 1


class Purchase(BaseModel):
    id: str
    userId: str
    eventId: str
    tickets: List[PurchaseTicketRef] = []
    totalAmount: float
    currency: str = "USD"
    status: PurchaseStatus = PurchaseStatus.PENDING
    transactionDate: datetime
    paymentReference: Optional[str] = None


class PurchaseResponse(BaseModel):
    message: str = "Purchase successful"
    purchase: Purchase
