from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime


class GeoLocation(BaseModel):
    """GeoJSON point: coordinates are [longitude, latitude]"""
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2)

    @field_validator("coordinates")
    @classmethod
    def check_range(cls, value: List[float]) -> List[float]:
        lng, lat = value
        if not -180 <= lng <= 180:
            raise ValueError("longitude must be between -180 and 180")
        if not -90 <= lat <= 90:
            raise ValueError("latitude must be between -90 and 90")
        return value

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class Pricing(BaseModel):
    priorityPrice: Optional[float] = Field(None, ge=0)
    generalPrice: Optional[float] = Field(None, ge=0)


# Base model with common fields
class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Event title")
    date: datetime = Field(..., description="Event date and time")
    venue: Optional[str] = None
    artist: Optional[str] = None
    description: Optional[str] = None
    pricing: Optional[Pricing] = None
    salesOpen: bool = False
    location: Optional[GeoLocation] = None


class EventCreate(EventBase):
    """Payload for creating an event"""
    totalTickets: int = Field(..., ge=0)
    generalTickets: Optional[int] = Field(None, ge=0, description="Defaults to totalTickets")

    @model_validator(mode="after")
    def check_inventory(self):
        if self.generalTickets is None:
            self.generalTickets = self.totalTickets
        if self.generalTickets > self.totalTickets:
            raise ValueError("generalTickets cannot exceed totalTickets")
        return self


class EventUpdate(BaseModel):
    """Descriptive fields only; inventory counters move through purchases"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    date: Optional[datetime] = None
    venue: Optional[str] = None
    artist: Optional[str] = None
    description: Optional[str] = None
    pricing: Optional[Pricing] = None
    salesOpen: Optional[bool] = None
    location: Optional[GeoLocation] = None

    @field_validator("title", "date", "salesOpen")
    @classmethod
    def not_null(cls, value):
        # omit the key to leave a required column untouched
        if value is None:
            raise ValueError("cannot be null")
        return value


class Event(EventBase):
    """Stored event as returned by the API"""
    id: str
    totalTickets: int
    generalTickets: int
    soldTickets: int = 0
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class NearbyEvent(Event):
    distanceKm: float


class EventCreatedResponse(BaseModel):
    message: str = "Event created successfully"
    event: Event


class EventUpdatedResponse(BaseModel):
    message: str = "Event updated successfully"
    event: Event


class MessageResponse(BaseModel):
    message: str
