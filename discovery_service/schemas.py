from datetime import datetime, time
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .categories import CATEGORIES, Category, ServiceCategory

DEFAULT_SEARCH_RADIUS_KM = 25.0


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


# ---- Availability ----

class AvailabilitySlot(BaseModel):
    start: time
    end: time

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end <= self.start:
            raise ValueError("slot end must be after slot start")
        return self


class DayAvailability(BaseModel):
    available: bool = False
    slots: List[AvailabilitySlot] = Field(default_factory=list)


class AvailabilityTemplate(BaseModel):
    """
    Recurring weekly pattern keyed by weekday, 0=Sunday .. 6=Saturday.
    The wire form uses string keys ("0".."6").
    """

    days: Dict[int, DayAvailability] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_mapping(cls, data):
        if isinstance(data, dict) and "days" not in data:
            return {"days": data}
        return data

    @field_validator("days")
    @classmethod
    def _weekday_range(cls, days):
        for weekday in days:
            if not 0 <= weekday <= 6:
                raise ValueError(f"Invalid weekday: {weekday}. Allowed: 0 (Sunday) to 6 (Saturday)")
        return days

    def for_weekday(self, weekday: int) -> DayAvailability | None:
        return self.days.get(weekday)


class Commitment(BaseModel):
    booking_id: str
    scheduled_at: datetime


# ---- Providers ----

class OfferedService(BaseModel):
    category: Category
    is_offered: bool = True
    custom_price: float | None = Field(default=None, gt=0)


class Review(BaseModel):
    rating: float = Field(ge=0, le=5)
    created_at: datetime


class ProviderProfile(BaseModel):
    id: str
    name: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    hourly_rate: float = Field(gt=0)
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = 0
    experience_years: int = 0
    background_checked: bool = False
    is_verified: bool = False
    is_active: bool = True
    search_radius_km: float = DEFAULT_SEARCH_RADIUS_KM
    availability: AvailabilityTemplate | None = None
    services: List[OfferedService] = Field(default_factory=list)
    reviews: List[Review] = Field(default_factory=list)

    @property
    def location(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    def offers(self, category: ServiceCategory) -> bool:
        return any(s.category == category and s.is_offered for s in self.services)

    def price_for(self, category: ServiceCategory) -> float:
        """
        Effective hourly price for a category: the provider's custom price,
        then the category base price, then the provider's own hourly rate.
        """
        for s in self.services:
            if s.category == category and s.is_offered and s.custom_price is not None:
                return s.custom_price
        info = CATEGORIES.get(category)
        if info is not None:
            return info.base_price
        return self.hourly_rate


# ---- Queries ----

class DiscoveryQuery(BaseModel):
    location: Coordinate | None = None
    radius_km: float = Field(default=DEFAULT_SEARCH_RADIUS_KM, gt=0)
    category: Category | None = None
    min_rating: float | None = Field(default=None, ge=0, le=5)
    max_price: float | None = Field(default=None, gt=0)


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PastBooking(BaseModel):
    booking_id: str
    category: Category
    created_at: datetime | None = None
    review_rating: float | None = Field(default=None, ge=0, le=5)


class RecommendationRequest(BaseModel):
    customer_id: str
    location: Coordinate | None = None
    service_type: Category | None = None
    budget: float | None = Field(default=None, gt=0)
    urgency: Urgency | None = None
    preferences: List[str] = Field(default_factory=list)


# ---- Results ----

class RankedProvider(BaseModel):
    provider: ProviderProfile
    distance_km: float
    quoted_price: float | None = None


class ScoredCandidate(BaseModel):
    provider: ProviderProfile
    score: float = Field(ge=0, le=100)
    reasons: List[str] = Field(default_factory=list, max_length=3)
    distance_km: float | None = None  # None for an unlocated provider


# ---- HTTP bodies ----

class SearchRequest(BaseModel):
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    radius: float = Field(default=DEFAULT_SEARCH_RADIUS_KM, gt=0)
    service: Category | None = None
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    max_price: Optional[float] = Field(default=None, gt=0)

    def location(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class SearchResponse(BaseModel):
    maids: List[RankedProvider]
    total: int
    search_location: Coordinate
    radius: float


class RecommendationBody(BaseModel):
    customer_id: str
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    service_type: Category | None = None
    budget: Optional[float] = Field(default=None, gt=0)
    urgency: Urgency | None = None
    preferences: List[str] = Field(default_factory=list)

    def to_request(self) -> RecommendationRequest:
        location = None
        if self.latitude is not None and self.longitude is not None:
            location = Coordinate(latitude=self.latitude, longitude=self.longitude)
        return RecommendationRequest(
            customer_id=self.customer_id,
            location=location,
            service_type=self.service_type,
            budget=self.budget,
            urgency=self.urgency,
            preferences=self.preferences,
        )


class RecommendationResponse(BaseModel):
    recommendations: List[ScoredCandidate]
    total: int


class SlotSuggestionResponse(BaseModel):
    provider_id: str
    provider_found: bool = True
    slots: List[datetime]
