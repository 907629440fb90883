from datetime import date
from typing import List, Literal, Optional

from pydantic import Field

from accommodation.schemas.base import RequestSchema, SafeStr


class AvailabilitySlot(RequestSchema):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str


class ExpertProfileUpdate(RequestSchema):
    bio: Optional[SafeStr] = Field(default=None, max_length=2000)
    expertise: Optional[List[SafeStr]] = None
    experience_years: Optional[int] = Field(default=None, ge=0, le=80)
    languages: Optional[List[SafeStr]] = None
    consultation_fee: Optional[float] = Field(default=None, ge=0)
    is_available: Optional[bool] = None
    availability: Optional[List[AvailabilitySlot]] = None


class ConsultationCreate(RequestSchema):
    expert_id: int
    consultation_date: date = Field(alias='date')
    start_time: str
    end_time: str
    notes: Optional[SafeStr] = Field(default=None, max_length=1000)


class ConsultationStatusUpdate(RequestSchema):
    status: Literal['scheduled', 'confirmed', 'completed', 'cancelled', 'rejected', 'no-show']
    cancellation_reason: Optional[SafeStr] = Field(default=None, max_length=1000)
    meeting_link: Optional[str] = Field(default=None, max_length=500)
    meeting_platform: Optional[Literal['zoom', 'google_meet', 'teams', 'other']] = None


class ConsultationRating(RequestSchema):
    rating: int = Field(ge=1, le=5)
    review: Optional[SafeStr] = Field(default=None, max_length=1000)
