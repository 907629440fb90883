from datetime import date
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, Field, model_validator

from accommodation.schemas.base import RequestSchema, SafeStr


def _not_in_past(value):
    if value < date.today():
        raise ValueError('Date cannot be in the past')
    return value


UpcomingDate = Annotated[date, AfterValidator(_not_in_past)]


class VisitCreate(RequestSchema):
    """A visit request names either a slot label or explicit start and end times"""
    property_id: int
    visit_date: UpcomingDate
    time_slot: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[SafeStr] = Field(default=None, max_length=1000)

    @model_validator(mode='after')
    def slot_or_times(self):
        if not self.time_slot and not (self.start_time and self.end_time):
            raise ValueError('Provide a time slot or both start and end times')
        return self


class VisitResponse(RequestSchema):
    message: Optional[SafeStr] = Field(default=None, max_length=1000)


class BookingCreate(RequestSchema):
    property_id: int
    move_in_date: UpcomingDate
    move_out_date: date
    token_amount: float = Field(default=0, ge=0)
    payment_reference: Optional[SafeStr] = None
    notes: Optional[SafeStr] = Field(default=None, max_length=1000)

    @model_validator(mode='after')
    def move_out_after_move_in(self):
        if self.move_out_date <= self.move_in_date:
            raise ValueError('Move-out date must be after move-in date')
        return self


class BookingStatusUpdate(RequestSchema):
    status: Literal['confirmed', 'rejected', 'cancelled', 'completed']
    message: Optional[SafeStr] = Field(default=None, max_length=1000)
