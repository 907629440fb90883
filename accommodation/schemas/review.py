from typing import Optional

from pydantic import Field

from accommodation.schemas.base import RequestSchema, SafeStr


class ReviewCreate(RequestSchema):
    property_id: int
    rating: int = Field(ge=1, le=5)
    comment: SafeStr = Field(min_length=10, max_length=500)


class ReviewUpdate(RequestSchema):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[SafeStr] = Field(default=None, min_length=10, max_length=500)


class EnquiryCreate(RequestSchema):
    property_id: int
    subject: SafeStr = Field(min_length=3, max_length=255)
    message: SafeStr = Field(min_length=1, max_length=2000)


class EnquiryReplyCreate(RequestSchema):
    message: SafeStr = Field(min_length=1, max_length=2000)
    close: bool = False
