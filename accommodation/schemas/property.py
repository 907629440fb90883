from typing import Annotated, List, Literal, Optional
from datetime import date

from pydantic import AfterValidator, Field, field_validator, model_validator

from accommodation.models.property import (
    AVAILABILITY_STATUSES,
    FACILITIES,
    FEATURES,
    FURNISHING_STATUSES,
    PROPERTY_TYPES,
)
from accommodation.schemas.base import RequestSchema, SafeStr

MAX_IMAGES = 6
MAX_FAQ_ENTRIES = 10


def _one_of(choices, label):
    def check(value):
        if value not in choices:
            raise ValueError(f'{label} must be one of: {", ".join(choices)}')
        return value
    return AfterValidator(check)


def _subset_of(choices, label):
    def check(values):
        unknown = [v for v in values if v not in choices]
        if unknown:
            raise ValueError(f'Unknown {label}: {", ".join(unknown)}')
        return list(dict.fromkeys(values))
    return AfterValidator(check)


def _image(value):
    if not (value.startswith('http://') or value.startswith('https://') or value.startswith('data:image/')):
        raise ValueError('Images must be http(s) URLs or base64 image data')
    return value


PropertyType = Annotated[str, _one_of(PROPERTY_TYPES, 'Property type')]
Furnishing = Annotated[str, _one_of(FURNISHING_STATUSES, 'Furnishing status')]
Availability = Annotated[str, _one_of(AVAILABILITY_STATUSES, 'Availability')]
Features = Annotated[List[str], _subset_of(FEATURES, 'features')]
Facilities = Annotated[List[str], _subset_of(FACILITIES, 'facilities')]
Image = Annotated[str, AfterValidator(_image)]


class FAQEntry(RequestSchema):
    question: SafeStr = Field(min_length=1, max_length=500)
    answer: SafeStr = Field(min_length=1, max_length=2000)


class PropertyFields(RequestSchema):
    title: SafeStr = Field(min_length=5, max_length=255)
    description: SafeStr = Field(min_length=20)
    price: float = Field(gt=0)
    maintenance: float = Field(default=0, ge=0)
    deposit: Optional[float] = Field(default=None, ge=0)
    address: SafeStr = Field(min_length=3, max_length=500)
    city: SafeStr = Field(min_length=2, max_length=100)
    state: SafeStr = Field(min_length=2, max_length=100)
    zip_code: Optional[SafeStr] = None
    property_type: PropertyType
    features: Features = []
    facilities: Facilities = []
    bachelors_allowed: bool = False
    furnishing_status: Furnishing = 'None'
    images: List[Image] = Field(min_length=1, max_length=MAX_IMAGES)
    availability: Availability = 'Available'
    availability_date: Optional[date] = None
    area: int = Field(gt=0)
    bedrooms: int = Field(ge=0)
    bathrooms: int = Field(ge=0)
    lease_minimum_duration: SafeStr = ''
    lease_renewal_terms: SafeStr = ''
    faq: List[FAQEntry] = Field(default=[], max_length=MAX_FAQ_ENTRIES)


class PropertyCreate(PropertyFields):
    @model_validator(mode='after')
    def default_deposit(self):
        if self.deposit is None:
            self.deposit = self.price * 2
        return self


class PropertyUpdate(PropertyFields):
    """Every field optional; only what is sent gets applied"""
    title: Optional[SafeStr] = Field(default=None, min_length=5, max_length=255)
    description: Optional[SafeStr] = Field(default=None, min_length=20)
    price: Optional[float] = Field(default=None, gt=0)
    maintenance: Optional[float] = Field(default=None, ge=0)
    address: Optional[SafeStr] = Field(default=None, min_length=3, max_length=500)
    city: Optional[SafeStr] = Field(default=None, min_length=2, max_length=100)
    state: Optional[SafeStr] = Field(default=None, min_length=2, max_length=100)
    property_type: Optional[PropertyType] = None
    features: Optional[Features] = None
    facilities: Optional[Facilities] = None
    bachelors_allowed: Optional[bool] = None
    furnishing_status: Optional[Furnishing] = None
    images: Optional[List[Image]] = Field(default=None, min_length=1, max_length=MAX_IMAGES)
    availability: Optional[Availability] = None
    area: Optional[int] = Field(default=None, gt=0)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    lease_minimum_duration: Optional[SafeStr] = None
    lease_renewal_terms: Optional[SafeStr] = None
    faq: Optional[List[FAQEntry]] = Field(default=None, max_length=MAX_FAQ_ENTRIES)


class VisibilityUpdate(RequestSchema):
    visible: bool


class PropertyFilters(RequestSchema):
    """Query-string filters for the public listing"""
    location: Optional[SafeStr] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    property_type: Optional[PropertyType] = None
    features: List[str] = []
    facilities: List[str] = []
    availability: Optional[Availability] = None
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=20, ge=1, le=100)

    @field_validator('features', 'facilities', mode='before')
    @classmethod
    def split_csv(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(',') if v.strip()]
        return value
