from typing import List, Literal, Optional

from pydantic import Field, model_validator

from accommodation.models.faq import FAQ_CATEGORIES
from accommodation.models.ticket import TICKET_CATEGORIES, TICKET_PRIORITIES, TICKET_STATUSES
from accommodation.schemas.base import RequestSchema, SafeStr

TicketCategory = Literal[tuple(TICKET_CATEGORIES)]
TicketPriority = Literal[tuple(TICKET_PRIORITIES)]
TicketStatus = Literal[tuple(TICKET_STATUSES)]
FAQCategory = Literal[tuple(FAQ_CATEGORIES)]


class TicketCreate(RequestSchema):
    subject: SafeStr = Field(min_length=3, max_length=255)
    description: SafeStr = Field(min_length=10, max_length=5000)
    category: TicketCategory = 'other'
    priority: TicketPriority = 'medium'


class TicketMessageCreate(RequestSchema):
    message: SafeStr = Field(min_length=1, max_length=5000)
    is_internal: bool = False


class TicketStatusUpdate(RequestSchema):
    status: TicketStatus


class TicketAssign(RequestSchema):
    assignee_id: int


class ChatStart(RequestSchema):
    subject: Optional[SafeStr] = Field(default=None, max_length=255)
    message: Optional[SafeStr] = Field(default=None, max_length=2000)


class ChatMessageCreate(RequestSchema):
    message: SafeStr = Field(min_length=1, max_length=2000)


class ChatStatusUpdate(RequestSchema):
    status: Literal['active', 'waiting', 'closed']


class FAQCreate(RequestSchema):
    question: SafeStr = Field(min_length=5, max_length=500)
    answer: SafeStr = Field(min_length=5)
    category: FAQCategory = 'general'
    keywords: List[SafeStr] = []
    is_active: bool = True


class FAQUpdate(RequestSchema):
    question: Optional[SafeStr] = Field(default=None, min_length=5, max_length=500)
    answer: Optional[SafeStr] = Field(default=None, min_length=5)
    category: Optional[FAQCategory] = None
    keywords: Optional[List[SafeStr]] = None
    is_active: Optional[bool] = None


class FAQRate(RequestSchema):
    helpful: bool


class EmailSend(RequestSchema):
    user_id: Optional[int] = None
    email: Optional[str] = None
    subject: SafeStr = Field(min_length=1, max_length=255)
    message: SafeStr = Field(min_length=1, max_length=10000)

    @model_validator(mode='after')
    def has_recipient(self):
        if self.user_id is None and not self.email:
            raise ValueError('Provide a user id or an email address')
        return self


class WhatsAppSend(RequestSchema):
    user_id: Optional[int] = None
    phone: Optional[str] = None
    message: SafeStr = Field(min_length=1, max_length=1600)

    @model_validator(mode='after')
    def has_recipient(self):
        if self.user_id is None and not self.phone:
            raise ValueError('Provide a user id or a phone number')
        return self
