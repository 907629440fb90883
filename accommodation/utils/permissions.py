"""
Role based capabilities.

Roles are a closed set and each maps to an explicit set of capabilities;
there is no inheritance between roles, admins simply hold every capability.
"""
import enum

from accommodation.models.user import Role


class Capability(str, enum.Enum):
    BROWSE = 'browse'
    REQUEST_VISIT = 'request_visit'
    BOOK_PROPERTY = 'book_property'
    WRITE_REVIEW = 'write_review'
    MANAGE_FAVORITES = 'manage_favorites'
    SEND_ENQUIRY = 'send_enquiry'
    LIST_PROPERTY = 'list_property'
    VIEW_ANALYTICS = 'view_analytics'
    RESPOND_TO_REQUESTS = 'respond_to_requests'
    BOOK_CONSULTATION = 'book_consultation'
    MANAGE_EXPERT_PROFILE = 'manage_expert_profile'
    OPEN_TICKET = 'open_ticket'
    HANDLE_SUPPORT = 'handle_support'
    MANAGE_FAQ = 'manage_faq'
    SEND_COMMUNICATIONS = 'send_communications'
    MANAGE_USERS = 'manage_users'


_COMMON = {Capability.BROWSE, Capability.OPEN_TICKET, Capability.BOOK_CONSULTATION}

ROLE_CAPABILITIES = {
    Role.TENANT: _COMMON | {
        Capability.REQUEST_VISIT,
        Capability.BOOK_PROPERTY,
        Capability.WRITE_REVIEW,
        Capability.MANAGE_FAVORITES,
        Capability.SEND_ENQUIRY,
    },
    Role.OWNER: _COMMON | {
        Capability.LIST_PROPERTY,
        Capability.VIEW_ANALYTICS,
        Capability.RESPOND_TO_REQUESTS,
        Capability.MANAGE_FAVORITES,
    },
    Role.EXPERT: _COMMON | {
        Capability.MANAGE_EXPERT_PROFILE,
    },
    Role.SUPPORT: _COMMON | {
        Capability.HANDLE_SUPPORT,
        Capability.MANAGE_FAQ,
        Capability.SEND_COMMUNICATIONS,
    },
    Role.ADMIN: set(Capability),
}


def can(user, capability):
    if user is None or not user.is_active:
        return False
    return capability in ROLE_CAPABILITIES.get(user.role, set())
