import enum


class ListingState(str, enum.Enum):
    """Lifecycle of a property listing; listings are archived, never deleted"""
    ACTIVE = 'active'
    HIDDEN = 'hidden'
    ARCHIVED = 'archived'


class ReviewState(str, enum.Enum):
    ACTIVE = 'active'
    ARCHIVED = 'archived'


def enum_values(enum_cls):
    """Store enum values (not member names) in the database"""
    return [member.value for member in enum_cls]
