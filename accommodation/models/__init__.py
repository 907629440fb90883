from .user import User, Role
from .property import Property, PropertyView

from .visit import Visit
from .booking import Booking
from .favorite import Favorite
from .enquiry import Enquiry, EnquiryReply
from .review import Review
from .expert import Expert, ExpertAvailability, ExpertConsultation
from .notification import Notification
from .ticket import Ticket, TicketMessage
from .chat import Chat, ChatMessage
from .faq import FAQ
from .communication_log import CommunicationLog
from .lifecycle import ListingState, ReviewState

__all__ = ['User', 'Role', 'Property', 'PropertyView', 'Visit', 'Booking', 'Favorite', 'Enquiry',
           'EnquiryReply', 'Review', 'Expert', 'ExpertAvailability', 'ExpertConsultation',
           'Notification', 'Ticket', 'TicketMessage', 'Chat', 'ChatMessage', 'FAQ',
           'CommunicationLog', 'ListingState', 'ReviewState']
