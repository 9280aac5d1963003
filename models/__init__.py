from .db import db
from .status import OrderStatus, BookingStatus, PaymentStatus, BookingSource
from .user import User, Role, Profile, user_roles
from .audit_log import AuditLog
from .venue import Venue
from .court import Court, CourtDynamicPrice
from .order import Order
from .booking import Booking, TimeSlot
from .payment import Payment
from .blocking import Blocking
