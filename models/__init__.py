from .db import db
from .identity import Customer, Admin, Manager, HotelManager
from .audit_log import AuditLog
from .session import Session
from .hotel import Hotel, Room
from .booking import Booking, BookingStatus
from .payment import Payment, PaymentStatus
