from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .cafe import Cafe
from .booking import Booking
from .station_day import StationDay
from .payment import Payment
