"""SQLAlchemy ORM models for the booking service."""

from app.models.base import Base  # noqa: F401
from app.models.booking import Booking, BookingStatus, PaymentCurrency  # noqa: F401
from app.models.price_snapshot import HktPriceSnapshot  # noqa: F401
from app.models.property import Property  # noqa: F401
from app.models.property_share import PropertyShare  # noqa: F401
