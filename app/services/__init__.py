"""Business logic service layer."""

from app.services.bookings import BookingService  # noqa: F401
from app.services.ownership import OwnershipService  # noqa: F401
from app.services.price_feed import PriceFeedService  # noqa: F401
from app.services.properties import PropertyService  # noqa: F401
