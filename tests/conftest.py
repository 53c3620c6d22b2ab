import os
import sys
import warnings
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("HKB_ENVIRONMENT", "test")
os.environ.setdefault("HKB_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("HKB_PRICE_FEED_ENABLED", "false")
os.environ.setdefault("HKB_SEED_DEMO_DATA", "false")
os.environ.setdefault("HKB_ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("HKB_PAYMENT_RETRY_BASE_DELAY", "0")
os.environ.setdefault("HKB_EMAIL_SENDER", "")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_settings

get_settings.cache_clear()

from app.core.database import engine, session_scope  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models import Base  # noqa: E402
from app.services.notifications import NullEmailSender, set_email_sender  # noqa: E402
from app.services.price_feed import set_market_data_fetcher  # noqa: E402
from app.services.properties import DEMO_PROPERTY, PropertyService  # noqa: E402



@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    set_email_sender(NullEmailSender())
    set_market_data_fetcher(None)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client() -> TestClient:  # noqa: ANN001
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def email_outbox() -> NullEmailSender:
    sender = NullEmailSender()
    set_email_sender(sender)
    return sender


@pytest.fixture()
def demo_property():
    with session_scope() as session:
        return PropertyService(session).create_property(DEMO_PROPERTY)


@pytest.fixture()
def villa_450():
    """Property with the round nightly rate used in the pricing walkthroughs."""
    with session_scope() as session:
        return PropertyService(session).create_property(
            DEMO_PROPERTY.model_copy(
                update={"id": "ocean-villa", "name": "Ocean Villa", "nightly_rate": Decimal("450")}
            )
        )


warnings.filterwarnings("ignore", category=PendingDeprecationWarning, module="starlette.formparsers")
