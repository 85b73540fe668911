from datetime import date, time as dtime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from slotbook.config import Settings, get_settings
from slotbook.database import Base, build_engine, get_db
from slotbook.domain.payments.dodo_service import DodoPaymentsService, get_payment_gateway
from slotbook.main import app
from slotbook.models import ProviderProfile, Slot, SlotStatus
from slotbook.services.notification_service import BookingNotifier, get_notifier

from .factories import CHECKOUT_URL, VALID_IBAN, WEBHOOK_SECRET


class RecordingNotifier(BookingNotifier):
    """Notifier that keeps facts in memory instead of posting them"""

    def __init__(self, settings):
        super().__init__(settings)
        self.sent = []

    async def booking_confirmed(self, fact):
        self.sent.append(fact)
        return True


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'slotbook-test.db'}",
        dodo_api_key=None,
        dodo_webhook_secret=WEBHOOK_SECRET,
        dodo_environment="test_mode",
        dodo_deposit_product_id="pdt_deposit_test",
        app_base_url="https://slotbook.test",
        deposit_hold_ttl_minutes=30,
        notify_webhook_url=None,
        rate_limit_enabled=False,
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def dodo_client():
    """Stand-in for AsyncDodoPayments with a successful checkout_sessions.create"""
    create = AsyncMock(
        return_value=SimpleNamespace(checkout_url=CHECKOUT_URL, session_id="cs_test_1")
    )
    return SimpleNamespace(checkout_sessions=SimpleNamespace(create=create))


@pytest.fixture
def gateway(settings, dodo_client):
    return DodoPaymentsService(settings, client=dodo_client)


@pytest.fixture
def notifier(settings):
    return RecordingNotifier(settings)


@pytest.fixture
def client(settings, session_factory, gateway, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_provider(db):
    def _make(email="studio@example.com", **kwargs):
        values = {
            "company_name": "Studio Noord",
            "category": "hair",
            "street": "Kerkstraat 1",
            "postal_code": "9000",
            "city": "Gent",
            "account_status": "active",
            "deposit_enabled": False,
            "deposit_amount": None,
            "iban": None,
            "bic": None,
        }
        values.update(kwargs)
        provider = ProviderProfile(email=email, **values)
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider

    return _make


@pytest.fixture
def make_slot(db):
    def _make(email="studio@example.com", **kwargs):
        values = {
            "date": date.today() + timedelta(days=1),
            "start_time": dtime(10, 0),
            "end_time": dtime(10, 30),
            "description": "Knippen",
            "status": SlotStatus.OPEN.value,
            "active": True,
        }
        values.update(kwargs)
        slot = Slot(email=email, **values)
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make


@pytest.fixture
def deposit_provider(make_provider):
    return make_provider(
        deposit_enabled=True, deposit_amount=Decimal("15.00"), iban=VALID_IBAN, bic="GKCCBEBB"
    )

