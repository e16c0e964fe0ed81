import os
import tempfile

os.environ.setdefault(
    "DATABASE_URL", f"sqlite+aiosqlite:///{tempfile.gettempdir()}/rental_booking_test.db"
)
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rental_booking import app
from rental_booking.api import dependencies
from rental_booking.api.payments.gateways.base import GatewayIntent, GatewayOutcome
from rental_booking.api.payments.gateways.card_rail import RazorpayCardGateway
from rental_booking.core import locks
from rental_booking.core.common.constants import PaymentStatus, PaymentStrategy, Roles
from rental_booking.core.exceptions import NotFound
from rental_booking.db.main import get_session, init_db

WEBHOOK_SECRET = "whsec_test"


class DummyRedis:
    def __init__(self):
        self.store = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def get(self, key):
        return self.store.get(key)

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def eval(self, script, numkeys, key, token):
        # compare-and-delete, as the release script does
        if self.store.get(key) == token:
            return await self.delete(key)
        return 0

    async def ping(self):
        return True


class FakeCatalog:
    def __init__(self):
        self.properties = {}

    def add(self, owner_id, available=True):
        property_id = uuid.uuid4()
        self.properties[property_id] = (owner_id, available)
        return property_id

    async def is_available(self, property_id):
        if property_id not in self.properties:
            raise NotFound("property", property_id)
        return self.properties[property_id][1]

    async def owner_of(self, property_id):
        if property_id not in self.properties:
            raise NotFound("property", property_id)
        return self.properties[property_id][0]


class FakeDirectory:
    def __init__(self):
        self.roles = {}

    async def role_of(self, user_id):
        return self.roles.get(user_id, Roles.USER)

    async def admins(self):
        return [user_id for user_id, role in self.roles.items() if role == Roles.ADMIN]


class RecordingNotifier:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def notify(self, recipient_id, kind, payload):
        if self.fail:
            raise RuntimeError("notification queue unavailable")
        self.sent.append((recipient_id, kind, payload))

    def kinds(self):
        return [kind for _, kind, _ in self.sent]


class FakeRail:
    def __init__(self, strategy):
        self.strategy = strategy
        self.opened = []
        self.settled = []
        self.outcome = GatewayOutcome(status=PaymentStatus.COMPLETED)
        self.error = None

    async def open(self, amount, payer_number, reference):
        # yield so concurrent initiations interleave
        await asyncio.sleep(0)
        self.opened.append((amount, payer_number, reference))
        return GatewayIntent(external_id=f"{self.strategy.value}_{uuid.uuid4().hex[:12]}")

    async def settle(self, external_id):
        await asyncio.sleep(0)
        self.settled.append(external_id)
        if self.error:
            raise self.error
        return self.outcome


class FakeCardRail(FakeRail, RazorpayCardGateway):
    """Card rail with stubbed order calls and real webhook signature checks."""

    def __init__(self):
        RazorpayCardGateway.__init__(
            self,
            key_id="rzp_test_key",
            key_secret="rzp_test_secret",
            webhook_secret=WEBHOOK_SECRET,
        )
        FakeRail.__init__(self, PaymentStrategy.CARD)

    async def open(self, amount, payer_number, reference):
        intent = await FakeRail.open(self, amount, payer_number, reference)
        return GatewayIntent(external_id=intent.external_id, client_secret=self.key_id)


@dataclass
class World:
    requester: uuid.UUID = field(default_factory=uuid.uuid4)
    owner: uuid.UUID = field(default_factory=uuid.uuid4)
    admin: uuid.UUID = field(default_factory=uuid.uuid4)
    stranger: uuid.UUID = field(default_factory=uuid.uuid4)
    catalog: FakeCatalog = field(default_factory=FakeCatalog)
    directory: FakeDirectory = field(default_factory=FakeDirectory)
    notifier: RecordingNotifier = field(default_factory=RecordingNotifier)
    card: FakeCardRail = field(default_factory=FakeCardRail)
    wallet: FakeRail = field(default_factory=lambda: FakeRail(PaymentStrategy.MOBILE_WALLET))

    def __post_init__(self):
        self.directory.roles[self.owner] = Roles.OWNER
        self.directory.roles[self.admin] = Roles.ADMIN
        self.property_id = self.catalog.add(self.owner)
        self.unavailable_property_id = self.catalog.add(self.owner, available=False)


def auth_headers(user_id):
    return {"AuthStatus": "AUTHENTICATED", "UserId": str(user_id), "UserType": "USER"}


def visit_payload(property_id, **overrides):
    payload = {
        "propertyId": str(property_id),
        "bookingType": "visit",
        "visitDate": (date.today() + timedelta(days=3)).isoformat(),
        "visitTimeSlot": "morning",
        "advanceAmount": "1200",
        "commissionPercentage": "10",
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def dummy_redis(monkeypatch):
    client = DummyRedis()
    monkeypatch.setattr(locks, "redis_client", client)
    return client


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
def world():
    return World()


@pytest_asyncio.fixture
async def client(world, session_factory):
    async def _session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[dependencies.get_property_catalog] = lambda: world.catalog
    app.dependency_overrides[dependencies.get_user_directory] = lambda: world.directory
    app.dependency_overrides[dependencies.get_notifier] = lambda: world.notifier
    app.dependency_overrides[dependencies.get_card_gateway] = lambda: world.card
    app.dependency_overrides[dependencies.get_wallet_gateway] = lambda: world.wallet

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def confirmed_booking(client, world):
    """A visit booking with a 1200 advance, approved by the admin."""
    response = await client.post(
        "/api/v1/bookings", json=visit_payload(world.property_id), headers=auth_headers(world.requester)
    )
    assert response.status_code == 201, response.text
    booking_id = response.json()["data"]["id"]
    response = await client.put(
        f"/api/v1/bookings/{booking_id}/admin-action",
        json={"action": "approve", "adminNotes": "looks good"},
        headers=auth_headers(world.admin),
    )
    assert response.status_code == 200, response.text
    return booking_id


def as_decimal(value):
    return Decimal(str(value))
