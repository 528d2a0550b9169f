import itertools
import random
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from tempalias.config import Settings
from tempalias.core.clock import utcnow
from tempalias.core.exceptions import ProviderError
from tempalias.db.alias_store import AliasStore
from tempalias.db.session import Database
from tempalias.dependencies import wire_components
from tempalias.services.address_generator import AddressGenerator


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeRuleProvider:
    """In-memory rule provider that records every call."""

    def __init__(self) -> None:
        self.rules = {}
        self.calls = []
        self.deleted = []
        self.fail_create = False
        self.fail_update = False
        self.fail_delete = False
        self._ids = itertools.count(1)

    async def create_rule(self, address, enabled=True):
        self.calls.append(("create", address, enabled))
        if self.fail_create:
            raise ProviderError("zone rule limit reached")
        rule_id = f"rule-{next(self._ids)}"
        self.rules[rule_id] = {"address": address, "enabled": enabled}
        return rule_id

    async def set_rule_enabled(self, rule_id, enabled):
        self.calls.append(("update", rule_id, enabled))
        if self.fail_update:
            raise ProviderError("rule update rejected")
        self.rules[rule_id]["enabled"] = enabled

    async def delete_rule(self, rule_id):
        self.calls.append(("delete", rule_id))
        self.deleted.append(rule_id)
        if self.fail_delete:
            raise ProviderError()
        self.rules.pop(rule_id, None)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        APP_ENV="development",
        DB_PATH=str(tmp_path / "data" / "emails.db"),
        CF_EMAIL_DOMAIN="example.com",
        CF_DESTINATION_EMAIL="inbox@example.org",
        CF_ZONE_ID="zone123",
        CF_API_TOKEN="secret-token",
        LOG_FORMAT="text",
        ENABLE_METRICS=False,
        SWEEP_INTERVAL_SECONDS=0.05,
    )


@pytest.fixture
async def database(settings):
    db = Database.from_settings(settings)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def store(database):
    return AliasStore(database)


@pytest.fixture
def provider():
    return FakeRuleProvider()


@pytest.fixture
def components(settings, database, provider):
    return wire_components(
        settings,
        database,
        provider,
        address_generator=AddressGenerator("example.com", rng=random.Random(1234)),
    )


@pytest.fixture
def alias_service(components):
    return components.lifecycle


@pytest.fixture
async def client(settings, components):
    from tempalias.main import create_app

    app = create_app(settings)
    app.state.components = components
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def assert_close(actual, expected, tolerance=timedelta(seconds=5)):
    assert actual is not None
    assert abs(actual - expected) <= tolerance, f"{actual} not within {tolerance} of {expected}"


def hours_from_now(hours):
    return utcnow() + timedelta(hours=hours)
