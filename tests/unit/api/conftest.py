"""Fixtures for API unit tests: in-memory container, AsyncClient, actor headers per role."""

import pytest
from httpx import ASGITransport, AsyncClient

from app.api import dependencies
from app.config.settings import AppSettings
from app.main import app


@pytest.fixture
def container():
    """Fresh in-memory container per test so audit logs and versions do not leak."""
    return dependencies.build_container(
        AppSettings(storage_backend="memory", retention_sweep_enabled=False)
    )


@pytest.fixture
def app_with_overrides(container):
    app.dependency_overrides[dependencies.get_container] = lambda: container
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides):
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def actor_headers(actor_id: str, role: str, name: str | None = None) -> dict:
    headers = {"X-Actor-Id": actor_id, "X-Actor-Role": role}
    if name:
        headers["X-Actor-Name"] = name
    return headers


@pytest.fixture
def customer_headers():
    return actor_headers("cust-1", "customer", "Cal")


@pytest.fixture
def other_customer_headers():
    return actor_headers("cust-2", "customer", "Cora")


@pytest.fixture
def host_headers():
    return actor_headers("host-1", "host", "Hana")


@pytest.fixture
def support_headers():
    return actor_headers("sup-1", "support", "Sam")


@pytest.fixture
def manager_headers():
    return actor_headers("mgr-1", "manager", "Maya")


@pytest.fixture
def admin_headers():
    return actor_headers("adm-1", "admin", "Ada")


@pytest.fixture
def booking_body():
    return {
        "check_in": "2026-06-01",
        "check_out": "2026-06-04",
        "guests": 2,
        "pricing": {"total_amount": 450.0, "currency": "USD"},
    }


@pytest.fixture
def create_booking(async_client, customer_headers, booking_body):
    async def factory(headers=None, **overrides):
        response = await async_client.post(
            "/bookings/", json={**booking_body, **overrides}, headers=headers or customer_headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return factory
