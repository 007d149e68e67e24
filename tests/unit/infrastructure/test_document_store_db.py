"""DB document store against a mocked session: rows written and copies handed back."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.domain.models.booking import Booking, Pricing
from app.governance.exceptions import DocumentNotFoundError
from app.infrastructure.database.document_store_db import DbDocumentStore
from app.infrastructure.database.models import DocumentRow


@pytest.fixture
def session():
    s = MagicMock()
    s.add = MagicMock()
    s.commit = AsyncMock()
    s.get = AsyncMock(return_value=None)
    return s


@pytest.fixture
def store(session):
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return DbDocumentStore(factory, Booking, "Booking")


def _booking() -> Booking:
    return Booking(
        user_id="cust-1",
        check_in=date(2026, 3, 1),
        check_out=date(2026, 3, 4),
        pricing=Pricing(total_amount=300.0),
        created_by="cust-1",
    )


async def test_insert_writes_row_and_returns_copy(store, session):
    booking = _booking()

    saved = await store.insert(booking)

    row = session.add.call_args.args[0]
    assert isinstance(row, DocumentRow)
    assert row.id == booking.id
    assert row.owner_id == "cust-1"
    assert row.data["pricing"]["total_amount"] == 300.0
    session.commit.assert_awaited_once()
    assert saved.model_dump() == booking.model_dump()
    assert saved is not booking

    saved.guests = 4
    assert booking.guests == 1


async def test_replace_updates_row_and_returns_copy(store, session):
    booking = _booking()
    session.get.return_value = DocumentRow(id=booking.id, document_type="Booking", data={})
    booking.guests = 3

    saved = await store.replace(booking)

    assert session.get.return_value.data["guests"] == 3
    assert saved.guests == 3
    assert saved is not booking


async def test_replace_of_other_type_is_not_found(store, session):
    booking = _booking()
    session.get.return_value = DocumentRow(id=booking.id, document_type="Listing", data={})

    with pytest.raises(DocumentNotFoundError):
        await store.replace(booking)
