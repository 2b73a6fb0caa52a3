from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, PyMongoError

from bistro.core.exceptions import CheckoutConflictError
from bistro.mock_database import MockCollection
from bistro.models import Collection
from bistro.schemas import PaymentCreate
from bistro.services.checkout import record_payment

pytestmark = pytest.mark.anyio

MENU_ID = ObjectId()


async def add_cart_rows(db, email="guest@bistro.com", rows=2) -> list[str]:
    ids = []
    for _ in range(rows):
        result = await db[Collection.CARTS.value].insert_one(
            {"buyer_email": email, "menuId": str(MENU_ID), "name": "Soup", "price": 6.0}
        )
        ids.append(str(result.inserted_id))
    return ids


def make_payment(cart_ids, email="guest@bistro.com") -> PaymentCreate:
    return PaymentCreate(
        email=email,
        price=6.0 * len(cart_ids),
        transaction_id="pi_checkout_test",
        cart_ids=cart_ids,
        menu_item_ids=[str(MENU_ID)] * len(cart_ids),
    )


async def test_record_payment(db):
    cart_ids = await add_cart_rows(db)

    result = await record_payment(db, make_payment(cart_ids))

    assert result.deleted_result.deleted_count == 2
    assert await db[Collection.PAYMENTS.value].count_documents({}) == 1
    assert await db[Collection.CARTS.value].count_documents({}) == 0


async def test_duplicate_cart_ids_count_once(db):
    cart_ids = await add_cart_rows(db, rows=1)

    result = await record_payment(db, make_payment(cart_ids * 2))

    assert result.deleted_result.deleted_count == 1


async def test_failed_purge_rolls_back_payment(db, monkeypatch):
    cart_ids = await add_cart_rows(db)

    async def broken_delete_many(self, filter, **kwargs):
        raise AutoReconnect("connection closed")

    monkeypatch.setattr(MockCollection, "delete_many", broken_delete_many)

    with pytest.raises(PyMongoError):
        await record_payment(db, make_payment(cart_ids))

    assert await db[Collection.PAYMENTS.value].count_documents({}) == 0
    assert await db[Collection.CARTS.value].count_documents({}) == 2


async def test_partial_purge_rolls_back_payment(db, monkeypatch):
    cart_ids = await add_cart_rows(db)

    async def short_delete_many(self, filter, **kwargs):
        # Another checkout removed the rows between the check and the purge
        return SimpleNamespace(acknowledged=True, deleted_count=1)

    monkeypatch.setattr(MockCollection, "delete_many", short_delete_many)

    with pytest.raises(CheckoutConflictError):
        await record_payment(db, make_payment(cart_ids))

    assert await db[Collection.PAYMENTS.value].count_documents({}) == 0


async def test_cart_rows_of_other_buyer_are_untouched(db):
    own = await add_cart_rows(db, rows=1)
    foreign = await add_cart_rows(db, email="other@bistro.com", rows=1)

    with pytest.raises(CheckoutConflictError):
        await record_payment(db, make_payment(own + foreign))

    assert await db[Collection.CARTS.value].count_documents({}) == 2
    assert await db[Collection.PAYMENTS.value].count_documents({}) == 0
