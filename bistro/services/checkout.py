"""
Checkout Service

Records a completed payment and removes the paid cart rows.

MongoDB only guarantees atomicity per document, so the two writes run as a
small saga: the cart rows are checked up front, the payment is inserted,
the rows are purged, and the payment is deleted again if the purge fails
or removes a different number of rows than the payment references.
"""

import logging

from bson import ObjectId
from pymongo.errors import PyMongoError

from bistro.core.exceptions import CheckoutConflictError
from bistro.models import Collection, to_object_id
from bistro.schemas import DeleteResult, InsertResult, PaymentCreate, PaymentRecordResponse

logger = logging.getLogger(__name__)


async def _compensate(db, payment_id: ObjectId) -> None:
    """Undo the payment insert."""
    result = await db[Collection.PAYMENTS.value].delete_one({"_id": payment_id})
    logger.warning(f"Checkout: Payment {payment_id} rolled back (deleted={result.deleted_count})")


async def record_payment(db, payment: PaymentCreate) -> PaymentRecordResponse:
    """
    Insert the payment document and purge the cart rows it pays for.

    Raises:
        InvalidIdError: If a cart or menu item id is malformed
        CheckoutConflictError: If cart rows are missing or vanish mid-checkout
        PyMongoError: If the purge fails; the payment is rolled back first
    """
    cart_ids = [to_object_id(cart_id) for cart_id in dict.fromkeys(payment.cart_ids)]
    menu_item_ids = [to_object_id(menu_id) for menu_id in payment.menu_item_ids]

    carts = db[Collection.CARTS.value]
    cart_query = {"_id": {"$in": cart_ids}, "buyer_email": payment.email}

    available = await carts.count_documents(cart_query)
    if available != len(cart_ids):
        logger.warning(
            f"Checkout: {payment.email} paid for {len(cart_ids)} cart rows, "
            f"{available} found"
        )
        raise CheckoutConflictError()

    document = payment.model_dump(by_alias=True)
    document["cartIds"] = cart_ids
    document["menuItemIds"] = menu_item_ids

    payment_result = await db[Collection.PAYMENTS.value].insert_one(document)
    payment_id = payment_result.inserted_id
    logger.info(f"Checkout: Payment {payment_id} recorded for {payment.email} (${payment.price:.2f})")

    try:
        deleted_result = await carts.delete_many(cart_query)
    except PyMongoError:
        logger.exception(f"Checkout: Cart purge failed for payment {payment_id}")
        await _compensate(db, payment_id)
        raise

    if deleted_result.deleted_count != len(cart_ids):
        logger.warning(
            f"Checkout: Purged {deleted_result.deleted_count} of {len(cart_ids)} "
            f"cart rows for payment {payment_id}"
        )
        await _compensate(db, payment_id)
        raise CheckoutConflictError()

    return PaymentRecordResponse(
        payment_result=InsertResult.from_result(payment_result),
        deleted_result=DeleteResult.from_result(deleted_result),
    )
