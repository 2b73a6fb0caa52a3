"""
Document Models

Collection names, enums and helpers for the MongoDB documents.
Documents are stored loosely typed; the request schemas in
bistro.schemas decide what gets written.
"""

import enum
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from bistro.core.exceptions import InvalidIdError


class Collection(str, enum.Enum):
    """Collections of the bistro database."""
    USERS = "users"
    MENUS = "menus"
    REVIEWS = "reviews"
    CARTS = "carts"
    PAYMENTS = "payments"


class UserRole(str, enum.Enum):
    """User roles. Users without a role field are regular users."""
    USER = "user"
    ADMIN = "admin"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"


def to_object_id(value: str) -> ObjectId:
    """
    Parse a hex string into an ObjectId.

    Raises:
        InvalidIdError: If the value is not a 24 character hex id
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise InvalidIdError(f"Invalid id: {value}")


def serialize_document(value: Any) -> Any:
    """
    Make a driver document JSON friendly.

    ObjectIds become hex strings, at any depth. Datetimes are left for
    FastAPI's encoder.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_document(item) for item in value]
    return value


def serialize_documents(documents: list[dict]) -> list[dict]:
    return [serialize_document(doc) for doc in documents]
