"""
Pydantic Schemas for Request/Response Validation

Request bodies are validated here before anything reaches the database.
Response schemas mirror the write results of the MongoDB Node driver
(camelCase keys) so the existing web client keeps working.
"""

import re
from datetime import datetime, timezone
from typing import Annotated, Any, Optional, List

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from bistro.models import PaymentStatus

EMAIL_PATTERN = re.compile(r"^[\w\.+-]+@[\w\.-]+\.\w+$")


def validate_email(value: str) -> str:
    """Check the address format. The address is stored and compared exactly as sent."""
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value


Email = Annotated[str, AfterValidator(validate_email)]


class CamelModel(BaseModel):
    """Base for schemas whose JSON keys are camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# AUTH SCHEMAS
# =============================================================================

class TokenRequest(BaseModel):
    """Identity payload signed into an access token. Extra fields become claims."""
    model_config = ConfigDict(extra="allow")

    email: Email = Field(..., examples=["guest@bistro.com"])


class TokenResponse(BaseModel):
    token: str


class TokenClaims(BaseModel):
    """Decoded access token claims."""
    model_config = ConfigDict(extra="allow")

    email: str
    exp: Optional[int] = None
    iat: Optional[int] = None


# =============================================================================
# USER SCHEMAS
# =============================================================================

class UserCreate(BaseModel):
    """Signup payload. The role can only be granted by an admin."""
    email: Email = Field(..., examples=["guest@bistro.com"])
    name: Optional[str] = Field(None, max_length=100, examples=["Guest User"])
    photo: Optional[str] = Field(None, max_length=500)


class AdminStatusResponse(BaseModel):
    admin: bool


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItemCreate(BaseModel):
    """Request schema for a new menu item."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Roast Duck Breast"])
    recipe: str = Field(..., max_length=2000)
    image: Optional[str] = Field(None, max_length=500)
    category: str = Field(..., min_length=1, max_length=50, examples=["salad"])
    price: float = Field(..., ge=0, examples=[14.5])


class MenuItemUpdate(BaseModel):
    """Partial update of a menu item. Only fields sent are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    recipe: Optional[str] = Field(None, max_length=2000)
    image: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    price: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_not_empty(self) -> "MenuItemUpdate":
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided")
        return self


# =============================================================================
# CART SCHEMAS
# =============================================================================

class CartItemCreate(BaseModel):
    """A menu item put in a buyer's cart."""
    model_config = ConfigDict(populate_by_name=True)

    buyer_email: Email = Field(..., examples=["guest@bistro.com"])
    menu_id: str = Field(..., alias="menuId", min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    image: Optional[str] = Field(None, max_length=500)
    price: float = Field(..., ge=0)


# =============================================================================
# PAYMENT SCHEMAS
# =============================================================================

class PaymentIntentRequest(BaseModel):
    price: float = Field(..., gt=0, examples=[42.5])


class ClientSecretResponse(CamelModel):
    client_secret: str


class PaymentCreate(CamelModel):
    """
    Completed checkout sent by the client after Stripe confirmed the card.

    cartIds are the cart rows being paid for; menuItemIds the purchased
    menu items (one entry per unit).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    email: Email
    price: float = Field(..., ge=0)
    transaction_id: str = Field(..., min_length=1)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    cart_ids: List[str] = Field(..., min_length=1)
    menu_item_ids: List[str] = Field(default_factory=list)
    status: PaymentStatus = PaymentStatus.PENDING


# =============================================================================
# WRITE RESULT SCHEMAS
# =============================================================================

class InsertResult(CamelModel):
    acknowledged: bool = True
    inserted_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: Any) -> "InsertResult":
        return cls(acknowledged=result.acknowledged, inserted_id=str(result.inserted_id))


class UserCreateResponse(InsertResult):
    """Insert result, or the no-op marker when the email already exists."""
    message: Optional[str] = None


class UpdateResult(CamelModel):
    acknowledged: bool = True
    matched_count: int = 0
    modified_count: int = 0
    upserted_count: int = 0
    upserted_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: Any) -> "UpdateResult":
        upserted_id = result.upserted_id
        return cls(
            acknowledged=result.acknowledged,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
            upserted_count=1 if upserted_id is not None else 0,
            upserted_id=str(upserted_id) if upserted_id is not None else None,
        )


class DeleteResult(CamelModel):
    acknowledged: bool = True
    deleted_count: int = 0

    @classmethod
    def from_result(cls, result: Any) -> "DeleteResult":
        return cls(acknowledged=result.acknowledged, deleted_count=result.deleted_count)


class PaymentRecordResponse(CamelModel):
    payment_result: InsertResult
    deleted_result: DeleteResult


# =============================================================================
# STATISTICS SCHEMAS
# =============================================================================

class AdminStats(CamelModel):
    """Dashboard counters for the admin home page."""
    users: int
    menu_items: int
    orders: int
    revenue: float


class CategoryStats(BaseModel):
    category: Optional[str]
    quantity: int
    revenue: float


# =============================================================================
# MISC SCHEMAS
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    message: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    payment_service: str
    environment: str
    timestamp: datetime
