"""
FastAPI Application Entry Point

Bistro Boss API - backend of the Bistro Boss restaurant web app.
Runs against MongoDB and Stripe in production, and against an in-memory
store and mock gateway in development.

Endpoints:
    - POST /jwt: Issue an access token
    - /users, /users/admin/{...}: Accounts and roles
    - /menus, /menu/{id}: Menu catalog
    - GET /reviews: Customer reviews
    - /carts: Shopping carts
    - POST /create-payment-intent, POST /payment, GET /payments/{email}: Checkout
    - GET /admin-stats, GET /order-stats: Admin dashboard
    - GET /, GET /health: Liveness and health
"""

import logging
from datetime import datetime
from typing import Any, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import DuplicateKeyError

from bistro.core.config import Settings, get_settings, setup_logging
from bistro.core.exceptions import BistroError, NotFoundError, PaymentGatewayError
from bistro.core.security import (
    create_access_token,
    ensure_same_user,
    verify_admin,
    verify_token,
)
from bistro.database import close_db, get_db, init_db
from bistro.models import (
    Collection,
    UserRole,
    serialize_document,
    serialize_documents,
    to_object_id,
)
from bistro.schemas import (
    AdminStats,
    AdminStatusResponse,
    CartItemCreate,
    CategoryStats,
    ClientSecretResponse,
    DeleteResult,
    ErrorResponse,
    HealthResponse,
    InsertResult,
    MenuItemCreate,
    MenuItemUpdate,
    PaymentCreate,
    PaymentIntentRequest,
    PaymentRecordResponse,
    TokenClaims,
    TokenRequest,
    TokenResponse,
    UpdateResult,
    UserCreate,
    UserCreateResponse,
)
from bistro.services.analytics import get_admin_stats, get_order_stats
from bistro.services.checkout import record_payment
from bistro.services.payment import BasePaymentService, get_payment_service

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

ADMIN_RESPONSES = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    await init_db()
    logger.info("✅ Database initialized")

    payment_service = get_payment_service()
    logger.info(f"✅ Payment Service: {payment_service.provider_name}")

    logger.info("=" * 60)
    logger.info(f"✅ this bistro server is running on port : {settings.api_port}")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await close_db()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Restaurant ordering backend: accounts and roles, menu, reviews, "
        "carts and Stripe checkout on MongoDB."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", response_class=PlainTextResponse, tags=["Root"])
async def root() -> PlainTextResponse:
    """Liveness probe."""
    return PlainTextResponse("boss is sitting")


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db=Depends(get_db),
    payment_service: BasePaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Verify all system components are operational."""

    db_status = "healthy"
    try:
        await db.command("ping")
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    payment_status = "healthy" if await payment_service.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, payment_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        payment_service=payment_status,
        environment=settings.env_mode.value,
        timestamp=datetime.now(),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post("/jwt", response_model=TokenResponse, tags=["Auth"])
async def issue_token(
    identity: TokenRequest,
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """Sign an access token for the given identity payload."""
    token = create_access_token(identity.model_dump(), settings)
    logger.debug(f"Token issued for {identity.email}")
    return TokenResponse(token=token)


# =============================================================================
# USER ENDPOINTS
# =============================================================================

@app.get(
    "/users",
    response_model=list[dict[str, Any]],
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(verify_admin)],
    tags=["Users"],
)
async def list_users(db=Depends(get_db)) -> list[dict[str, Any]]:
    users = await db[Collection.USERS.value].find().to_list(length=None)
    return serialize_documents(users)


@app.get(
    "/users/admin/{email}",
    response_model=AdminStatusResponse,
    responses=ADMIN_RESPONSES,
    tags=["Users"],
)
async def check_admin(
    email: str,
    claims: TokenClaims = Depends(verify_token),
    db=Depends(get_db),
) -> AdminStatusResponse:
    """Tell the caller whether they are an admin."""
    ensure_same_user(claims, email)
    user = await db[Collection.USERS.value].find_one({"email": email})
    admin = bool(user) and user.get("role") == UserRole.ADMIN.value
    return AdminStatusResponse(admin=admin)


@app.post("/users", response_model=UserCreateResponse, tags=["Users"])
async def create_user(
    user: UserCreate,
    db=Depends(get_db),
) -> UserCreateResponse:
    """
    Register a user on first sign-in.

    Signing in again with the same email is a no-op.
    """
    users = db[Collection.USERS.value]
    already_exists = UserCreateResponse(
        acknowledged=False, inserted_id=None, message="user already exist"
    )

    if await users.find_one({"email": user.email}):
        return already_exists

    try:
        result = await users.insert_one(user.model_dump(exclude_none=True))
    except DuplicateKeyError:
        # Lost a race against a concurrent signup
        return already_exists

    logger.info(f"User {user.email} created")
    return UserCreateResponse.from_result(result)


@app.patch(
    "/users/admin/{user_id}",
    response_model=UpdateResult,
    responses=ADMIN_RESPONSES,
    tags=["Users"],
)
async def make_admin(
    user_id: str,
    claims: TokenClaims = Depends(verify_admin),
    db=Depends(get_db),
) -> UpdateResult:
    result = await db[Collection.USERS.value].update_one(
        {"_id": to_object_id(user_id)},
        {"$set": {"role": UserRole.ADMIN.value}},
    )
    logger.info(f"User {user_id} promoted to admin by {claims.email}")
    return UpdateResult.from_result(result)


@app.delete(
    "/users/{user_id}",
    response_model=DeleteResult,
    responses=ADMIN_RESPONSES,
    tags=["Users"],
)
async def delete_user(
    user_id: str,
    claims: TokenClaims = Depends(verify_admin),
    db=Depends(get_db),
) -> DeleteResult:
    result = await db[Collection.USERS.value].delete_one({"_id": to_object_id(user_id)})
    logger.info(f"User {user_id} deleted by {claims.email}")
    return DeleteResult.from_result(result)


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get("/menus", response_model=list[dict[str, Any]], tags=["Menu"])
async def list_menu(db=Depends(get_db)) -> list[dict[str, Any]]:
    items = await db[Collection.MENUS.value].find().to_list(length=None)
    return serialize_documents(items)


@app.get(
    "/menu/{menu_id}",
    response_model=dict[str, Any],
    responses={404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def get_menu_item(menu_id: str, db=Depends(get_db)) -> dict[str, Any]:
    item = await db[Collection.MENUS.value].find_one({"_id": to_object_id(menu_id)})
    if not item:
        raise NotFoundError(f"Menu item {menu_id} not found")
    return serialize_document(item)


@app.post(
    "/menu",
    response_model=InsertResult,
    responses=ADMIN_RESPONSES,
    tags=["Menu"],
)
async def create_menu_item(
    item: MenuItemCreate,
    claims: TokenClaims = Depends(verify_admin),
    db=Depends(get_db),
) -> InsertResult:
    result = await db[Collection.MENUS.value].insert_one(item.model_dump())
    logger.info(f"Menu item '{item.name}' added by {claims.email}")
    return InsertResult.from_result(result)


# TODO: decide with the product owner whether menu updates should require verify_admin
@app.patch("/menu/{menu_id}", response_model=UpdateResult, tags=["Menu"])
async def update_menu_item(
    menu_id: str,
    item: MenuItemUpdate,
    db=Depends(get_db),
) -> UpdateResult:
    result = await db[Collection.MENUS.value].update_one(
        {"_id": to_object_id(menu_id)},
        {"$set": item.model_dump(exclude_none=True)},
    )
    logger.info(f"Menu item {menu_id} updated")
    return UpdateResult.from_result(result)


@app.delete(
    "/menu/{menu_id}",
    response_model=DeleteResult,
    responses=ADMIN_RESPONSES,
    tags=["Menu"],
)
async def delete_menu_item(
    menu_id: str,
    claims: TokenClaims = Depends(verify_admin),
    db=Depends(get_db),
) -> DeleteResult:
    result = await db[Collection.MENUS.value].delete_one({"_id": to_object_id(menu_id)})
    logger.info(f"Menu item {menu_id} deleted by {claims.email}")
    return DeleteResult.from_result(result)


# =============================================================================
# REVIEW ENDPOINTS
# =============================================================================

@app.get("/reviews", response_model=list[dict[str, Any]], tags=["Reviews"])
async def list_reviews(db=Depends(get_db)) -> list[dict[str, Any]]:
    reviews = await db[Collection.REVIEWS.value].find().to_list(length=None)
    return serialize_documents(reviews)


# =============================================================================
# CART ENDPOINTS
# =============================================================================

@app.get("/carts", response_model=list[dict[str, Any]], tags=["Carts"])
async def list_cart(
    email: Optional[str] = Query(None),
    db=Depends(get_db),
) -> list[dict[str, Any]]:
    """Cart rows of one buyer."""
    rows = await db[Collection.CARTS.value].find({"buyer_email": email}).to_list(length=None)
    return serialize_documents(rows)


@app.post("/carts", response_model=InsertResult, tags=["Carts"])
async def add_to_cart(
    cart_item: CartItemCreate,
    db=Depends(get_db),
) -> InsertResult:
    result = await db[Collection.CARTS.value].insert_one(cart_item.model_dump(by_alias=True))
    logger.info(f"Cart row {result.inserted_id} added for {cart_item.buyer_email}")
    return InsertResult.from_result(result)


@app.delete("/carts/{cart_id}", response_model=DeleteResult, tags=["Carts"])
async def remove_from_cart(cart_id: str, db=Depends(get_db)) -> DeleteResult:
    result = await db[Collection.CARTS.value].delete_one({"_id": to_object_id(cart_id)})
    return DeleteResult.from_result(result)


# =============================================================================
# PAYMENT ENDPOINTS
# =============================================================================

@app.post(
    "/create-payment-intent",
    response_model=ClientSecretResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Payments"],
)
async def create_payment_intent(
    request_data: PaymentIntentRequest,
    payment_service: BasePaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings),
) -> ClientSecretResponse:
    """Create a card payment intent and hand its client secret to the browser."""
    result = await payment_service.create_payment_intent(
        amount=request_data.price,
        currency=settings.stripe_currency,
        payment_method_types=["card"],
    )

    if not result.success:
        logger.warning(f"Payment intent failed: {result.error_code} - {result.error_message}")
        raise PaymentGatewayError(result.error_message)

    return ClientSecretResponse(client_secret=result.client_secret)


@app.get(
    "/payments/{email}",
    response_model=list[dict[str, Any]],
    responses=ADMIN_RESPONSES,
    tags=["Payments"],
)
async def list_payments(
    email: str,
    claims: TokenClaims = Depends(verify_token),
    db=Depends(get_db),
) -> list[dict[str, Any]]:
    """Payment history of the caller."""
    ensure_same_user(claims, email)
    payments = await db[Collection.PAYMENTS.value].find({"email": email}).to_list(length=None)
    return serialize_documents(payments)


@app.post(
    "/payment",
    response_model=PaymentRecordResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Payments"],
)
async def save_payment(
    payment: PaymentCreate,
    db=Depends(get_db),
) -> PaymentRecordResponse:
    """
    Record a completed payment and empty the paid cart rows.

    Every cartIds entry must be a cart row of the paying email. Rows that
    are missing or belong to another buyer give 409 and nothing is written.
    """
    return await record_payment(db, payment)


# =============================================================================
# ADMIN DASHBOARD ENDPOINTS
# =============================================================================

@app.get(
    "/admin-stats",
    response_model=AdminStats,
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(verify_admin)],
    tags=["Dashboard"],
)
async def admin_stats(db=Depends(get_db)) -> AdminStats:
    return await get_admin_stats(db)


@app.get(
    "/order-stats",
    response_model=list[CategoryStats],
    responses=ADMIN_RESPONSES,
    dependencies=[Depends(verify_admin)],
    tags=["Dashboard"],
)
async def order_stats(db=Depends(get_db)) -> list[CategoryStats]:
    return await get_order_stats(db)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(BistroError)
async def bistro_exception_handler(request: Request, exc: BistroError) -> JSONResponse:
    """Render deliberate API errors as {"message": ...}."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler. Settings are resolved like the route dependency."""
    logger.exception(f"Unhandled exception: {exc}")
    settings = request.app.dependency_overrides.get(get_settings, get_settings)()

    return JSONResponse(
        status_code=500,
        content={
            "message": "Internal Server Error",
            "detail": str(exc) if settings.debug else None,
        },
    )
