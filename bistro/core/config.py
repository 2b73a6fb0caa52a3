"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two kinds of modes:
    - DEVELOPMENT: In-memory document store and mock payment gateway
    - PRODUCTION / STAGING: MongoDB Atlas and Stripe

The ENV_MODE variable controls which backends are instantiated throughout
the application, so the API can be run locally without a database or
Stripe account.

Usage:
    from bistro.core.config import get_settings

    settings = get_settings()
    if settings.use_real_services:
        # Talk to MongoDB and Stripe
    else:
        # In-memory store and mock gateway
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local run with the in-memory store and mock gateway
        PRODUCTION: Live MongoDB cluster and Stripe live keys
        STAGING: Live MongoDB cluster and Stripe test keys
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Secrets (database password, token secret, Stripe key) should NEVER be
    committed to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # API Configuration
        api_host: Host to bind the API server
        api_port: Port for the API server (PORT)

        # Database
        mongodb_uri: Full connection string, wins over the parts below
        db_user / db_pass / db_cluster_host: Atlas connection parts
        database_name: Database holding the five collections

        # Tokens
        access_token_secret: HS256 signing secret
        access_token_expire_minutes: Token lifetime

        # Payments
        stripe_secret_key: Stripe API secret key
        stripe_currency: Currency of created payment intents
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Bistro Boss API",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=5000,
        validation_alias=AliasChoices("port", "api_port"),
        description="API server port"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==========================================================================
    # DATABASE
    # ==========================================================================

    mongodb_uri: Optional[str] = Field(
        default=None,
        description="Full MongoDB connection string"
    )
    db_user: Optional[str] = Field(
        default=None,
        description="MongoDB Atlas user"
    )
    db_pass: Optional[str] = Field(
        default=None,
        description="MongoDB Atlas password"
    )
    db_cluster_host: str = Field(
        default="cluster0.mongodb.net",
        description="MongoDB Atlas cluster host"
    )
    database_name: str = Field(
        default="bistroDB",
        description="Database holding users, menus, reviews, carts and payments"
    )

    # ==========================================================================
    # TOKENS
    # ==========================================================================

    access_token_secret: str = Field(
        default="dev_secret_change_me",
        description="Secret used to sign access tokens"
    )
    access_token_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    access_token_expire_minutes: int = Field(
        default=60,
        ge=1,
        description="Access token lifetime in minutes"
    )

    # ==========================================================================
    # STRIPE PAYMENT GATEWAY
    # ==========================================================================

    stripe_secret_key: Optional[str] = Field(
        default=None,
        description="Stripe API secret key (sk_live_... or sk_test_...)"
    )
    stripe_currency: str = Field(
        default="usd",
        description="Currency for payment intents"
    )

    # ==========================================================================
    # MOCK GATEWAY
    # ==========================================================================

    mock_payment_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Share of mock payment intents that fail"
    )
    mock_payment_max_latency: float = Field(
        default=0.3,
        ge=0.0,
        description="Upper bound of simulated gateway latency in seconds"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_real_services(self) -> bool:
        """Check if MongoDB and Stripe should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def mongo_url(self) -> str:
        """
        Build the MongoDB connection string.

        MONGODB_URI is used as-is when set. Otherwise DB_USER/DB_PASS are
        combined with DB_CLUSTER_HOST into an Atlas SRV string, and a local
        server is assumed when no credentials are configured.
        """
        if self.mongodb_uri:
            return self.mongodb_uri
        if self.db_user and self.db_pass:
            return (
                f"mongodb+srv://{quote_plus(self.db_user)}:{quote_plus(self.db_pass)}"
                f"@{self.db_cluster_host}/?retryWrites=true&w=majority"
            )
        return "mongodb://localhost:27017"

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if not self.stripe_secret_key:
                missing.append("STRIPE_SECRET_KEY")
            if not self.mongodb_uri and not (self.db_user and self.db_pass):
                missing.append("MONGODB_URI or DB_USER/DB_PASS")
            if self.access_token_secret == "dev_secret_change_me":
                missing.append("ACCESS_TOKEN_SECRET")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are read once per process; tests override this function
    through FastAPI's dependency overrides.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    return logging.getLogger("bistro")
