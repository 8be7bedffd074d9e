"""
Utilities to centralize configuration handling across the tavola services.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from flask import current_app


@dataclass
class AppConfig:
    """Simple container for application level settings."""

    app_name: str
    # PostgreSQL/Supabase database
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_sslmode: str
    # Auth
    secret_key: str
    supabase_jwt_secret: str
    # App settings
    log_level: str
    restaurant_name: str
    restaurant_timezone: str
    app_url: str
    debug_mode: bool
    flask_debug: bool
    # Payments
    stripe_api_key: str
    stripe_webhook_secret: str
    stripe_currency: str
    # Chat assistant
    llm_base_url: str
    llm_api_key: str
    llm_model: str
    llm_timeout_seconds: float
    cors_origins: list[str] = field(default_factory=list)

    @property
    def sqlalchemy_uri(self) -> str:
        """
        Build a SQLAlchemy PostgreSQL URI using psycopg2 as the driver.

        Includes SSL mode for Supabase connections.
        """
        ssl_arg = f"?sslmode={self.db_sslmode}" if self.db_sslmode else ""
        return (
            f"postgresql+psycopg2://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}{ssl_arg}"
        )

    @property
    def jwt_secret(self) -> str:
        """Secret used to verify admin access tokens."""
        return self.supabase_jwt_secret or self.secret_key


def _read_env(name: str, default: str | None = None) -> str:
    """
    Internal helper to fetch environment variables with support for defaults.
    """
    value = os.getenv(name)
    if value is None:
        if default is None:
            raise RuntimeError(f"Missing required environment variable '{name}'")
        value = default
    return value


def read_bool(name: str, default: str = "false") -> bool:
    value = _read_env(name, default)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_list(name: str, default: str = "") -> list[str]:
    raw = _read_env(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


def get_setting(name: str, default: str | None = None):
    """Look a setting up in the Flask app config, falling back to the environment."""
    try:
        value = current_app.config.get(name)
    except RuntimeError:
        value = None
    if value is None:
        value = os.getenv(name, default)
    return value


def validate_required_env_vars(skip_in_debug: bool = False) -> None:
    """
    Validate that all required environment variables are set.

    Fails fast during startup instead of on the first checkout or chat turn.

    Args:
        skip_in_debug: If True, skip validation when DEBUG_MODE=true

    Raises:
        RuntimeError: If any required variable is missing or has an invalid value
    """
    if skip_in_debug and read_bool("DEBUG_MODE", "false"):
        return

    errors = []

    secret_key = os.getenv("SECRET_KEY", "")
    if not secret_key or secret_key in {"change-me-please", "super-secret-change-me"}:
        errors.append(
            "SECRET_KEY must be configured with a secure random value. "
            'Generate with: python3 -c "import secrets; print(secrets.token_urlsafe(32))"'
        )

    if not os.getenv("DATABASE_URL") and not os.getenv("POSTGRES_HOST"):
        errors.append("DATABASE_URL or POSTGRES_HOST must be configured")

    if not os.getenv("STRIPE_API_KEY"):
        errors.append("STRIPE_API_KEY must be configured")

    if not os.getenv("STRIPE_WEBHOOK_SECRET"):
        errors.append("STRIPE_WEBHOOK_SECRET must be configured")

    if not os.getenv("LLM_API_KEY"):
        errors.append("LLM_API_KEY must be configured")

    timeout = os.getenv("LLM_TIMEOUT_SECONDS", "")
    if timeout:
        try:
            float(timeout)
        except ValueError:
            errors.append(f"LLM_TIMEOUT_SECONDS must be a number, got: {timeout}")

    if errors:
        error_msg = "\nConfiguration Errors - Missing or invalid environment variables:\n"
        for error in errors:
            error_msg += f"  - {error}\n"
        raise RuntimeError(error_msg)


def load_config(app_name: str) -> AppConfig:
    """
    Produce an AppConfig instance populated from environment variables.

    Each service passes its desired `app_name` to keep logs easy to
    differentiate while still reusing the same config loader.
    """
    return AppConfig(
        app_name=app_name,
        db_host=_read_env("POSTGRES_HOST", "localhost"),
        db_port=int(_read_env("POSTGRES_PORT", "5432")),
        db_user=_read_env("POSTGRES_USER", "postgres"),
        db_password=_read_env("POSTGRES_PASSWORD", "postgres"),
        db_name=_read_env("POSTGRES_DB", "postgres"),
        db_sslmode=_read_env("POSTGRES_SSLMODE", "require"),
        secret_key=_read_env("SECRET_KEY", "super-secret-change-me"),
        supabase_jwt_secret=_read_env("SUPABASE_JWT_SECRET", ""),
        log_level=_read_env("LOG_LEVEL", "INFO"),
        restaurant_name=_read_env("RESTAURANT_NAME", "Eataliano"),
        restaurant_timezone=_read_env("RESTAURANT_TIMEZONE", "Europe/Amsterdam"),
        app_url=_read_env("APP_URL", "http://localhost:3000").rstrip("/"),
        debug_mode=read_bool("DEBUG_MODE", "false"),
        flask_debug=read_bool("FLASK_DEBUG", "false"),
        stripe_api_key=_read_env("STRIPE_API_KEY", ""),
        stripe_webhook_secret=_read_env("STRIPE_WEBHOOK_SECRET", ""),
        stripe_currency=_read_env("STRIPE_CURRENCY", "eur").lower(),
        llm_base_url=_read_env("LLM_BASE_URL", "https://api.openai.com").rstrip("/"),
        llm_api_key=_read_env("LLM_API_KEY", ""),
        llm_model=_read_env("LLM_MODEL", "gpt-4o"),
        llm_timeout_seconds=float(_read_env("LLM_TIMEOUT_SECONDS", "30")),
        cors_origins=_read_list("CORS_ORIGINS", "http://localhost:3000"),
    )
