"""
Environment variable validation for production deployments.
Validates critical environment variables on application startup.
"""
import os
import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEYS = ["dev-secret-key-change-in-production", "change-me-in-production"]


def validate_required_env_vars() -> Tuple[bool, List[str]]:
    """
    Validate that all required environment variables are set.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    required_vars = {
        "DATABASE_URL": os.getenv("DATABASE_URL"),
        "TENANT_DATABASE_URL": os.getenv("TENANT_DATABASE_URL"),
        "SECRET_KEY": os.getenv("SECRET_KEY"),
    }

    for var_name, var_value in required_vars.items():
        if not var_value:
            errors.append(f"Required environment variable {var_name} is not set")

    secret_key = os.getenv("SECRET_KEY", "")
    if secret_key:
        if len(secret_key) < 32:
            errors.append("SECRET_KEY must be at least 32 characters long")
        if secret_key in DEFAULT_SECRET_KEYS:
            errors.append("SECRET_KEY must be changed from default value in production")

    tenant_url = os.getenv("TENANT_DATABASE_URL", "")
    if tenant_url and "{tenant_key}" not in tenant_url:
        errors.append("TENANT_DATABASE_URL must contain a {tenant_key} placeholder in production")

    environment = os.getenv("ENVIRONMENT", "development").lower()
    if environment == "production":
        cors_origins = os.getenv("CORS_ORIGINS", "")
        if not cors_origins:
            errors.append("CORS_ORIGINS must be set in production environment")

        database_url = os.getenv("DATABASE_URL", "")
        if "postgres:postgres@" in database_url or "postgres:postgres@" in tenant_url:
            errors.append("Default database password detected. Change POSTGRES_PASSWORD in production")

    return len(errors) == 0, errors


def mask_database_url(database_url: str) -> str:
    """Hide the password part of a database URL."""
    if not database_url:
        return "not set"
    if "@" not in database_url:
        return database_url
    credentials, host = database_url.rsplit("@", 1)
    if ":" in credentials.split("//", 1)[-1]:
        user = credentials.rsplit(":", 1)[0]
        return f"{user}:****@{host}"
    return database_url


def print_env_summary():
    """Print a summary of environment configuration (safe for logs)."""
    environment = os.getenv("ENVIRONMENT", "development")

    logger.info("=" * 60)
    logger.info("Environment Configuration Summary")
    logger.info("=" * 60)
    logger.info(f"Environment: {environment}")
    logger.info(f"Database URL: {mask_database_url(os.getenv('DATABASE_URL', ''))}")
    logger.info(f"Tenant Database URL: {mask_database_url(os.getenv('TENANT_DATABASE_URL', ''))}")
    logger.info(f"SECRET_KEY: {'*' * 32} (hidden)")
    logger.info("=" * 60)


def validate_on_startup():
    """
    Validate environment variables on application startup.
    Raises ValueError if validation fails.
    """
    is_valid, errors = validate_required_env_vars()

    if not is_valid:
        error_message = "Environment validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
        logger.error(error_message)
        logger.error("\nTo generate a secure SECRET_KEY, run:")
        logger.error("  python -c 'import secrets; print(secrets.token_urlsafe(32))'")
        raise ValueError(error_message)

    logger.info("Environment validation passed")
    print_env_summary()
