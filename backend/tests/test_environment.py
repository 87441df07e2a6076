import pytest

from siteledger.core.environment import mask_database_url, validate_on_startup, validate_required_env_vars


def test_current_test_environment_is_valid():
    is_valid, errors = validate_required_env_vars()
    assert is_valid, errors


def test_tenant_url_needs_placeholder(monkeypatch):
    monkeypatch.setenv("TENANT_DATABASE_URL", "sqlite:///./tenants/all.db")
    is_valid, errors = validate_required_env_vars()
    assert not is_valid
    assert any("{tenant_key}" in e for e in errors)


def test_short_secret_key_fails_startup(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "short")
    with pytest.raises(ValueError):
        validate_on_startup()


def test_mask_database_url():
    assert mask_database_url("postgresql://ledger:hunter2@db:5432/{tenant_key}") == "postgresql://ledger:****@db:5432/{tenant_key}"
    assert mask_database_url("sqlite:///./siteledger.db") == "sqlite:///./siteledger.db"
    assert mask_database_url("") == "not set"
