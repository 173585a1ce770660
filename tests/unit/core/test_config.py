import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from collectiondesk.core.config import Settings, get_settings


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    get_settings.cache_clear()

    settings = Settings(_env_file=None)

    assert settings.app_name == "CollectionDesk"
    assert settings.environment == "development"
    assert settings.debug is False
    assert settings.gateway_backend == "memory"
    assert settings.bulk_concurrency == 8
    assert settings.bulk_delete_missing_is_success is False
    assert settings.bulk_tombstone_limit == 10_000
    assert settings.default_page_size == 25
    assert settings.is_development is True
    assert settings.is_production is False
    assert settings.is_testing is False


def test_settings_env_override():
    """Test that environment variables override defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {
        "COLLECTIONDESK_ENVIRONMENT": "production",
        "COLLECTIONDESK_GATEWAY_BACKEND": "sql",
        "COLLECTIONDESK_BULK_CONCURRENCY": "2",
        "COLLECTIONDESK_BULK_DELETE_MISSING_IS_SUCCESS": "true",
        "COLLECTIONDESK_BULK_TOMBSTONE_LIMIT": "500",
    }):
        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.gateway_backend == "sql"
        assert settings.bulk_concurrency == 2
        assert settings.bulk_delete_missing_is_success is True
        assert settings.bulk_tombstone_limit == 500
        assert settings.is_production is True


def test_settings_rejects_non_positive_sizes():
    """Zero or negative sizes are rejected."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, bulk_concurrency=0)

    with pytest.raises(ValidationError):
        Settings(_env_file=None, migration_page_size=-1)

    with pytest.raises(ValidationError):
        Settings(_env_file=None, bulk_tombstone_limit=0)


def test_settings_default_page_size_within_max():
    """Default page size cannot exceed the maximum."""
    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None, default_page_size=50, max_page_size=10)

    assert "cannot exceed" in str(exc_info.value)


def test_settings_rejects_unknown_backend():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, gateway_backend="postgres")


def test_get_settings_is_cached():
    """Test that get_settings returns the same instance."""
    get_settings.cache_clear()

    assert get_settings() is get_settings()
