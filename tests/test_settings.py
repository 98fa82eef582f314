from decimal import Decimal

import pytest

from spree_uploader.config import ConfigValidationError, load_settings
from spree_uploader.config import settings as settings_module

ENV_NAMES = (
    "SPREE_ADMIN_URL",
    "SPREE_ADMIN_EMAIL",
    "SPREE_ADMIN_PASSWORD",
    "EXCHANGE_RATE",
    "FEED_PATH",
    "TAXON_PATH",
    "START_OFFSET",
    "RANDOM_SEED",
    "RESUME",
    "SKU_SUFFIX",
    "NAVIGATION_RETRIES",
    "LOG_LEVEL",
    "EXPORT_XLSX",
)


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.setattr(settings_module, "_load_env", lambda: None)
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def base_env(clean_env):
    clean_env.setenv("SPREE_ADMIN_URL", "https://shop.example.com/")
    clean_env.setenv("SPREE_ADMIN_EMAIL", "admin@example.com")
    clean_env.setenv("SPREE_ADMIN_PASSWORD", "secret")
    clean_env.setenv("EXCHANGE_RATE", "32.5")
    return clean_env


def test_loads_required_values_and_defaults(base_env):
    settings = load_settings()

    assert settings.admin.base_url == "https://shop.example.com"
    assert settings.admin.login_url == "https://shop.example.com/admin/login"
    assert settings.admin.new_product_url == "https://shop.example.com/admin/products/new"
    assert settings.feed.exchange_rate == Decimal("32.5")
    assert settings.feed.start_offset == 0
    assert settings.feed.random_seed is None
    assert settings.feed.allow_fallback
    assert settings.browser.navigation_retries == 3
    assert settings.log.level == "INFO"


def test_missing_required_values_are_reported_together(clean_env):
    with pytest.raises(ConfigValidationError) as exc_info:
        load_settings()

    message = str(exc_info.value)
    for name in (
        "SPREE_ADMIN_URL",
        "SPREE_ADMIN_EMAIL",
        "SPREE_ADMIN_PASSWORD",
        "EXCHANGE_RATE",
    ):
        assert name in message


def test_rate_accepts_decimal_comma(base_env):
    base_env.setenv("EXCHANGE_RATE", "32,75")
    assert load_settings().feed.exchange_rate == Decimal("32.75")


@pytest.mark.parametrize("rate", ["0", "-3", "abc", "NaN"])
def test_rate_must_be_positive_number(base_env, rate):
    base_env.setenv("EXCHANGE_RATE", rate)
    with pytest.raises(ConfigValidationError):
        load_settings()


def test_overrides_take_precedence(base_env):
    base_env.setenv("START_OFFSET", "1")

    settings = load_settings(
        {"EXCHANGE_RATE": "1", "START_OFFSET": "5", "RANDOM_SEED": "42", "RESUME": "true"}
    )

    assert settings.feed.exchange_rate == Decimal("1")
    assert settings.feed.start_offset == 5
    assert settings.feed.random_seed == 42
    assert settings.feed.resume


@pytest.mark.parametrize(
    "name, value, reported",
    [
        ("START_OFFSET", "-1", "START_OFFSET"),
        ("RANDOM_SEED", "seed", "RANDOM_SEED"),
        ("NAVIGATION_RETRIES", "0", "NAVIGATION_RETRIES"),
        ("LOG_LEVEL", "LOUD", "LOUD"),
    ],
)
def test_invalid_optional_values(base_env, name, value, reported):
    base_env.setenv(name, value)
    with pytest.raises(ConfigValidationError, match=reported):
        load_settings()
