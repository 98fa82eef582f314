from dataclasses import replace
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from spree_uploader.__main__ import (
    build_overrides,
    create_normalizer,
    feed_name_for,
    main,
    parse_args,
    resolve_start_offset,
    run_pipeline,
)
from spree_uploader.config import (
    AdminSettings,
    BrowserSettings,
    DatabaseSettings,
    FeedSettings,
    LogSettings,
    MediaSettings,
    ReportSettings,
    Settings,
    get_feed_name,
)
from spree_uploader.config import settings as settings_module


@pytest.fixture
def settings(admin_settings, report_settings, media_settings, tmp_path):
    return Settings(
        admin=admin_settings,
        browser=BrowserSettings(
            headless=True,
            navigation_timeout=1000,
            page_wait_time=10,
            navigation_retries=1,
            navigation_retry_delay=0.0,
        ),
        feed=FeedSettings(
            feed_path="",
            exchange_rate=Decimal("32.5"),
            taxon_path="Cosmetics > Hair Care",
            start_offset=0,
            resume=False,
            random_seed=5,
            sku_suffix="Trendyol_TR",
            allow_fallback=True,
        ),
        media=media_settings,
        database=DatabaseSettings(db_path=":memory:"),
        report=report_settings,
        log=LogSettings(level="INFO", file_path=""),
    )


def test_build_overrides_maps_only_given_arguments():
    args = parse_args(["--feed", "data/feed.json", "--rate", "32.5", "--resume"])

    assert build_overrides(args) == {
        "FEED_PATH": "data/feed.json",
        "EXCHANGE_RATE": "32.5",
        "RESUME": "true",
    }


def test_feed_name_for():
    assert feed_name_for("data/trendyol_combs.json") == "trendyol_combs"
    assert feed_name_for("") == "synthetic"


def test_create_normalizer_uses_settings(settings):
    result = create_normalizer(settings).normalize_records(
        [{"title": "Tarak", "productId": "9", "price": 650}]
    )

    product = result.products[0]
    assert product.sku == "9 Trendyol_TR"
    assert str(product.taxon_path) == "Cosmetics > Hair Care"


def test_resolve_start_offset_on_resume(settings):
    repository = MagicMock()
    repository.get_last_feed_index.return_value = 7
    resumed = replace(settings, feed=replace(settings.feed, resume=True, start_offset=3))

    assert resolve_start_offset(resumed, repository, "feed") == 8
    assert resolve_start_offset(settings, repository, "feed") == 0


@pytest.mark.asyncio
async def test_dry_run_does_not_start_browser(settings, monkeypatch):
    create_driver = MagicMock()
    monkeypatch.setattr("spree_uploader.__main__.create_driver", create_driver)

    assert await run_pipeline(settings, dry_run=True) == 0
    create_driver.assert_not_called()


def test_main_exits_on_config_error(monkeypatch):
    monkeypatch.setattr(settings_module, "_load_env", lambda: None)
    for name in ("SPREE_ADMIN_URL", "SPREE_ADMIN_EMAIL", "SPREE_ADMIN_PASSWORD", "EXCHANGE_RATE"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(SystemExit) as exc_info:
        main(["--dry-run"])

    assert exc_info.value.code == 1


@pytest.mark.asyncio
async def test_pipeline_binds_feed_name_for_logs(settings, tmp_path):
    feed = tmp_path / "combs.json"
    feed.write_text('[{"title": "Tarak", "price": 100}]', encoding="utf-8")
    with_feed = replace(settings, feed=replace(settings.feed, feed_path=str(feed)))

    await run_pipeline(with_feed, dry_run=True)

    assert get_feed_name() == "combs"
