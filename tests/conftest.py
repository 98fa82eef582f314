from decimal import Decimal

import pytest

from spree_uploader.config import AdminSettings, MediaSettings, ReportSettings
from spree_uploader.models import NormalizedProduct


def make_product(index: int = 0, **overrides) -> NormalizedProduct:
    fields = {
        "title": f"Product {index}",
        "product_id": f"P{index}",
        "sku": f"P{index}",
        "slug": f"product-{index}-p{index}",
        "list_price": Decimal("40.00"),
        "cost_price": Decimal("20.00"),
        "compare_at_price": Decimal("52.50"),
        "source_url": f"https://supplier.example.com/p/{index}",
        "feed_index": index,
    }
    fields.update(overrides)
    return NormalizedProduct(**fields)


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def admin_settings() -> AdminSettings:
    return AdminSettings(
        base_url="https://shop.example.com",
        email="admin@example.com",
        password="secret",
        prototype_id="1",
        shipping_category="Public - TR to US by Weight",
        shipping_category_id="5698",
        available_on_offset_days=2,
        stock_location="",
    )


@pytest.fixture
def report_settings(tmp_path) -> ReportSettings:
    return ReportSettings(report_dir=str(tmp_path / "reports"), export_xlsx=False)


@pytest.fixture
def media_settings(tmp_path) -> MediaSettings:
    return MediaSettings(image_dir=str(tmp_path / "images"), download_timeout=5.0)
