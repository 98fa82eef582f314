import json
import random
from decimal import Decimal

import pytest

from spree_uploader.models import Specification, TaxonPath
from spree_uploader.services.feed_service import (
    DEFAULT_STOCK_QUANTITY,
    PLACEHOLDER_DESCRIPTION,
    PLACEHOLDER_KEYWORDS,
    EmptyFeedError,
    FeedIssueKind,
    FeedNormalizer,
    FeedUnavailableError,
    load_feed,
    parse_images,
)


@pytest.fixture
def normalizer():
    return FeedNormalizer(exchange_rate=Decimal("32.5"), rng=random.Random(7))


@pytest.fixture
def write_feed(tmp_path):
    def _write(data, name="feed.json"):
        path = tmp_path / name
        text = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


def _record(index, **overrides):
    record = {
        "title": f"Ürün {index}",
        "productId": str(1000 + index),
        "price": 650,
        "brand": "Marka",
        "url": f"https://shop.example/p/{index}",
        "images": [f"https://cdn.example/{index}.jpg"],
        "categories": ["Cosmetics", "Hair Care"],
        "rating": 4.2,
        "stock": 7,
    }
    record.update(overrides)
    return record


def test_normalizes_records_in_feed_order(normalizer, write_feed):
    path = write_feed([_record(i) for i in range(4)])

    result = normalizer.normalize_source(path)

    assert not result.fallback_used
    assert result.issues == []
    assert result.total_records == 4
    assert [p.product_id for p in result.products] == ["1000", "1001", "1002", "1003"]
    assert [p.feed_index for p in result.products] == [0, 1, 2, 3]


def test_prices_follow_exchange_rate_and_markup(normalizer):
    product = normalizer.normalize_record(_record(0, price=650), 0)

    assert product.cost_price == Decimal("20.00")
    assert product.list_price == Decimal("40.00")
    assert Decimal("45.00") <= product.compare_at_price < Decimal("60.00")


def test_fields_are_carried_over(normalizer):
    product = normalizer.normalize_record(_record(3), 3)

    assert product.title == "Ürün 3"
    assert product.sku == "1003"
    assert product.brand == "Marka"
    assert product.source_url == "https://shop.example/p/3"
    assert product.images == ("https://cdn.example/3.jpg",)
    assert product.taxon_keywords == ("Cosmetics", "Hair Care")
    assert product.rating == 4.2
    assert product.stock_quantity == 7
    assert product.slug == "urun-3-1003"
    assert not product.synthetic


def test_missing_fields_get_placeholders(normalizer):
    product = normalizer.normalize_record({}, 0)

    assert product.title.startswith("Test Product ")
    assert product.product_id.startswith("TEST")
    assert product.title.removeprefix("Test Product ") == product.product_id.removeprefix("TEST")
    assert product.list_price == Decimal("20.00")
    assert product.cost_price == Decimal("0.00")
    assert product.description == PLACEHOLDER_DESCRIPTION
    assert product.stock_quantity == DEFAULT_STOCK_QUANTITY
    assert 1 <= product.rating <= 5
    assert len(product.taxon_keywords) == 2
    assert set(product.taxon_keywords) <= set(PLACEHOLDER_KEYWORDS)


def test_blank_title_and_id_get_placeholders(normalizer):
    product = normalizer.normalize_record(
        {"title": "   ", "productId": " \t", "price": 10}, 0
    )

    assert product.title.startswith("Test Product ")
    assert product.product_id.startswith("TEST")
    number = product.title.removeprefix("Test Product ")
    assert product.slug == f"test-product-{number}-test{number}"


def test_blank_value_falls_through_to_next_alias(normalizer):
    product = normalizer.normalize_record({"title": " ", "name": "Kalem"}, 0)
    assert product.title == "Kalem"


def test_empty_category_list_uses_default_keywords(normalizer):
    product = normalizer.normalize_record(_record(0, categories=[]), 0)
    assert product.taxon_keywords == ("General", "Product")


def test_only_two_keywords_are_kept(normalizer):
    product = normalizer.normalize_record(
        _record(0, categories="Shoes, Men, Sneakers"), 0
    )
    assert product.taxon_keywords == ("Shoes", "Men")


def test_sku_suffix_is_appended():
    normalizer = FeedNormalizer(
        exchange_rate=Decimal("30"),
        rng=random.Random(1),
        sku_suffix="Trendyol_TR",
    )

    product = normalizer.normalize_record(
        {"title": "Saç Fırçası", "productId": "123", "price": 300}, 0
    )

    assert product.sku == "123 Trendyol_TR"
    assert product.slug == "sac-fircasi-123-trendyol-tr"


def test_same_seed_gives_same_products(write_feed):
    path = write_feed([{"price": 100}, {"title": "Kalem", "price": 45.5}])

    first = FeedNormalizer(Decimal("32.5"), rng=random.Random(42)).normalize_source(path)
    second = FeedNormalizer(Decimal("32.5"), rng=random.Random(42)).normalize_source(path)

    def _key(product):
        return (
            product.title,
            product.sku,
            product.compare_at_price,
            product.taxon_keywords,
            product.rating,
        )

    assert [_key(p) for p in first.products] == [_key(p) for p in second.products]


@pytest.mark.parametrize(
    "price",
    [-5, "abc", "NaN", [10]],
)
def test_malformed_records_are_skipped_with_index(normalizer, price):
    records = [_record(0), _record(1, price=price), _record(2)]

    result = normalizer.normalize_records(records)

    assert [p.feed_index for p in result.products] == [0, 2]
    assert result.malformed_count == 1
    assert result.issues[0].kind is FeedIssueKind.MALFORMED_RECORD
    assert result.issues[0].index == 1


def test_non_object_record_is_malformed(normalizer):
    result = normalizer.normalize_records([_record(0), "oops", 42])

    assert len(result.products) == 1
    assert [issue.index for issue in result.issues] == [1, 2]


@pytest.mark.parametrize(
    "content, kind",
    [
        ("[]", FeedIssueKind.EMPTY),
        ("{not json", FeedIssueKind.UNAVAILABLE),
        ('{"products": []}', FeedIssueKind.UNAVAILABLE),
    ],
)
def test_unusable_feed_falls_back_to_one_synthetic_product(
    normalizer, write_feed, content, kind
):
    path = write_feed(content)

    result = normalizer.normalize_source(path)

    assert result.fallback_used
    assert len(result.products) == 1
    assert result.products[0].synthetic
    assert result.issues[-1].kind is kind


def test_missing_feed_falls_back(normalizer, tmp_path):
    result = normalizer.normalize_source(tmp_path / "absent.json")

    assert result.fallback_used
    assert result.issues[0].kind is FeedIssueKind.UNAVAILABLE
    product = result.products[0]
    assert product.title.startswith("Test Product ")
    assert product.cost_price >= Decimal("0.30")


def test_no_feed_path_falls_back(normalizer):
    result = normalizer.normalize_source(None)
    assert result.fallback_used
    assert len(result.products) == 1


def test_all_records_malformed_falls_back(normalizer, write_feed):
    path = write_feed([{"price": -1}, {"price": "x"}])

    result = normalizer.normalize_source(path)

    assert result.fallback_used
    assert result.total_records == 2
    assert result.malformed_count == 2
    assert result.issues[-1].kind is FeedIssueKind.EMPTY
    assert len(result.products) == 1


def test_fallback_can_be_disabled(normalizer, write_feed, tmp_path):
    with pytest.raises(FeedUnavailableError):
        normalizer.normalize_source(tmp_path / "absent.json", allow_fallback=False)
    with pytest.raises(EmptyFeedError):
        normalizer.normalize_source(write_feed("[]"), allow_fallback=False)


def test_load_feed_strips_quotes(write_feed):
    path = write_feed([_record(0)])
    assert len(load_feed(f'"{path}"')) == 1


@pytest.mark.parametrize(
    "content, reason",
    [
        ("{not json", "malformed_json"),
        ('{"products": []}', "not_an_array"),
    ],
)
def test_load_feed_reports_unavailable_reason(write_feed, content, reason):
    with pytest.raises(FeedUnavailableError) as exc_info:
        load_feed(write_feed(content))
    assert exc_info.value.reason == reason


def test_load_feed_missing_file(tmp_path):
    with pytest.raises(FeedUnavailableError) as exc_info:
        load_feed(tmp_path / "absent.json")
    assert exc_info.value.reason == "unreadable"


def test_rate_must_be_positive():
    with pytest.raises(ValueError):
        FeedNormalizer(exchange_rate=Decimal("0"))


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://a/1.jpg, https://a/2.jpg", ("https://a/1.jpg", "https://a/2.jpg")),
        ("https://a/1.jpg|https://a/2.jpg", ("https://a/1.jpg", "https://a/2.jpg")),
        (["https://a/1.jpg", "", None], ("https://a/1.jpg",)),
        (None, ()),
    ],
)
def test_parse_images(value, expected):
    assert parse_images(value) == expected


@pytest.mark.parametrize(
    "specifications",
    [
        [{"name": "Materyal", "value": "Ahşap"}, {"name": "", "value": "x"}],
        {"Materyal": "Ahşap"},
    ],
)
def test_specifications_from_list_or_mapping(normalizer, specifications):
    product = normalizer.normalize_record(
        _record(0, specifications=specifications), 0
    )
    assert product.specifications == (Specification("Materyal", "Ahşap"),)


def test_record_taxon_path_overrides_default():
    default = TaxonPath(("Home", "Kitchen"))
    normalizer = FeedNormalizer(
        Decimal("30"), rng=random.Random(0), taxon_path=default
    )

    own = normalizer.normalize_record(
        _record(0, categoryPath="Cosmetics > Hair Care > Combs"), 0
    )
    inherited = normalizer.normalize_record(_record(1), 1)

    assert own.taxon_path == TaxonPath(("Cosmetics", "Hair Care", "Combs"))
    assert inherited.taxon_path == default
