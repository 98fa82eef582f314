import pytest

from spree_uploader.utils import product_slug, slugify


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Saç Fırçası", "sac-fircasi"),
        ("%100 Pamuk Ürün!!", "100-pamuk-urun"),
        ("İSTANBUL ÇAĞRI Şal", "istanbul-cagri-sal"),
        ("  --Gözlük   Kabı--  ", "gozluk-kabi"),
        ("USB-C  Cable (2m)", "usb-c-cable-2m"),
        ("", ""),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


def test_slugify_is_stable():
    title = "Öğrenci Çantası %100 Deri"
    assert slugify(title) == slugify(title) == "ogrenci-cantasi-100-deri"


def test_product_slug_includes_sku():
    assert product_slug("Saç Fırçası", "123 Trendyol_TR") == "sac-fircasi-123-trendyol-tr"
