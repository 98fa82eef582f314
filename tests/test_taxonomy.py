import pytest

from spree_uploader.models import TaxonPath
from spree_uploader.services.taxonomy import (
    match_taxon,
    match_taxon_index,
    select_taxon_keywords,
)


@pytest.mark.parametrize(
    "keywords, expected",
    [
        (["Shoes", "Men", "Sneakers"], ("Shoes", "Men")),
        (["Shoes"], ("Shoes", "General")),
        ([], ("General", "Product")),
        (["  ", "Bags"], ("Bags", "General")),
    ],
)
def test_select_taxon_keywords(keywords, expected):
    assert select_taxon_keywords(keywords) == expected


@pytest.mark.parametrize(
    "value",
    [
        {"parts": ["Cosmetics", "Hair Care", "Combs"]},
        ["Cosmetics", "Hair Care", "Combs"],
        "Cosmetics > Hair Care > Combs",
        "Cosmetics -> Hair Care -> Combs",
        "Cosmetics/Hair Care/Combs",
    ],
)
def test_taxon_path_parse_keeps_segment_order(value):
    path = TaxonPath.parse(value)
    assert path is not None
    assert path.parts == ("Cosmetics", "Hair Care", "Combs")
    assert path.is_hierarchical


def test_taxon_path_parse_empty_values():
    assert TaxonPath.parse(None) is None
    assert TaxonPath.parse("") is None
    assert TaxonPath.parse({"parts": []}) is None
    assert not TaxonPath.parse("Combs").is_hierarchical


def test_match_taxon_selects_path_with_matching_tail():
    target = TaxonPath.parse({"parts": ["Cosmetics", "Hair Care", "Combs"]})
    candidates = [
        "Categories -> Kitchen -> Hair Care -> Tools",
        "Categories -> Cosmetics -> Combs",
        "Categories -> Cosmetics -> Hair Care -> Combs",
        "Categories -> Cosmetics -> Hair Care -> Combs -> Wooden",
    ]

    matched = match_taxon(candidates, target)

    assert matched == TaxonPath(
        ("Categories", "Cosmetics", "Hair Care", "Combs")
    )


def test_match_taxon_rejects_partial_middle_match():
    target = TaxonPath(("Cosmetics", "Hair Care", "Combs"))
    candidates = [
        "Categories -> Kitchen -> Hair Care -> Brushes",
        "Categories -> Hair Care",
    ]

    assert match_taxon(candidates, target) is None


def test_match_taxon_ignores_case_and_spacing():
    target = TaxonPath(("hair  care", "COMBS"))
    assert match_taxon(["Categories > Hair Care > Combs"], target) is not None


def test_match_taxon_index_skips_option_containing_target_text():
    target = TaxonPath(("Cosmetics", "Hair Care", "Combs"))
    candidates = [
        "A -> Cosmetics -> Hair Care -> Combs Extra",
        "",
        "A -> Cosmetics -> Hair Care -> Combs",
    ]

    assert match_taxon_index(candidates, target) == 2
    assert match_taxon_index(candidates[:2], target) is None
