# tests/test_config_loader.py
"""
Tests for ``services.crawler.config_loader``.

The loader returns validated Pydantic models, so the tests use attribute
access (``cfg.listing_pages``) rather than key lookup.
"""

import pytest
from pydantic import ValidationError

from services.crawler.config_loader import (
    BrandConfig,
    BrandNotFoundError,
    get_brand_config,
    list_available_brands,
    load_brands,
)


# ----------------------------------------------------------------------
# The shipped sources file
# ----------------------------------------------------------------------
def test_shipped_brands_in_file_order():
    assert list_available_brands() == ["Canon", "Nikon", "Sony"]


def test_every_brand_has_listing_pages():
    for name in list_available_brands():
        cfg = get_brand_config(name)
        assert isinstance(cfg, BrandConfig)
        assert cfg.listing_pages, f"{name} has no listing pages"
        assert all(page.startswith("https://") for page in cfg.listing_pages)


def test_lookup_is_case_insensitive():
    assert get_brand_config("nikon") == get_brand_config("Nikon")


def test_unknown_brand_raises_custom_error():
    with pytest.raises(BrandNotFoundError) as exc_info:
        get_brand_config("Leica")

    # The message should contain the missing name for easier debugging.
    assert "Leica" in str(exc_info.value)
    assert exc_info.value.brand == "Leica"


# ----------------------------------------------------------------------
# Arbitrary files
# ----------------------------------------------------------------------
def test_file_without_top_level_key(tmp_path):
    path = tmp_path / "sources.yaml"
    path.write_text("Fujifilm:\n  listing_pages:\n    - https://www.fujirumors.com\n", encoding="utf-8")

    brands = load_brands(path)

    assert list(brands.brands) == ["Fujifilm"]
    assert get_brand_config("fujifilm", path).listing_pages == ["https://www.fujirumors.com"]


def test_relative_listing_page_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("brands:\n  Pentax:\n    listing_pages:\n      - /news/pentax\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_brands(path)
