# services/crawler/config_loader.py
"""
Loads the brand → listing-page mapping from ``configs/sources.yaml`` and
validates it with Pydantic models.  The file can contain a top-level
``brands`` key or just the mapping of brand names → config dictionaries.

Public API:
* ``get_brand_config(name)`` – returns a validated ``BrandConfig`` or
  raises ``BrandNotFoundError``.
* ``list_available_brands()`` – brand names in file order.
* ``load_brands(path)`` – parse an arbitrary file (used by tests and the CLI).
"""

from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator

from core.config import get_settings


class BrandConfig(BaseModel):
    """Trusted listing pages for one brand."""
    listing_pages: List[str] = Field(default_factory=list)

    @field_validator("listing_pages")
    @classmethod
    def _absolute_http_urls(cls, pages: List[str]) -> List[str]:
        for page in pages:
            parsed = urlparse(page)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"Listing page must be an absolute http(s) URL: {page!r}")
        return pages


class AllBrands(BaseModel):
    """Top-level container – maps brand name → its config."""
    brands: Dict[str, BrandConfig]


# ----------------------------------------------------------------------
# Internal helpers & caching
# ----------------------------------------------------------------------
# Simple in-process cache so the YAML is read/validated only once per path
_cache: Dict[Path, AllBrands] = {}


def _load_yaml(path: Path) -> dict:
    """Read the YAML file and return the inner ``brands`` mapping."""
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
        return raw.get("brands", raw)


def load_brands(path: Optional[Path] = None) -> AllBrands:
    """
    Parse the YAML at ``path`` (default: ``settings.SOURCES_PATH``), validate
    it against ``AllBrands`` and cache the result.
    """
    path = Path(path or get_settings().SOURCES_PATH).resolve()
    if path not in _cache:
        _cache[path] = AllBrands(brands=_load_yaml(path))   # validation happens here
    return _cache[path]


def clear_cache() -> None:
    _cache.clear()


# ----------------------------------------------------------------------
# Custom exception for a missing brand
# ----------------------------------------------------------------------
class BrandNotFoundError(KeyError):
    """Raised when a requested brand does not exist in sources.yaml."""

    def __init__(self, brand: str):
        super().__init__(f"Brand '{brand}' not found.")
        self.brand = brand


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------
def get_brand_config(brand: str, path: Optional[Path] = None) -> BrandConfig:
    """
    Return the ``BrandConfig`` for ``brand`` (case-insensitive).

    Raises
    ------
    BrandNotFoundError
        If the brand is not present in the YAML.
    """
    brands = load_brands(path).brands
    if brand in brands:
        return brands[brand]
    for name, cfg in brands.items():
        if name.lower() == brand.lower():
            return cfg
    raise BrandNotFoundError(brand)


def list_available_brands(path: Optional[Path] = None) -> List[str]:
    return list(load_brands(path).brands.keys())
