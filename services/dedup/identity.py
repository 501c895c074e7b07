# services/dedup/identity.py
"""
Deterministic ids for camera updates.

The id is built from plain string operations on (brand, type, title,
version) so the same real-world release gets the same id on every run and
in every process.  No hashing: ``hash()`` is salted per process.
"""

import re
from typing import Optional

from models.camera_update import CameraUpdate, UpdateType

BOILERPLATE_WORDS = ("firmware", "update", "version")
TITLE_KEY_LENGTH = 50
ID_LENGTH = 100
NO_VERSION = "nover"

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_NON_DIGIT = re.compile(r"\D")


def strip_title(title: str) -> str:
    """Lowercase, drop non-alphanumerics, then drop the boilerplate words in order."""
    text = _NON_ALNUM.sub("", (title or "").lower())
    for word in BOILERPLATE_WORDS:
        text = text.replace(word, "")
    return text


def normalize_identity_title(title: str) -> str:
    return strip_title(title)[:TITLE_KEY_LENGTH]


def compute_update_id(brand: str, update_type, title: str, version: Optional[str]) -> str:
    type_value = update_type.value if isinstance(update_type, UpdateType) else str(update_type)
    version_part = _NON_DIGIT.sub("", version or "") or NO_VERSION
    key = (
        f"{brand.lower()[:5]}-{type_value[:3]}-"
        f"{normalize_identity_title(title)}-{version_part}"
    )
    return key[:ID_LENGTH]


def assign_identity(update: CameraUpdate) -> CameraUpdate:
    """Return a copy of ``update`` carrying its computed id."""
    return update.model_copy(
        update={"id": compute_update_id(update.brand, update.type, update.title, update.version)}
    )
