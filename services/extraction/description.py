# services/extraction/description.py
"""
Finds (or writes) a short description for a candidate headline.

Nearby markup is tried first: paragraphs inside a container candidate,
paragraphs right after the heading (up to the next story), then the first
good paragraph of the enclosing article/section, then anything labelled
as an excerpt or summary.  If that yields nothing usable, a per-type template
is filled in from brand, version and title tokens.
"""

import re
import textwrap
from typing import Iterable, Iterator, List, Optional

from bs4 import Tag

from core.thresholds import DEFAULT_THRESHOLDS, Thresholds
from models.camera_update import UpdateType
from services.validation.language import is_english_text

MAX_DESCRIPTION_LENGTH = 280
MIN_DESCRIPTION_LENGTH = 50
MIN_PARAGRAPH_LENGTH = 30
MAX_SIBLING_PARAGRAPHS = 3

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
PARAGRAPH_TAGS = ("p", "blockquote")
# Start of the next story: a heading or another candidate container
BOUNDARY_SELECTOR = (
    "h1, h2, h3, h4, h5, h6, article, .post-content, .entry-content, .news-item, .download-item"
)
BOUNDARY_CLASSES = {"post-content", "entry-content", "news-item", "download-item"}
EXCERPT_SELECTOR = (
    '[class*="excerpt"], [class*="summary"], [class*="description"], '
    '[class*="dek"], [itemprop="description"]'
)

# Wrapper text some sites put in front of a repeated headline
_WRAPPER_PREFIXES = (
    re.compile(r"^[A-Za-z]+\s+Insights\s*", re.I),
    re.compile(r"^[A-Za-z]+\s+News\s*", re.I),
    re.compile(r"^[A-Za-z]+\s+Updates\s*", re.I),
    re.compile(r"^Latest:\s*", re.I),
    re.compile(r"^Breaking:\s*", re.I),
    re.compile(r"^New:\s*", re.I),
)

MODEL_PATTERN = re.compile(
    r"\b([A-Z]{2,}\s+[A-Z]*\d+[A-Za-z]*(?:\s+Mark\s+[IVX]+)?|[A-Z]+\d+[A-Za-z]*(?:\s+Mark\s+[IVX]+)?)"
)
FOCAL_PATTERN = re.compile(r"(\d+(?:-\d+)?)\s*mm", re.I)
APERTURE_PATTERN = re.compile(r"f/?(\d+(?:\.\d+)?)", re.I)


def _collapse(text: str) -> str:
    return " ".join((text or "").split())


def _is_boundary(tag: Tag) -> bool:
    """A heading, or a container that holds the next story."""
    if tag.name in HEADING_TAGS or tag.name == "article":
        return True
    if BOUNDARY_CLASSES.intersection(tag.get("class") or []):
        return True
    return tag.select_one(BOUNDARY_SELECTOR) is not None


def is_restatement(title: str, description: Optional[str]) -> bool:
    """
    True when ``description`` adds nothing over ``title``: equal to it, starts
    or ends with it, wraps it in a few words, or reuses almost all of its
    words in a short text.
    """
    if not description or len(description.strip()) < 20:
        return True

    cleaned = _collapse(description)
    for prefix in _WRAPPER_PREFIXES:
        cleaned = prefix.sub("", cleaned)

    title_lower = _collapse(title).lower()
    desc_lower = cleaned.lower().strip()

    if title_lower == desc_lower:
        return True
    if desc_lower.startswith(title_lower) or desc_lower.endswith(title_lower):
        return True
    if title_lower in desc_lower and len(cleaned) < len(title) + 50:
        return True

    title_words = [w for w in title_lower.split() if len(w) > 3]
    desc_words = set(w for w in desc_lower.split() if len(w) > 3)
    common = [w for w in title_words if w in desc_words]
    overlap = len(common) / max(len(title_words), 1)
    return overlap > 0.8 and len(cleaned) < 150


# ----------------------------------------------------------------------
# Templates
# ----------------------------------------------------------------------
def _firmware_templates(brand: str, version: Optional[str]) -> List[str]:
    release = f"version {version}" if version else "the latest version"
    return [
        f"{brand} has released a new firmware update ({release}) bringing improvements to "
        f"performance and stability. This update addresses various issues reported by users "
        f"and refines the overall shooting experience.",
        f"This firmware release from {brand} moves the camera to {release}, with a focus on "
        f"stability and performance. Installing it is recommended for anyone who has run into "
        f"known issues with the previous version.",
        f"Photographers using {brand} cameras can install new firmware that improves stability "
        f"and performance. The release notes describe the fixes and refinements that are "
        f"included in this update.",
    ]


def _camera_templates(brand: str, title: str) -> List[str]:
    match = MODEL_PATTERN.search(title)
    model = match.group(1).strip() if match else "new camera"
    return [
        f"{brand} announces the {model}, a camera featuring advanced autofocus, a "
        f"high-resolution sensor and enhanced video capabilities. The release brings new "
        f"technology for both photography and videography.",
        f"This new {brand} camera ({model}) brings improvements to autofocus, sensor "
        f"performance and video recording, and is aimed at enthusiasts as well as working "
        f"professionals.",
        f"Photographers following {brand} get a new camera with an updated autofocus system, "
        f"a new sensor and better video features. The announcement covers the full "
        f"specifications and availability.",
    ]


def _lens_templates(brand: str, title: str) -> List[str]:
    specs = []
    focal = FOCAL_PATTERN.search(title)
    aperture = APERTURE_PATTERN.search(title)
    if focal:
        specs.append(f"{focal.group(1)}mm focal length")
    if aperture:
        specs.append(f"f/{aperture.group(1)} aperture")
    spec_text = f" with {' and '.join(specs)}" if specs else ""
    return [
        f"{brand} introduces a new lens{spec_text}, designed for professional photographers. "
        f"Features include an advanced optical design, fast autofocus and weather-sealed "
        f"construction for demanding conditions.",
        f"This {brand} lens{spec_text} is built for demanding photographers, combining sharp "
        f"optics with quiet and fast autofocus in a body that is suited to shooting in "
        f"difficult conditions.",
        f"Photographers working with {brand} systems get a new lens option. The announcement "
        f"covers the optical design, the autofocus performance and the handling of the new "
        f"lens in the field.",
    ]


def template_descriptions(
    update_type: UpdateType, brand: str, title: str, version: Optional[str] = None
) -> List[str]:
    """Three template descriptions for the type, each opening with a different word."""
    if update_type is UpdateType.FIRMWARE:
        return _firmware_templates(brand, version)
    if update_type is UpdateType.LENS:
        return _lens_templates(brand, title)
    return _camera_templates(brand, title)


# ----------------------------------------------------------------------
# Synthesizer
# ----------------------------------------------------------------------
class DescriptionSynthesizer:
    """Builds the ``description`` field for a candidate element."""

    def __init__(self, thresholds: Thresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    def _qualifies(self, text: str, title: str) -> bool:
        return (
            len(text) > MIN_PARAGRAPH_LENGTH
            and title.lower() not in text.lower()
            and is_english_text(text, self.thresholds)
        )

    def _join(self, paragraphs: Iterable[Tag], title: str) -> Optional[str]:
        found: List[str] = []
        for paragraph in paragraphs:
            text = _collapse(paragraph.get_text(" ", strip=True))
            if self._qualifies(text, title):
                found.append(text)
                if len(found) >= MAX_SIBLING_PARAGRAPHS:
                    break
        if not found:
            return None
        return textwrap.shorten(" ".join(found), MAX_DESCRIPTION_LENGTH, placeholder="...")

    def _own_paragraphs(self, element: Tag, title: str) -> Optional[str]:
        """Paragraphs inside a container candidate (``.news-item`` and friends)."""
        if element.name in HEADING_TAGS:
            return None
        return self._join(element.find_all(PARAGRAPH_TAGS), title)

    def _sibling_paragraphs(self, element: Tag, title: str) -> Optional[str]:
        def following() -> Iterator[Tag]:
            for sibling in element.find_next_siblings():
                if _is_boundary(sibling):
                    return
                if sibling.name in PARAGRAPH_TAGS:
                    yield sibling

        return self._join(following(), title)

    def _enclosing_paragraph(self, element: Tag, title: str) -> Optional[str]:
        container = element.find_parent(["article", "section"])
        if container is None:
            return None
        for paragraph in container.find_all("p"):
            text = _collapse(paragraph.get_text(" ", strip=True))
            if self._qualifies(text, title):
                return textwrap.shorten(text, MAX_DESCRIPTION_LENGTH, placeholder="...")
        return None

    def _excerpt(self, element: Tag, title: str) -> Optional[str]:
        if element.name in HEADING_TAGS:
            scope = element.find_parent(["article", "section"]) or element.parent
        else:
            scope = element
        if scope is None:
            return None
        for node in scope.select(EXCERPT_SELECTOR):
            text = _collapse(node.get_text(" ", strip=True))
            if self._qualifies(text, title):
                return textwrap.shorten(text, MAX_DESCRIPTION_LENGTH, placeholder="...")
        return None

    def from_context(self, element: Tag, title: str) -> Optional[str]:
        """Description taken from the markup around ``element``, if any."""
        return (
            self._own_paragraphs(element, title)
            or self._sibling_paragraphs(element, title)
            or self._enclosing_paragraph(element, title)
            or self._excerpt(element, title)
        )

    def fallback(
        self, update_type: UpdateType, brand: str, title: str, version: Optional[str] = None
    ) -> str:
        templates = template_descriptions(update_type, brand, title, version)
        for text in templates:
            if not is_restatement(title, text):
                return text
        # unreachable: the openings differ, so at most two can share a prefix with the title
        return templates[-1]

    def describe(
        self,
        element: Tag,
        title: str,
        update_type: UpdateType,
        brand: str,
        version: Optional[str] = None,
    ) -> str:
        text = self.from_context(element, title)
        if not text or len(text) < MIN_DESCRIPTION_LENGTH or is_restatement(title, text):
            return self.fallback(update_type, brand, title, version)
        return text
