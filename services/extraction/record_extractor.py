# services/extraction/record_extractor.py
"""
Pulls raw ``CameraUpdate`` candidates out of one fetched article page.

The page is narrowed to its main content first.  Every heading and known
content container inside it is a candidate; the classifier decides type,
priority and category, the description synthesizer supplies the prose, and
nothing here judges quality (that is the quality gate's job).
"""

import datetime as dt
import re
from typing import Callable, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from loguru import logger

from models.camera_update import CameraUpdate
from models.outcome import Outcome, SkipReason, Stage
from services.validation.language import is_promotional

from .classifier import (
    classify_category,
    classify_priority,
    classify_type,
    extract_date,
    extract_version,
)
from .description import DescriptionSynthesizer

MAIN_CONTENT_SELECTORS = ("main", "article", ".post", ".entry-content", ".content", "body")
CANDIDATE_SELECTOR = (
    "h1, h2, h3, article.post, .post-content, .entry-content, .news-item, .download-item"
)

MIN_MAIN_HTML = 500
MIN_TITLE_LENGTH = 10
MAX_TITLE_LENGTH = 200
MAX_FEATURES = 5
MAX_CONTEXT_CHARS = 2000
SLUG_LENGTH = 50
IMAGE_FOLDERS = {"firmware": "firmwares", "camera": "cameras", "lens": "lenses"}


def _collapse(text: str) -> str:
    return " ".join((text or "").split())


def main_content(soup: BeautifulSoup) -> Optional[Tag]:
    """First main-content root with enough markup to be worth scanning."""
    for selector in MAIN_CONTENT_SELECTORS:
        root = soup.select_one(selector)
        if root is not None and len(root.decode_contents()) >= MIN_MAIN_HTML:
            return root
    return None


def collect_features(element: Tag) -> List[str]:
    """List items of the parent container, else those nested in the element."""
    scopes = [element.parent, element] if element.parent is not None else [element]
    for scope in scopes:
        items = [_collapse(li.get_text(" ", strip=True)) for li in scope.find_all("li")]
        items = [item for item in items if item]
        if items:
            return items[:MAX_FEATURES]
    return []


def find_download_link(element: Tag, page_url: str) -> Optional[str]:
    container = element.parent if element.parent is not None else element
    for anchor in container.find_all("a", href=True):
        text = anchor.get_text(" ", strip=True).lower()
        if "download" in text or "download" in anchor["href"].lower():
            return urljoin(page_url, anchor["href"])
    return None


def image_path(update_type: str, brand: str, title: str) -> str:
    """Deterministic placeholder image path; nothing is ever fetched from it."""
    slug = re.sub(r"[^a-z0-9]", "-", title.lower())[:SLUG_LENGTH]
    folder = IMAGE_FOLDERS.get(update_type, f"{update_type}s")
    return f"/assets/images/{folder}/{brand.lower()}-{slug}.jpg"


def source_name(page_url: str) -> Optional[str]:
    host = urlparse(page_url).netloc.lower()
    return host[4:] if host.startswith("www.") else host or None


class RecordExtractor:
    def __init__(
        self,
        synthesizer: Optional[DescriptionSynthesizer] = None,
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self.synthesizer = synthesizer or DescriptionSynthesizer()
        self._today = today

    def _candidate(self, element: Tag, brand: str, page_url: str, run_date: dt.date) -> Optional[CameraUpdate]:
        text = _collapse(element.get_text(" ", strip=True))
        if not MIN_TITLE_LENGTH <= len(text) <= MAX_TITLE_LENGTH or is_promotional(text):
            return None

        parent = element.parent if element.parent is not None else element
        context = _collapse(parent.get_text(" ", strip=True))[:MAX_CONTEXT_CHARS]
        combined = f"{text} {context}"

        update_type = classify_type(combined)
        version = extract_version(text, context)
        description = self.synthesizer.describe(element, text, update_type, brand, version)

        return CameraUpdate(
            brand=brand,
            type=update_type,
            title=text,
            date=extract_date(context, run_date),
            version=version,
            description=description,
            features=collect_features(element),
            download_link=find_download_link(element, page_url),
            image_url=image_path(update_type.value, brand, text),
            source_url=page_url,
            source_name=source_name(page_url),
            priority=classify_priority(combined),
            category=classify_category(combined),
        )

    def extract(self, html: str, brand: str, page_url: str) -> Outcome[List[CameraUpdate]]:
        """
        Return every raw candidate on the page, in document order.

        A page without a substantial main-content root is reported as a
        ``THIN_PAGE`` skip; a page with no usable headings is simply an
        empty list.
        """
        soup = BeautifulSoup(html or "", "html.parser")
        root = main_content(soup)
        if root is None:
            return Outcome.skipped(Stage.EXTRACT, SkipReason.THIN_PAGE, page_url)

        run_date = self._today()
        candidates: List[CameraUpdate] = []
        for element in root.select(CANDIDATE_SELECTOR):
            update = self._candidate(element, brand, page_url, run_date)
            if update is not None:
                candidates.append(update)

        logger.debug(f"{brand}: {len(candidates)} candidate(s) on {page_url}")
        return Outcome.success(candidates)
