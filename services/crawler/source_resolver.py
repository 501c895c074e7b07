# services/crawler/source_resolver.py
"""
Turns a brand's trusted listing pages into a short list of article URLs.

Each listing page is fetched once (no retries, longer timeout), its anchors
are scanned with a fixed list of article-link selectors and only links whose
text mentions something camera-related survive.  Shopping, social media and
internal search links are dropped.  A listing page that fails to load just
contributes nothing.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import robotexclusionrulesparser
from bs4 import BeautifulSoup, Tag
from loguru import logger

from core.config import Settings, get_settings
from models.outcome import Skip, SkipReason, Stage

from .deadline import Deadline
from .page_fetcher import PageFetcher, SleepFunc

# Tried in order; a listing page stops contributing once it yields enough links
ARTICLE_LINK_SELECTORS = (
    "article a[href]",
    ".post a[href]",
    ".entry a[href]",
    ".article-link",
    "h2 a[href]",
    "h3 a[href]",
    ".story-card a[href]",
    ".news-item a[href]",
)

RELEVANCE_KEYWORDS = ("firmware", "camera", "lens", "update", "announcement")

# Hosts that never carry articles (retailers, affiliates, social media)
BLOCKED_DOMAINS = (
    "amzn.to",
    "amazon.com",
    "bhphotovideo.com",
    "adorama.com",
    "x.com",
    "twitter.com",
    "facebook.com",
    "instagram.com",
    "youtube.com",
)

SEARCH_MARKERS = ("/search?", "?q=")

_CONTEXT_CHARS = 300


def _is_blocked_host(host: str) -> bool:
    host = host.lower().split(":")[0]
    return any(host == d or host.endswith("." + d) for d in BLOCKED_DOMAINS)


def _link_context(anchor: Tag) -> str:
    """Anchor text, its ``title`` attribute and a slice of the parent's text."""
    parts = [anchor.get_text(" ", strip=True), anchor.get("title") or ""]
    if anchor.parent is not None:
        parts.append(anchor.parent.get_text(" ", strip=True)[:_CONTEXT_CHARS])
    return " ".join(parts).lower()


def is_relevant_link(anchor: Tag, brand: str) -> bool:
    context = _link_context(anchor)
    keywords = RELEVANCE_KEYWORDS + (brand.lower(),)
    return any(k in context for k in keywords)


def normalize_link(href: str, listing_url: str) -> Optional[str]:
    """Resolve ``href`` against the listing page; ``None`` for non-article targets."""
    href = (href or "").strip()
    if not href or href.startswith(("javascript:", "mailto:", "tel:", "#")):
        return None
    parsed = urlparse(urljoin(listing_url, href))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    url = parsed._replace(fragment="").geturl()
    if _is_blocked_host(parsed.netloc) or any(m in url for m in SEARCH_MARKERS):
        return None
    return url


def is_plausible_article_url(url: str, cfg: Optional[Settings] = None) -> bool:
    """Length, truncation and path-depth sanity checks applied after discovery."""
    cfg = cfg or get_settings()
    return (
        len(url) < cfg.MAX_URL_LENGTH
        and "..." not in url
        and len(url.split("/")) >= cfg.MIN_URL_PARTS
    )


def extract_candidate_links(
    html: str,
    listing_url: str,
    brand: str,
    limit: int = 10,
) -> List[str]:
    """Scan ``html`` for relevant article links, in selector order, up to ``limit``."""
    soup = BeautifulSoup(html, "html.parser")
    found: List[str] = []
    for selector in ARTICLE_LINK_SELECTORS:
        for anchor in soup.select(selector):
            href = anchor.get("href")
            if not href or not is_relevant_link(anchor, brand):
                continue
            url = normalize_link(href, listing_url)
            if url and url not in found:
                found.append(url)
            if len(found) >= limit:
                return found
    return found


def dedupe_and_cap(urls: Iterable[str], cfg: Optional[Settings] = None) -> List[str]:
    cfg = cfg or get_settings()
    unique = list(dict.fromkeys(urls))
    return [u for u in unique if is_plausible_article_url(u, cfg)][: cfg.MAX_URLS_PER_BRAND]


class SourceResolver:
    """Discovers candidate article URLs for one brand at a time."""

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        settings: Optional[Settings] = None,
        sleep: SleepFunc = asyncio.sleep,
        respect_robots: Optional[bool] = None,
    ):
        self.fetcher = fetcher
        self.settings = settings or get_settings()
        self._sleep = sleep
        self.respect_robots = (
            self.settings.RESPECT_ROBOTS_TXT if respect_robots is None else respect_robots
        )
        self._robots: Dict[str, robotexclusionrulesparser.RobotExclusionRulesParser] = {}

    # ------------------------------------------------------------------
    # robots.txt
    # ------------------------------------------------------------------
    async def _robots_for(self, url: str, deadline: Deadline):
        parsed = urlparse(url)
        origin = f"{parsed.scheme}://{parsed.netloc}"
        if origin not in self._robots:
            parser = robotexclusionrulesparser.RobotExclusionRulesParser()
            outcome = await self.fetcher.try_fetch(
                f"{origin}/robots.txt", deadline, stage=Stage.RESOLVE, attempts=1
            )
            if outcome.ok:
                parser.parse(outcome.value)
            else:
                logger.warning(f"Failed to load robots.txt for {origin}: {outcome.skip}")
            self._robots[origin] = parser
        return self._robots[origin]

    async def is_allowed(self, url: str, deadline: Optional[Deadline] = None) -> bool:
        if not self.respect_robots:
            return True
        parser = await self._robots_for(url, deadline or Deadline.never())
        return parser.is_allowed(self.settings.DEFAULT_USER_AGENT, url)

    # ------------------------------------------------------------------
    async def resolve(
        self,
        brand: str,
        listing_pages: List[str],
        deadline: Optional[Deadline] = None,
    ) -> Tuple[List[str], List[Skip]]:
        """
        Return ``(urls, skips)`` for ``brand``.

        ``urls`` is deduplicated, sanity-filtered and capped; ``skips`` records
        every listing page (or robots-blocked article) that contributed nothing.
        """
        deadline = deadline or Deadline.never()
        cfg = self.settings
        discovered: List[str] = []
        skips: List[Skip] = []

        for index, listing_url in enumerate(listing_pages):
            if index:
                await self._sleep(cfg.SOURCE_DELAY)
            outcome = await self.fetcher.try_fetch(
                listing_url,
                deadline,
                stage=Stage.RESOLVE,
                attempts=1,
                timeout=cfg.LISTING_TIMEOUT,
            )
            if not outcome.ok:
                logger.warning(f"{brand}: listing page skipped – {outcome.skip}")
                skips.append(outcome.skip)
                if outcome.skip.reason is SkipReason.DEADLINE:
                    break
                continue

            links = extract_candidate_links(
                outcome.value, listing_url, brand, cfg.MAX_CANDIDATES_PER_LISTING
            )
            logger.debug(f"{brand}: {len(links)} candidate link(s) on {listing_url}")
            discovered.extend(links)

        urls = dedupe_and_cap(discovered, cfg)
        if self.respect_robots:
            allowed: List[str] = []
            for url in urls:
                if await self.is_allowed(url, deadline):
                    allowed.append(url)
                else:
                    skips.append(Skip(stage=Stage.RESOLVE, reason=SkipReason.ROBOTS, subject=url))
            urls = allowed

        logger.info(f"{brand}: found {len(urls)} valid article(s) to analyse")
        return urls, skips
