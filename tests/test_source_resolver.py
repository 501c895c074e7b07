# tests/test_source_resolver.py
import httpx

from models.outcome import SkipReason, Stage
from services.crawler.deadline import Deadline
from services.crawler.page_fetcher import PageFetcher
from services.crawler.source_resolver import (
    SourceResolver,
    extract_candidate_links,
    is_plausible_article_url,
    normalize_link,
)

LISTING = "https://www.canonrumors.com/"
BROKEN = "https://broken.example.com/news"

R5 = "https://www.canonrumors.com/2024/03/canon-eos-r5-firmware-update/"
DOC = "https://www.netflix.com/title/123/canon-documentary"
RF = "https://www.canonrumors.com/2024/03/rf-24-105-lens-announced/"


def _resolver(pages, no_sleep, settings, **kwargs) -> SourceResolver:
    """Resolver over a mock transport serving ``pages`` (url → body, status or exception)."""

    def handler(request: httpx.Request) -> httpx.Response:
        item = pages.get(str(request.url), 404)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, int):
            return httpx.Response(item)
        return httpx.Response(200, text=item)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = PageFetcher(client, settings=settings, sleep=no_sleep)
    return SourceResolver(fetcher, settings=settings, sleep=no_sleep, **kwargs)


# ----------------------------------------------------------------------
# Link discovery
# ----------------------------------------------------------------------
def test_candidate_links_follow_selector_order(listing_html):
    assert extract_candidate_links(listing_html, LISTING, "Canon") == [R5, DOC, RF]


def test_candidate_links_respect_the_limit(listing_html):
    assert extract_candidate_links(listing_html, LISTING, "Canon", limit=2) == [R5, DOC]


def test_normalize_link_drops_non_article_targets():
    assert normalize_link("mailto:tips@example.com", LISTING) is None
    assert normalize_link("#comments", LISTING) is None
    assert normalize_link("https://shop.amazon.com/dp/1", LISTING) is None
    assert normalize_link("/search?q=nikon", LISTING) is None
    assert normalize_link("/a/b/#top", LISTING) == "https://www.canonrumors.com/a/b/"


def test_plausible_article_urls():
    assert is_plausible_article_url("https://example.com/news")
    assert not is_plausible_article_url("https://example.com")
    assert not is_plausible_article_url("https://example.com/news/canon-eos-r5...")
    assert not is_plausible_article_url("https://example.com/" + "a" * 200)


# ----------------------------------------------------------------------
# resolve()
# ----------------------------------------------------------------------
async def test_failing_listing_page_is_a_skip(listing_html, no_sleep, fast_settings):
    resolver = _resolver(
        {LISTING: listing_html, BROKEN: httpx.ConnectError("connection refused")},
        no_sleep,
        fast_settings,
    )

    urls, skips = await resolver.resolve("Canon", [LISTING, BROKEN])

    assert urls == [R5, DOC, RF]
    assert len(skips) == 1
    assert skips[0].stage is Stage.RESOLVE
    assert skips[0].reason is SkipReason.FETCH_FAILED
    assert skips[0].subject == BROKEN
    # one pause between the two listing pages
    assert no_sleep.calls == [0.0]


async def test_expired_deadline_stops_resolution(listing_html, no_sleep, fast_settings):
    resolver = _resolver({LISTING: listing_html}, no_sleep, fast_settings)

    urls, skips = await resolver.resolve("Canon", [LISTING, LISTING], Deadline(0))

    assert urls == []
    assert [s.reason for s in skips] == [SkipReason.DEADLINE]


async def test_robots_disallowed_articles_are_skipped(listing_html, no_sleep, fast_settings):
    pages = {
        LISTING: listing_html,
        "https://www.canonrumors.com/robots.txt": "User-agent: *\nDisallow: /2024/03/rf-24-105\n",
    }
    resolver = _resolver(pages, no_sleep, fast_settings, respect_robots=True)

    urls, skips = await resolver.resolve("Canon", [LISTING])

    assert urls == [R5, DOC]
    assert [(s.reason, s.subject) for s in skips] == [(SkipReason.ROBOTS, RF)]


async def test_robots_is_ignored_by_default(listing_html, no_sleep, fast_settings):
    pages = {
        LISTING: listing_html,
        "https://www.canonrumors.com/robots.txt": "User-agent: *\nDisallow: /\n",
    }
    resolver = _resolver(pages, no_sleep, fast_settings)

    urls, skips = await resolver.resolve("Canon", [LISTING])

    assert urls == [R5, DOC, RF]
    assert skips == []
