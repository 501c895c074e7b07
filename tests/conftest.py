# tests/conftest.py
"""
Shared fixtures: canned HTML pages, a record factory and a recording sleep
so no test ever waits on a real clock or touches the network.
"""

import datetime as dt
from typing import List

import pytest

from core.config import Settings
from models.camera_update import CameraUpdate, UpdateType

DEFAULT_DESCRIPTION = (
    "Canon has released a new firmware version for the EOS R5 that improves "
    "autofocus tracking and overall stability for photographers in the field."
)


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that only remembers what it was asked."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(REQUEST_DELAY=0.0, SOURCE_DELAY=0.0, RETRY_BACKOFF=0.0, DEADLINE_SECONDS=None)


@pytest.fixture
def make_update():
    """Factory for valid ``CameraUpdate`` records; override any field by keyword."""

    def _make(**overrides) -> CameraUpdate:
        data = dict(
            brand="Canon",
            type=UpdateType.FIRMWARE,
            title="Canon EOS R5 Firmware Update 1.2.0",
            date=dt.date(2024, 3, 5),
            version="1.2.0",
            description=DEFAULT_DESCRIPTION,
            features=[],
        )
        data.update(overrides)
        return CameraUpdate(**data)

    return _make


# ----------------------------------------------------------------------
# HTML pages
# ----------------------------------------------------------------------
@pytest.fixture
def article_html() -> str:
    return """
<html>
<head><title>Canon EOS R5 firmware</title></head>
<body>
<nav><a href="/">Home</a> <a href="/reviews/">Reviews</a></nav>
<main>
  <article>
    <h1>Canon EOS R5 Firmware Update 1.2.0 Released</h1>
    <p class="meta">Posted on March 5, 2024</p>
    <p>The new firmware improves autofocus tracking for moving subjects in low light conditions.</p>
    <p>It also fixes an issue where the camera could freeze during long video recording sessions.</p>
    <p>Photographers are advised to install the update before their next shoot to benefit from the improved stability.</p>
    <ul>
      <li>Improved AF tracking in low light conditions</li>
      <li>Fixed an issue with the shutter during recording</li>
    </ul>
    <a href="/downloads/eos-r5-120">Download firmware 1.2.0</a>
    <h3>Related</h3>
    <h2>Shop the best camera deals today</h2>
  </article>
</main>
<footer>Copyright</footer>
</body>
</html>
"""


@pytest.fixture
def listing_html() -> str:
    return """
<html><body>
<article><h2><a href="/2024/03/canon-eos-r5-firmware-update/">Canon EOS R5 firmware update released</a></h2></article>
<article><h2><a href="https://www.amazon.com/dp/B0123">Canon EOS R5 camera deal</a></h2></article>
<article><h2><a href="/search?q=canon+lens">Search Canon lens</a></h2></article>
<article><h2><a href="/2024/03/weekly-photo-contest/">Weekly photo contest winners</a></h2></article>
<article><a href="https://www.netflix.com/title/123/canon-documentary">Canon documentary</a></article>
<div class="post"><a href="https://www.canonrumors.com/2024/03/rf-24-105-lens-announced/#comments">New RF lens announced</a></div>
</body></html>
"""


@pytest.fixture
def thin_html() -> str:
    return "<html><body><h1>Canon EOS R5 Firmware Update</h1></body></html>"
