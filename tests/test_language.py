# tests/test_language.py
import pytest

from core.thresholds import Thresholds
from services.validation.language import (
    is_english_text,
    is_promotional,
    is_valid_feature,
    looks_like_navigation,
)


# ----------------------------------------------------------------------
# Language gate – accepted and rejected headlines
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "text",
    [
        "Canon EOS R5 Mark II Firmware Update 1.2.0",
        "Sony A7 V - Professional Hybrid Camera with 45MP sensor",
        "Improved AF tracking in low light conditions",
    ],
)
def test_english_text_is_accepted(text):
    assert is_english_text(text) is True


@pytest.mark.parametrize(
    "text,why",
    [
        ("キヤノン EOS R5 ファームウェアアップデート", "japanese script"),
        ("Nikon Z9 Обновление прошивки версия 3.0", "cyrillic present"),
        ("test", "too short"),
        ("", "empty"),
        ("Lorem ipsum dolor sit amet consectetur adipiscing elit", "no common words"),
        ("camera 123 lens 456 update", "no two adjacent alphabetic words"),
        ("### $$$ @@@ camera update %%% ^^^", "symbol heavy"),
    ],
)
def test_non_english_or_garbled_text_is_rejected(text, why):
    assert is_english_text(text) is False, why


def test_none_is_rejected():
    assert is_english_text(None) is False


def test_word_ratio_threshold_is_configurable():
    """
    One common word in ten reaches the default 0.10 ratio but not a
    stricter threshold.
    """
    text = "Nikon Zfc retro body keeps classic dials with brass knobs"
    assert is_english_text(text) is True
    assert is_english_text(text, Thresholds(language_word_ratio=0.5)) is False


# ----------------------------------------------------------------------
# Promotional and navigation detection
# ----------------------------------------------------------------------
def test_promotional_language_is_detected():
    assert is_promotional("Buy now and save on the new camera body")
    assert is_promotional("Best deals on RF lenses this week")
    assert not is_promotional("Wholesale changes to the autofocus system")


def test_navigation_labels_are_detected():
    assert looks_like_navigation("Home | Search | Login")
    assert looks_like_navigation("Share this: comments (3)")
    # "homepage" and "research" must not trip the "home"/"search" entries
    assert not looks_like_navigation("Researchers tested the homepage of the sensor maker")


def test_release_note_mentioning_a_label_is_not_navigation():
    text = "Added a new menu item to assign custom white balance presets"
    assert not looks_like_navigation(text)
    assert is_valid_feature(text) is True


# ----------------------------------------------------------------------
# Feature bullets
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "feature",
    [
        "Improved AF tracking in low light conditions",
        "Fixed an issue with the shutter during recording",
    ],
)
def test_valid_features(feature):
    assert is_valid_feature(feature) is True


@pytest.mark.parametrize(
    "feature",
    [
        "Short bullet",                                   # under 15 chars
        "camera " * 50,                                   # over 300 chars
        "Buy now with free shipping on the camera",       # promotional
        "Home | Search | Login | Cart",                   # navigation
        "Verbesserte Nachführung bei wenig Licht",        # not enough common words
        None,
    ],
)
def test_invalid_features(feature):
    assert is_valid_feature(feature) is False
