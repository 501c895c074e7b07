# tests/test_similarity.py
import pytest

from core.thresholds import Thresholds
from models.camera_update import UpdateType
from services.dedup.similarity import (
    containment_match,
    exact_key,
    length_match,
    normalize_match_title,
    same_key,
    similarity,
    title_version_key,
)


# ----------------------------------------------------------------------
# similarity()
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("abcd", "abcd", 1.0),
        ("abcdefghij", "abcdefghi", 0.9),
        ("abcdefghij", "abcde", 0.5),
        ("", "", 1.0),
        ("abc", "", 0.0),
    ],
)
def test_similarity_is_relative_length_difference(a, b, expected):
    assert similarity(a, b) == pytest.approx(expected)


def test_match_normalisation_drops_version_tokens():
    assert normalize_match_title("Nikon Z9 Firmware v2 Update") == "nikonz9"


def test_keys_include_brand_and_version(make_update):
    update = make_update(title="Canon EOS R5 Firmware Update")
    assert exact_key(update) == "canon_firmware_canoneosr5_1.2.0"
    assert title_version_key(update) == "canon_canoneosr5_1.2.0"
    assert exact_key(make_update(version=None)).endswith("_noversion")


# ----------------------------------------------------------------------
# Containment
# ----------------------------------------------------------------------
def test_containment_with_equal_versions():
    assert containment_match("canoneosr5", "canoneosr5120", "1.2.0", "1.2.0")


def test_containment_with_both_versions_missing():
    assert containment_match("canoneosr5", "canoneosr5markii", None, None)


def test_containment_rejects_distinct_versions():
    assert not containment_match("canoneosr5", "canoneosr5120", "1.2.0", "1.3.0")


def test_containment_requires_ten_chars_on_the_short_side():
    assert not containment_match("eosr5", "eosr5markii", None, None)


def test_same_major_version_only_merges_identical_titles():
    assert containment_match("canoneosr5", "canoneosr5", "1.2.0", "1.3.0")
    assert not containment_match("canoneosr5", "canoneosr5", "1.2.0", "2.0.0")


# ----------------------------------------------------------------------
# Length similarity
# ----------------------------------------------------------------------
def test_length_match_needs_shared_prefix_and_equal_versions():
    assert length_match("nikonz8announcedtoday", "nikonz8announcedtodays", "1.0", "1.0")
    assert not length_match("nikonz8announcedtoday", "nikonz8announcedtodays", "1.0", "1.1")
    assert not length_match("nikonz8announcedtoday", "sonya7announcedtodays", None, None)


def test_length_match_threshold_is_strict_and_configurable():
    # 9/10 is exactly 0.9 and does not clear "> 0.9"
    assert not length_match("abcdefghij", "abcdefghi", None, None)
    assert length_match("abcdefghij", "abcdefghi", None, None, Thresholds(length_similarity=0.85))


def test_length_match_ignores_empty_titles():
    assert not length_match("", "", None, None)


# ----------------------------------------------------------------------
# same_key()
# ----------------------------------------------------------------------
def test_same_key_for_containment_scenario(make_update):
    a = make_update(title="Canon EOS R5 Firmware Update")
    b = make_update(title="Canon EOS R5 Firmware Update 1.2.0")
    assert same_key(a, b)


def test_same_key_keeps_distinct_versions_apart(make_update):
    a = make_update(title="Canon EOS R5 Firmware Update", version="1.2.0")
    b = make_update(title="Canon EOS R5 Firmware Update 1.2.0", version="1.3.0")
    assert not same_key(a, b)


def test_title_version_key_spans_types_but_fuzzy_rules_do_not(make_update):
    a = make_update(title="Canon RF 24-105mm announcement today", type=UpdateType.LENS, version=None)
    b = make_update(title="Canon RF 24-105mm announcement today!", type=UpdateType.CAMERA, version=None)
    # the exact keys differ by type but the title+version key is shared
    assert same_key(a, b)

    c = make_update(title="Canon RF 24-105mm announcement", type=UpdateType.CAMERA, version=None)
    assert not same_key(a, c)
