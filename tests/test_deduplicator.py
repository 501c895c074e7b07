# tests/test_deduplicator.py
from models.outcome import SkipReason
from services.dedup.deduplicator import Deduplicator
from services.dedup.identity import assign_identity

VALID_FEATURES = [
    "Improved AF tracking in low light conditions",
    "Fixed an issue with the shutter during recording",
]
SPAM_FEATURES = [
    "Buy now with free shipping on this camera",
    "Shop the sale today and save on the lens",
    "Subscribe to our newsletter for the new deals",
]


def _ids(updates):
    return [u.id for u in updates]


# ----------------------------------------------------------------------
# Scenario tests
# ----------------------------------------------------------------------
def test_containment_duplicate_keeps_the_earlier_record(make_update):
    first = assign_identity(make_update(title="Canon EOS R5 Firmware Update"))
    second = assign_identity(make_update(title="Canon EOS R5 Firmware Update 1.2.0"))

    result = Deduplicator().deduplicate([first, second])

    assert [u.title for u in result.unique] == ["Canon EOS R5 Firmware Update"]
    assert len(result.dropped) == 1
    assert result.dropped[0].reason is SkipReason.DUPLICATE


def test_distinct_versions_are_not_merged(make_update):
    a = assign_identity(make_update(title="Canon EOS R5 Firmware Update", version="1.2.0"))
    b = assign_identity(make_update(title="Canon EOS R5 Firmware Update 1.2.0", version="1.3.0"))

    result = Deduplicator().deduplicate([a, b])

    assert len(result.unique) == 2
    assert result.dropped == []


def test_exact_repeat_is_caught_by_key(make_update):
    a = assign_identity(make_update())
    b = assign_identity(make_update(description=make_update().description + " Download it today."))

    result = Deduplicator().deduplicate([a, b])

    assert len(result.unique) == 1
    assert "key already seen" in result.dropped[0].detail


def test_same_title_for_different_brands_survives(make_update):
    canon = assign_identity(make_update(brand="Canon", title="Mirrorless camera firmware update for video"))
    nikon = assign_identity(make_update(brand="Nikon", title="Mirrorless camera firmware update for video"))

    result = Deduplicator().deduplicate([canon, nikon], scope="global")

    assert [u.brand for u in result.unique] == ["Canon", "Nikon"]


# ----------------------------------------------------------------------
# Pre-filter
# ----------------------------------------------------------------------
def test_records_without_readable_text_are_dropped(make_update):
    empty = make_update(description="")
    foreign = make_update(title="Nikon Z9 Обновление прошивки версия 3.0")

    result = Deduplicator().deduplicate([empty, foreign])

    assert result.unique == []
    assert [s.reason for s in result.dropped] == [SkipReason.MISSING_CONTENT, SkipReason.LANGUAGE]


def test_single_valid_feature_is_cleared(make_update):
    update = make_update(features=VALID_FEATURES[:1] + SPAM_FEATURES)

    result = Deduplicator().deduplicate([update])

    assert result.unique[0].features == []


def test_two_valid_features_survive_without_spam(make_update):
    update = make_update(features=VALID_FEATURES + SPAM_FEATURES)

    result = Deduplicator().deduplicate([update])

    assert result.unique[0].features == VALID_FEATURES


def test_missing_id_is_assigned(make_update):
    result = Deduplicator().deduplicate([make_update()])
    assert result.unique[0].id == "canon-fir-canoneosr5120-120"


def test_inputs_are_not_mutated(make_update):
    update = make_update(features=VALID_FEATURES[:1] + SPAM_FEATURES)
    before = update.model_dump()

    Deduplicator().deduplicate([update])

    assert update.model_dump() == before


# ----------------------------------------------------------------------
# Properties
# ----------------------------------------------------------------------
def test_dedup_is_idempotent_and_ids_are_unique(make_update):
    titles = [
        "Canon EOS R5 Firmware Update",
        "Canon EOS R5 Firmware Update 1.2.0",
        "Canon EOS R6 Mark II firmware update adds new features",
        "Canon EOS R6 Mark II firmware update adds new feature",
        "Canon EOS R8 firmware update improves the camera",
    ]
    updates = [assign_identity(make_update(title=t)) for t in titles]

    once = Deduplicator().deduplicate(updates)
    twice = Deduplicator().deduplicate(once.unique)

    assert _ids(twice.unique) == _ids(once.unique)
    assert twice.dropped == []
    assert len(set(_ids(once.unique))) == len(once.unique)
    assert len(once.unique) == 3


def test_fuzzy_pass_defers_to_same_key(make_update, monkeypatch):
    calls = []

    def always_equal(a, b, thresholds):
        calls.append((a.title, b.title))
        return True

    monkeypatch.setattr("services.dedup.deduplicator.same_key", always_equal)
    first = assign_identity(make_update(title="Canon EOS R5 Firmware Update"))
    second = assign_identity(make_update(title="Canon EOS R8 firmware update improves the camera"))

    result = Deduplicator().deduplicate([first, second])

    assert calls == [(first.title, second.title)]
    assert [u.title for u in result.unique] == [first.title]
    assert result.dropped[0].reason is SkipReason.DUPLICATE
