"""Signal model and ID tests."""

import hashlib
from datetime import datetime, timezone

import pytest

from models.schemas import Signal, dedupe_tags, positional_id, resolve_positional_id, signal_id


def test_signal_id_is_deterministic(make_signal):
    a = make_signal("Fix it", file_path="a.go", line=3)
    b = make_signal("Fix it", file_path="a.go", line=3, description="ignored", confidence=0.9)
    assert signal_id(a, "str-") == signal_id(b, "str-")
    assert signal_id(a, "str-").startswith("str-")
    assert len(signal_id(a, "str-")) == len("str-") + 8


def test_signal_id_matches_digest(make_signal):
    sig = make_signal("Fix it", file_path="a.go", line=3)
    digest = hashlib.sha256("todos\x00todo\x00a.go\x003\x00Fix it".encode()).hexdigest()
    assert signal_id(sig, "p-") == "p-" + digest[:8]


def test_signal_id_field_boundaries(make_signal):
    a = make_signal("bc", file_path="a")
    b = make_signal("c", file_path="ab")
    assert signal_id(a, "") != signal_id(b, "")


def test_signal_id_depends_on_prefix(make_signal):
    sig = make_signal("x")
    assert signal_id(sig, "a-")[2:] == signal_id(sig, "b-")[2:]


@pytest.mark.parametrize("ref,expected", [
    ("sig-0", 0),
    ("sig-3", 3),
    ("sig-4", None),
    ("sig-03", None),
    ("sig--1", None),
    ("sig-", None),
    ("sig-1.0", None),
    ("signal-1", None),
    ("sig-١", None),  # arabic-indic digit one
    ("", None),
])
def test_resolve_positional_id(signals, ref, expected):
    assert resolve_positional_id(ref, signals) == expected


def test_positional_id_round_trip(signals):
    for i in range(len(signals)):
        assert resolve_positional_id(positional_id(i), signals) == i


def test_signal_dict_round_trip():
    sig = Signal(
        title="Fix it",
        kind="bug",
        source="gitlog",
        file_path="a.go",
        line=7,
        tags=["x"],
        priority=2,
        blocks=["str-1"],
        author="dev",
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )
    data = sig.to_dict()
    assert data["timestamp"] == "2024-05-01T12:00:00+00:00"
    assert Signal.from_dict(data) == sig


def test_signal_from_dict_ignores_unknown_keys():
    sig = Signal.from_dict({"title": "t", "extra": 1, "tags": None, "timestamp": ""})
    assert sig.title == "t"
    assert sig.tags == []
    assert sig.timestamp is None


def test_dedupe_tags():
    assert dedupe_tags(["a", "b"], ["b", "c", "a"], []) == ["a", "b", "c"]


def test_resolve_positional_id_lenient(signals):
    assert resolve_positional_id("sig-03", signals, strict=False) == 3
    assert resolve_positional_id("sig-03", signals) is None
    assert resolve_positional_id("sig-04", signals, strict=False) is None
