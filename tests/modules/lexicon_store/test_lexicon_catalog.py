from __future__ import annotations

import json

import pytest

from magic_lexicon.errors import NotFoundError, ValidationError
from magic_lexicon.lexicon_store import LexiconCatalog, sanitize_name


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("travel", "travel.json"), ("  travel.json ", "travel.json"), ("my words", "my words.json")],
)
def test_sanitize_name_appends_extension(raw, expected):
    assert sanitize_name(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", None, "a/b", "a\\b", "c:d", "what?", 'q"uote', "<x>", "a|b", "*"])
def test_sanitize_name_rejects_illegal_names(raw):
    with pytest.raises(ValidationError):
        sanitize_name(raw)


def test_catalog_lifecycle(tmp_path):
    catalog = LexiconCatalog(tmp_path / "collections")

    assert catalog.list_collections() == []
    assert catalog.create_collection("verbs") == "verbs.json"
    assert catalog.create_collection("adjectives.json") == "adjectives.json"
    (catalog.base_dir / "notes.txt").write_text("ignored", encoding="utf-8")

    assert catalog.list_collections() == ["adjectives.json", "verbs.json"]
    assert json.loads(catalog.path_for("verbs").read_text(encoding="utf-8")) == []

    assert catalog.rename_collection("verbs", "actions") == "actions.json"
    assert catalog.list_collections() == ["actions.json", "adjectives.json"]

    assert catalog.remove_collection("actions") is True
    assert catalog.list_collections() == ["adjectives.json"]


def test_catalog_errors(tmp_path):
    catalog = LexiconCatalog(tmp_path)
    catalog.create_collection("one")
    catalog.create_collection("two")

    with pytest.raises(ValidationError):
        catalog.create_collection("one")
    with pytest.raises(NotFoundError):
        catalog.remove_collection("missing")
    with pytest.raises(NotFoundError):
        catalog.rename_collection("missing", "other")
    with pytest.raises(ValidationError):
        catalog.rename_collection("one", "two")
    assert catalog.rename_collection("one", "one.json") == "one.json"


def test_catalog_set_base_dir(tmp_path):
    catalog = LexiconCatalog(tmp_path / "a")
    catalog.set_base_dir(tmp_path / "b")

    assert catalog.path_for("x") == tmp_path / "b" / "x.json"
    with pytest.raises(ValidationError):
        catalog.set_base_dir("")
