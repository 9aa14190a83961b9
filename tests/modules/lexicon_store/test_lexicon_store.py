from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from magic_lexicon.errors import NotFoundError, ValidationError
from magic_lexicon.lexicon_store import LexicalEntry, LexiconStore


def _stored(store: LexiconStore) -> list:
    return json.loads(store.path.read_text(encoding="utf-8"))


def test_store_creates_empty_document(tmp_path):
    with LexiconStore(tmp_path / "nested" / "data") as store:
        assert store.path == tmp_path / "nested" / "data" / "words.json"
        assert _stored(store) == []
        assert store.list_entries() == []


def test_store_requires_base_dir():
    with pytest.raises(ValidationError):
        LexiconStore("")


def test_create_assigns_identity_and_timestamps(store):
    entry = store.create(
        {
            "word": "  serendipity ",
            "definition": "finding good things by chance",
            "cefr_level": "c1",
            "id": "client-chosen",
            "createdAt": "2000-01-01T00:00:00.000Z",
        }
    )

    assert entry.word == "serendipity"
    assert entry.cefr_level == "C1"
    assert entry.id != "client-chosen"
    assert entry.created_at == entry.updated_at
    assert entry.created_at.endswith("Z")

    fetched = store.get_by_id(entry.id)
    assert fetched == entry
    record = _stored(store)[0]
    assert record["cefrLevel"] == "C1"
    assert set(record) >= {"id", "word", "createdAt", "updatedAt", "tags"}


def test_create_rejects_blank_word(store):
    with pytest.raises(ValidationError):
        store.create({"word": "   "})
    assert _stored(store) == []


def test_create_gives_distinct_ids(store):
    first = store.create({"word": "apple"})
    second = store.create({"word": "apple"})

    assert first.id != second.id
    assert len(store.export_all()) == 2


def test_update_keeps_identity_and_advances_updated_at(store):
    entry = store.create({"word": "gleam", "notes": "old"})

    updated = store.update(
        entry.id,
        {"notes": "new", "id": "other", "createdAt": "1999-01-01T00:00:00.000Z"},
    )

    assert updated.id == entry.id
    assert updated.created_at == entry.created_at
    assert updated.notes == "new"
    assert updated.word == "gleam"
    assert updated.updated_at > entry.updated_at
    assert store.get_by_id(entry.id).notes == "new"


def test_update_unknown_id_raises_and_leaves_document(store):
    store.create({"word": "gleam"})
    before = _stored(store)

    with pytest.raises(NotFoundError):
        store.update("missing", {"notes": "x"})
    assert _stored(store) == before


def test_update_cannot_blank_the_word(store):
    entry = store.create({"word": "gleam"})

    with pytest.raises(ValidationError):
        store.update(entry.id, {"word": " "})
    assert store.get_by_id(entry.id).word == "gleam"


def test_remove_deletes_entry(store):
    keep = store.create({"word": "keep"})
    drop = store.create({"word": "drop"})

    assert store.remove(drop.id) is True
    assert [entry.id for entry in store.list_entries()] == [keep.id]


def test_remove_unknown_id_raises(store):
    with pytest.raises(NotFoundError):
        store.remove("missing")


def test_queue_keeps_running_after_failure(store):
    failing = store.submit_remove("missing")
    succeeding = store.submit_create({"word": "after"})

    with pytest.raises(NotFoundError):
        failing.result()
    assert succeeding.result().word == "after"
    assert [entry.word for entry in store.list_entries()] == ["after"]


def test_list_entries_sorted_by_word(store):
    for word in ("pear", "apple", "mango"):
        store.create({"word": word})

    assert [entry.word for entry in store.list_entries()] == ["apple", "mango", "pear"]
    assert [entry.word for entry in store.export_all()] == ["pear", "apple", "mango"]


def test_search_matches_fields_and_tags(store):
    store.create({"word": "Ephemeral", "definition": "lasting a very short time"})
    store.create({"word": "bank", "tags": ["Finance"], "notes": "river bank too"})

    assert [entry.word for entry in store.search("EPHEM")] == ["Ephemeral"]
    assert [entry.word for entry in store.search("short time")] == ["Ephemeral"]
    assert [entry.word for entry in store.search("finance")] == ["bank"]
    assert store.search("nothing-like-this") == []
    assert [entry.word for entry in store.search("  ")] == ["Ephemeral", "bank"]


def test_import_merge_replaces_by_word_and_is_idempotent(store):
    original = store.create({"word": "Apple", "definition": "fruit"})
    batch = [
        {"id": "a-1", "word": "apple", "definition": "imported fruit"},
        {
            "id": "b-1",
            "word": "banana",
            "word_type": "noun",
            "createdAt": "2024-01-01T00:00:00.000Z",
            "updatedAt": "2024-01-02T00:00:00.000Z",
        },
        {"definition": "no word, skipped"},
        "not a record",
    ]

    assert store.import_merge(batch) == 2
    first = {entry.word: entry for entry in store.export_all()}
    assert first["apple"].id == "a-1"
    assert first["apple"].definition == "imported fruit"
    assert first["banana"].word_type == "noun"
    assert first["banana"].created_at == "2024-01-01T00:00:00.000Z"
    assert original.id not in {entry.id for entry in first.values()}

    assert store.import_merge(batch) == 2
    second = {entry.word: entry.to_dict() for entry in store.export_all()}
    assert second["banana"] == first["banana"].to_dict()


def test_import_merge_without_ids_keeps_words_but_reassigns_identity(store):
    batch = [{"word": "kiwi", "definition": "fruit"}, {"word": "Lime", "tags": ["citrus"]}]

    assert store.import_merge(batch) == 2
    first = {entry.word: entry for entry in store.export_all()}
    assert store.import_merge(batch) == 2
    second = {entry.word: entry for entry in store.export_all()}

    assert set(second) == set(first) == {"kiwi", "Lime"}
    assert second["kiwi"].definition == "fruit"
    assert second["Lime"].tags == ["citrus"]
    # Records without an id get a fresh one on every import.
    assert second["kiwi"].id != first["kiwi"].id
    assert second["Lime"].id != first["Lime"].id


def test_concurrent_creates_are_all_persisted(store):
    words = [f"word-{index}" for index in range(25)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        created = list(pool.map(lambda word: store.create({"word": word}), words))

    assert len({entry.id for entry in created}) == len(words)
    assert sorted(record["word"] for record in _stored(store)) == sorted(words)


def test_reads_ignore_malformed_rows(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "words.json").write_text(
        json.dumps([{"word": "ok", "id": "1"}, 42, None]), encoding="utf-8"
    )
    with LexiconStore(data_dir) as store:
        assert [entry.id for entry in store.list_entries()] == ["1"]


def test_import_file_and_export_file(store, tmp_path):
    source = tmp_path / "incoming.json"
    source.write_text(
        json.dumps([{"word": "alpha"}, {"word": "beta", "tags": ["greek", "greek", " "]}]),
        encoding="utf-8",
    )

    assert store.import_file(source) == 2
    beta = store.search("beta")[0]
    assert beta.tags == ["greek"]

    destination = tmp_path / "out" / "export.json"
    assert store.export_file(destination) == {"exported": 2}
    exported = json.loads(destination.read_text(encoding="utf-8"))
    assert {record["word"] for record in exported} == {"alpha", "beta"}


@pytest.mark.parametrize("content", ["{not json", json.dumps({"word": "x"})])
def test_import_file_rejects_bad_documents(store, tmp_path, content):
    source = tmp_path / "bad.json"
    source.write_text(content, encoding="utf-8")

    with pytest.raises(ValidationError):
        store.import_file(source)
    assert _stored(store) == []


def test_use_collection_switches_document(store):
    store.create({"word": "default"})

    path = store.use_collection("travel")

    assert path.name == "travel.json"
    assert store.collection == "travel.json"
    assert store.list_entries() == []
    store.create({"word": "passport"})
    store.use_collection("words")
    assert [entry.word for entry in store.list_entries()] == ["default"]


def test_use_collection_rejects_bad_names(store):
    with pytest.raises(ValidationError):
        store.use_collection("../escape")


def test_entry_from_dict_accepts_both_key_spellings():
    camel = LexicalEntry.from_dict({"word": "x", "wordType": "noun", "exampleSentence": "e"})
    snake = LexicalEntry.from_dict({"word": "x", "word_type": "noun", "example_sentence": "e"})

    assert camel.word_type == snake.word_type == "noun"
    assert camel.example_sentence == snake.example_sentence == "e"
    assert camel.id and snake.id and camel.id != snake.id
