from __future__ import annotations

import json

import pytest

from magic_lexicon.fsutils import atomic_write, atomic_write_json, read_json


def test_atomic_write_json_creates_parents(tmp_path):
    target = tmp_path / 'a' / 'b' / 'doc.json'

    atomic_write_json(target, [{'word': 'café'}])

    assert read_json(target) == [{'word': 'café'}]
    assert 'café' in target.read_text(encoding='utf-8')
    assert [path.name for path in target.parent.iterdir()] == ['doc.json']


def test_atomic_write_json_keeps_previous_document_on_failure(monkeypatch, tmp_path):
    target = tmp_path / 'doc.json'
    atomic_write_json(target, {'version': 1})

    def _boom(_src, _dst):
        raise OSError('disk full')

    monkeypatch.setattr(atomic_write.os, 'replace', _boom)

    with pytest.raises(OSError):
        atomic_write_json(target, {'version': 2})

    assert json.loads(target.read_text(encoding='utf-8')) == {'version': 1}
    assert [path.name for path in tmp_path.iterdir()] == ['doc.json']


def test_atomic_write_json_rejects_unserializable_payload(tmp_path):
    target = tmp_path / 'doc.json'

    with pytest.raises(TypeError):
        atomic_write_json(target, {'value': object()})

    assert not target.exists()
    assert list(tmp_path.iterdir()) == []
