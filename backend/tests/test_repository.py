"""Tests for the lesson repository and its stores."""

import json
import logging

import pytest

from assist_learning.db import init_db, make_engine, make_session_factory
from assist_learning.repository import LessonRepository
from assist_learning.store import MemoryKeyValueStore, SqlKeyValueStore
from conftest import FailingWriteStore, make_lesson


def test_empty_store_starts_empty(repository: LessonRepository) -> None:
    assert repository.all() == []
    assert len(repository) == 0


def test_insert_front_keeps_newest_first(repository: LessonRepository, store: MemoryKeyValueStore) -> None:
    repository.insert_front(make_lesson("one"))
    repository.insert_front(make_lesson("two"))
    repository.insert_front(make_lesson("three"))

    assert [l.id for l in repository.all()] == ["three", "two", "one"]
    assert store.writes == 3


def test_insert_duplicate_id_rejected(repository: LessonRepository) -> None:
    repository.insert_front(make_lesson("one"))
    with pytest.raises(ValueError):
        repository.insert_front(make_lesson("one"))
    assert len(repository) == 1


def test_remove_is_idempotent_and_keeps_order(repository: LessonRepository, store: MemoryKeyValueStore) -> None:
    for lesson_id in ("a", "b", "c"):
        repository.insert_front(make_lesson(lesson_id))

    repository.remove_by_id("b")
    once = repository.all()
    writes = store.writes
    repository.remove_by_id("b")

    assert repository.all() == once
    assert [l.id for l in once] == ["c", "a"]
    assert store.writes == writes


def test_find_by_id(repository: LessonRepository) -> None:
    lesson = make_lesson("x")
    repository.insert_front(lesson)
    assert repository.find_by_id("x") == lesson
    assert repository.find_by_id("missing") is None
    assert repository.find_by_id(None) is None


def test_all_returns_a_copy(repository: LessonRepository) -> None:
    repository.insert_front(make_lesson("x"))
    repository.all().clear()
    assert len(repository) == 1


def test_round_trip_through_store(store: MemoryKeyValueStore) -> None:
    first = LessonRepository(store, storage_key="lessons")
    first.insert_front(make_lesson("old", n_exercises=1))
    first.insert_front(make_lesson("bare", with_content=False))
    first.insert_front(make_lesson("new", n_exercises=3))

    reloaded = LessonRepository(store, storage_key="lessons")
    assert reloaded.all() == first.all()


def test_malformed_value_treated_as_empty(caplog: pytest.LogCaptureFixture) -> None:
    store = MemoryKeyValueStore({"lessons": "{not json"})
    with caplog.at_level(logging.WARNING):
        repository = LessonRepository(store, storage_key="lessons")
    assert repository.all() == []
    assert "Failed to parse stored lessons" in caplog.text


def test_schema_mismatch_treated_as_empty() -> None:
    store = MemoryKeyValueStore({"lessons": json.dumps([{"id": "x"}])})
    assert LessonRepository(store, storage_key="lessons").all() == []


def test_stored_layout_uses_original_field_names(repository: LessonRepository, store: MemoryKeyValueStore) -> None:
    repository.insert_front(make_lesson("x", n_exercises=1))
    stored = json.loads(store.data["lessons"])

    assert set(stored[0]) == {"id", "title", "date", "transcription", "images", "aiData"}
    assert set(stored[0]["aiData"]) == {"summary", "keyPoints", "exercises"}


def test_loads_data_written_by_original_client() -> None:
    saved = [{
        "id": "lesson-1712620800000",
        "title": "二次関数の基礎",
        "date": "2024/4/9",
        "transcription": "https://drive.google.com/file/d/abc",
        "images": ["data:image/jpeg;base64,AAAA"],
        "aiData": {
            "summary": "要約",
            "keyPoints": ["a", "b", "c"],
            "exercises": [{"id": "ex-0-1", "question": "q", "answer": "a", "explanation": "e"}],
        },
    }]
    store = MemoryKeyValueStore({"lessons": json.dumps(saved, ensure_ascii=False)})
    lesson = LessonRepository(store, storage_key="lessons").all()[0]

    assert lesson.source_reference == "https://drive.google.com/file/d/abc"
    assert lesson.content is not None
    assert lesson.content.key_points == ["a", "b", "c"]


def test_sql_store_persists_between_repositories(tmp_path) -> None:
    engine = make_engine(f"sqlite:///{tmp_path / 'lessons.db'}")
    init_db(engine)
    sessions = make_session_factory(engine)

    store = SqlKeyValueStore(sessions)
    assert store.read("lessons") is None

    repository = LessonRepository(store, storage_key="lessons")
    repository.insert_front(make_lesson("a"))
    repository.insert_front(make_lesson("b"))
    repository.remove_by_id("a")

    reloaded = LessonRepository(SqlKeyValueStore(sessions), storage_key="lessons")
    assert [l.id for l in reloaded.all()] == ["b"]


def test_failed_write_leaves_memory_unchanged() -> None:
    store = FailingWriteStore()
    repository = LessonRepository(store, storage_key="lessons")
    repository.insert_front(make_lesson("a"))
    store.fail = True

    with pytest.raises(OSError):
        repository.insert_front(make_lesson("b"))
    with pytest.raises(OSError):
        repository.remove_by_id("a")

    assert [l.id for l in repository.all()] == ["a"]
    assert [l["id"] for l in json.loads(store.data["lessons"])] == ["a"]


@pytest.mark.parametrize(
    "field,value",
    [("title", ""), ("transcription", "")],
)
def test_empty_required_lesson_field_treated_as_empty(field: str, value: str) -> None:
    record = {"id": "x", "title": "t", "date": "2024/4/9", "transcription": "https://x", "images": []}
    record[field] = value
    store = MemoryKeyValueStore({"lessons": json.dumps([record])})
    assert LessonRepository(store, storage_key="lessons").all() == []


def test_empty_summary_treated_as_empty() -> None:
    record = {
        "id": "x",
        "title": "t",
        "date": "2024/4/9",
        "transcription": "https://x",
        "images": [],
        "aiData": {"summary": "", "keyPoints": [], "exercises": []},
    }
    store = MemoryKeyValueStore({"lessons": json.dumps([record])})
    assert LessonRepository(store, storage_key="lessons").all() == []
