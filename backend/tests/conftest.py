"""Shared fixtures for the learning flow tests."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

import pytest

from assist_learning.repository import LessonRepository
from assist_learning.schemas import Exercise, GeneratedContent, Lesson
from assist_learning.state_machine import LearningFlow
from assist_learning.store import MemoryKeyValueStore


class FakeGenerator:
    """Stand-in for the Gemini generator that records every call."""

    def __init__(self, content: Optional[GeneratedContent] = None, error: Optional[Exception] = None) -> None:
        self.content = content
        self.error = error
        self.calls: List[tuple] = []
        self.release: Optional[asyncio.Event] = None

    async def generate(self, title: str, source_reference: str, images: Sequence[str]) -> GeneratedContent:
        self.calls.append((title, source_reference, list(images)))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        assert self.content is not None
        return self.content


class FailingWriteStore(MemoryKeyValueStore):
    """Store that can be switched to reject every write."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def write(self, key: str, value: str) -> None:
        if self.fail:
            raise OSError("disk full")
        super().write(key, value)


def make_content(n_exercises: int = 3) -> GeneratedContent:
    return GeneratedContent(
        summary="授業の要約",
        key_points=["a", "b", "c"],
        exercises=[
            Exercise(id=f"ex-{i}", question=f"q{i}", answer=f"a{i}", explanation=f"e{i}")
            for i in range(n_exercises)
        ],
    )


def make_lesson(lesson_id: str, *, n_exercises: int = 3, with_content: bool = True) -> Lesson:
    return Lesson(
        id=lesson_id,
        title=f"Lesson {lesson_id}",
        created_date="2024/4/9",
        source_reference="https://drive.google.com/file/d/abc",
        images=[],
        content=make_content(n_exercises) if with_content else None,
    )


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def repository(store: MemoryKeyValueStore) -> LessonRepository:
    return LessonRepository(store, storage_key="lessons")


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator(content=make_content())


@pytest.fixture
def flow(repository: LessonRepository, generator: FakeGenerator) -> LearningFlow:
    return LearningFlow(repository, generator, confirm=lambda message: True)
