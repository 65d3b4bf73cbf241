from __future__ import annotations
import logging
from typing import List, Optional
from pydantic import TypeAdapter, ValidationError
from .schemas import Lesson
from .settings import settings
from .store import KeyValueStore

logger = logging.getLogger(__name__)

_lesson_list = TypeAdapter(List[Lesson])


class LessonRepository:
	"""Ordered in-memory lesson list, newest first, written through to a store.

	The stored value is read once when the repository is built. Every insert
	or removal overwrites the stored value with the full serialized list.
	"""

	def __init__(self, store: KeyValueStore, *, storage_key: Optional[str] = None) -> None:
		self._store = store
		self._key = storage_key or settings.lesson_storage_key
		self._lessons: List[Lesson] = self._load()

	def _load(self) -> List[Lesson]:
		raw = self._store.read(self._key)
		if not raw:
			return []
		try:
			return list(_lesson_list.validate_json(raw))
		except ValidationError as e:
			logger.warning("Failed to parse stored lessons under %r; starting empty: %s", self._key, e)
			return []

	def _commit(self, lessons: List[Lesson]) -> None:
		# Memory only changes once the store accepted the new list
		payload = _lesson_list.dump_json(lessons, by_alias=True).decode("utf-8")
		self._store.write(self._key, payload)
		self._lessons = lessons

	def all(self) -> List[Lesson]:
		return list(self._lessons)

	def insert_front(self, lesson: Lesson) -> None:
		if self.find_by_id(lesson.id) is not None:
			raise ValueError(f"lesson id already exists: {lesson.id}")
		self._commit([lesson, *self._lessons])

	def remove_by_id(self, lesson_id: str) -> None:
		remaining = [l for l in self._lessons if l.id != lesson_id]
		if len(remaining) == len(self._lessons):
			return
		self._commit(remaining)

	def find_by_id(self, lesson_id: Optional[str]) -> Optional[Lesson]:
		if lesson_id is None:
			return None
		for lesson in self._lessons:
			if lesson.id == lesson_id:
				return lesson
		return None

	def __len__(self) -> int:
		return len(self._lessons)
