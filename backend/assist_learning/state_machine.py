"""Screen sequencing for the learning flow.

Navigation that carries no data is a lookup in ``NAVIGATION`` through the pure
``transition`` function. Operations that touch lessons or the content generator
live on ``LearningFlow``, which owns the current ``ViewState`` and replaces it
on every change.
"""

from __future__ import annotations
import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from pydantic import BaseModel, ConfigDict
from .generator import ContentGenerator
from .repository import LessonRepository
from .schemas import Exercise, Lesson, format_display_date, new_lesson_id

logger = logging.getLogger(__name__)


MISSING_FIELDS_MESSAGE = "タイトルと、Google DriveのURLを入力してください。"
GENERATION_FAILED_MESSAGE = "AIによる解析に失敗しました。正しいURLかどうか確認し、もう一度試してください。"
NO_EXERCISES_MESSAGE = "この授業には例題がありません。"
DELETE_CONFIRMATION = "この授業データを削除しますか？"
SAVE_FAILED_MESSAGE = "授業データの保存に失敗しました。もう一度試してください。"


class Screen(str, Enum):
	HOME = "home"
	UPLOAD = "upload"
	LIST = "list"
	SUMMARY = "summary"
	EXERCISE = "exercise"
	EXPLANATION = "explanation"
	FINISH = "finish"


class Event(str, Enum):
	OPEN_UPLOAD = "open_upload"
	OPEN_LIST = "open_list"
	VIEW_EXERCISES = "view_exercises"
	REVEAL_EXPLANATION = "reveal_explanation"
	RESTART_SUMMARY = "restart_summary"
	BACK_TO_LIST = "back_to_list"
	BACK_TO_HOME = "back_to_home"


NAVIGATION: Dict[Tuple[Screen, Event], Screen] = {
	(Screen.HOME, Event.OPEN_UPLOAD): Screen.UPLOAD,
	(Screen.HOME, Event.OPEN_LIST): Screen.LIST,
	(Screen.SUMMARY, Event.OPEN_LIST): Screen.LIST,
	(Screen.FINISH, Event.OPEN_LIST): Screen.LIST,
	(Screen.SUMMARY, Event.VIEW_EXERCISES): Screen.EXERCISE,
	(Screen.EXERCISE, Event.REVEAL_EXPLANATION): Screen.EXPLANATION,
	(Screen.FINISH, Event.RESTART_SUMMARY): Screen.SUMMARY,
}
for _screen in (Screen.LIST, Screen.SUMMARY, Screen.EXERCISE, Screen.EXPLANATION, Screen.FINISH):
	NAVIGATION[(_screen, Event.BACK_TO_LIST)] = Screen.LIST
for _screen in Screen:
	NAVIGATION[(_screen, Event.BACK_TO_HOME)] = Screen.HOME


class ViewState(BaseModel):
	model_config = ConfigDict(frozen=True)

	screen: Screen = Screen.HOME
	selected_lesson_id: Optional[str] = None
	exercise_index: int = 0
	is_generating: bool = False


def transition(state: ViewState, event: Event) -> ViewState:
	target = NAVIGATION.get((state.screen, event))
	if target is None:
		logger.debug("Ignoring %s on %s", event.value, state.screen.value)
		return state
	return state.model_copy(update={"screen": target})


class Notice(BaseModel):
	kind: str
	message: str


def _decline(message: str) -> bool:
	return False


class LearningFlow:
	"""Drives a single user's session through the learning screens."""

	def __init__(
		self,
		repository: LessonRepository,
		generator: ContentGenerator,
		*,
		confirm: Callable[[str], bool] = _decline,
		notify: Optional[Callable[[Notice], None]] = None,
		today: Callable[[], date] = date.today,
	) -> None:
		self.repository = repository
		self.generator = generator
		self.state = ViewState()
		self.notices: List[Notice] = []
		self._confirm = confirm
		self._notify = notify
		self._today = today

	@property
	def screen(self) -> Screen:
		return self.state.screen

	@property
	def current_lesson(self) -> Optional[Lesson]:
		return self.repository.find_by_id(self.state.selected_lesson_id)

	@property
	def exercises(self) -> List[Exercise]:
		lesson = self.current_lesson
		if lesson is None or lesson.content is None:
			return []
		return list(lesson.content.exercises)

	@property
	def current_exercise(self) -> Optional[Exercise]:
		exercises = self.exercises
		if 0 <= self.state.exercise_index < len(exercises):
			return exercises[self.state.exercise_index]
		return None

	@property
	def is_last_exercise(self) -> bool:
		return self.state.exercise_index == len(self.exercises) - 1

	def _update(self, **changes) -> None:
		self.state = self.state.model_copy(update=changes)

	def _emit(self, kind: str, message: str) -> None:
		notice = Notice(kind=kind, message=message)
		self.notices.append(notice)
		if self._notify is not None:
			self._notify(notice)

	def dispatch(self, event: Event) -> Screen:
		self.state = transition(self.state, event)
		return self.state.screen

	def open_upload(self) -> Screen:
		return self.dispatch(Event.OPEN_UPLOAD)

	def open_list(self) -> Screen:
		return self.dispatch(Event.OPEN_LIST)

	def back_to_list(self) -> Screen:
		return self.dispatch(Event.BACK_TO_LIST)

	def back_to_home(self) -> Screen:
		return self.dispatch(Event.BACK_TO_HOME)

	def reveal_explanation(self) -> Screen:
		return self.dispatch(Event.REVEAL_EXPLANATION)

	def restart_summary(self) -> Screen:
		return self.dispatch(Event.RESTART_SUMMARY)

	def select_lesson(self, lesson_id: str) -> Screen:
		if self.state.screen != Screen.LIST:
			return self.state.screen
		lesson = self.repository.find_by_id(lesson_id)
		if lesson is None or lesson.content is None:
			logger.debug("Lesson %s is not selectable", lesson_id)
			return self.state.screen
		self._update(screen=Screen.SUMMARY, selected_lesson_id=lesson.id, exercise_index=0)
		return self.state.screen

	def delete_lesson(self, lesson_id: str) -> bool:
		if self.state.screen != Screen.LIST:
			return False
		if not self._confirm(DELETE_CONFIRMATION):
			return False
		try:
			self.repository.remove_by_id(lesson_id)
		except Exception:
			logger.exception("Failed to delete lesson %s", lesson_id)
			self._emit("save_failed", SAVE_FAILED_MESSAGE)
			return False
		if self.state.selected_lesson_id == lesson_id:
			self._update(selected_lesson_id=None, exercise_index=0)
		return True

	def view_exercises(self) -> Screen:
		if self.state.screen != Screen.SUMMARY:
			return self.state.screen
		if not self.exercises:
			self._emit("no_exercises", NO_EXERCISES_MESSAGE)
			return self.state.screen
		return self.dispatch(Event.VIEW_EXERCISES)

	def next_step(self) -> Screen:
		if self.state.screen != Screen.EXPLANATION:
			return self.state.screen
		exercises = self.exercises
		if not exercises:
			# Selection vanished or the lesson has nothing to practise
			fallback = Screen.SUMMARY if self.current_lesson is not None else Screen.LIST
			self._update(screen=fallback, exercise_index=0)
			return self.state.screen
		if self.state.exercise_index >= len(exercises) - 1:
			self._update(screen=Screen.FINISH)
		else:
			self._update(screen=Screen.EXERCISE, exercise_index=self.state.exercise_index + 1)
		return self.state.screen

	def submit_upload(self, title: str, source_reference: str, images: Sequence[str] = ()) -> Optional[asyncio.Task]:
		"""Start generating content for a new lesson.

		Returns the scheduled task, or None when the submission was rejected.
		Must be called from within a running event loop.
		"""
		if self.state.screen != Screen.UPLOAD or self.state.is_generating:
			return None
		title = (title or "").strip()
		source_reference = (source_reference or "").strip()
		if not title or not source_reference:
			self._emit("validation", MISSING_FIELDS_MESSAGE)
			return None
		coro = self._generate(title, source_reference, list(images))
		try:
			task = asyncio.create_task(coro)
		except RuntimeError:
			coro.close()
			raise
		# The task cannot start before the caller yields, so the flag is set in time
		self._update(is_generating=True)
		return task

	async def _generate(self, title: str, source_reference: str, images: List[str]) -> Optional[Lesson]:
		try:
			try:
				content = await self.generator.generate(title, source_reference, images)
			except Exception:
				logger.exception("Content generation failed for %r", title)
				self._emit("generation_failed", GENERATION_FAILED_MESSAGE)
				return None
			lesson = Lesson(
				id=new_lesson_id(),
				title=title,
				created_date=format_display_date(self._today()),
				source_reference=source_reference,
				images=images,
				content=content,
			)
			try:
				self.repository.insert_front(lesson)
			except Exception:
				logger.exception("Failed to save lesson %r", title)
				self._emit("save_failed", SAVE_FAILED_MESSAGE)
				return None
			self._update(screen=Screen.LIST)
			return lesson
		finally:
			self._update(is_generating=False)
