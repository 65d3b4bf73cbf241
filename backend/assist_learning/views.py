from __future__ import annotations
from typing import List, Optional, Union
from pydantic import BaseModel
from .state_machine import LearningFlow, Screen


class HomeView(BaseModel):
	screen: Screen = Screen.HOME


class UploadView(BaseModel):
	screen: Screen = Screen.UPLOAD
	is_generating: bool


class LessonRow(BaseModel):
	id: str
	title: str
	date: str


class ListView(BaseModel):
	screen: Screen = Screen.LIST
	lessons: List[LessonRow]


class SummaryView(BaseModel):
	screen: Screen = Screen.SUMMARY
	title: str
	summary: str
	key_points: List[str]
	exercise_count: int


class ExerciseView(BaseModel):
	screen: Screen = Screen.EXERCISE
	number: int
	total: int
	question: str
	progress: float


class ExplanationView(BaseModel):
	screen: Screen = Screen.EXPLANATION
	number: int
	question: str
	answer: str
	explanation: str
	is_last: bool


class FinishView(BaseModel):
	screen: Screen = Screen.FINISH
	title: Optional[str] = None


ScreenView = Union[HomeView, UploadView, ListView, SummaryView, ExerciseView, ExplanationView, FinishView]


def render(flow: LearningFlow) -> Optional[ScreenView]:
	"""Map the flow's current state to the data its screen shows.

	Lesson screens render nothing when the selection has no content or the
	exercise index points past the end.
	"""
	screen = flow.screen
	if screen == Screen.HOME:
		return HomeView()
	if screen == Screen.UPLOAD:
		return UploadView(is_generating=flow.state.is_generating)
	if screen == Screen.LIST:
		return ListView(lessons=[
			LessonRow(id=l.id, title=l.title, date=l.created_date)
			for l in flow.repository.all()
		])
	if screen == Screen.FINISH:
		lesson = flow.current_lesson
		return FinishView(title=lesson.title if lesson else None)

	lesson = flow.current_lesson
	if lesson is None or lesson.content is None:
		return None
	if screen == Screen.SUMMARY:
		return SummaryView(
			title=lesson.title,
			summary=lesson.content.summary,
			key_points=list(lesson.content.key_points),
			exercise_count=len(lesson.content.exercises),
		)
	exercise = flow.current_exercise
	if exercise is None:
		return None
	number = flow.state.exercise_index + 1
	if screen == Screen.EXERCISE:
		total = len(lesson.content.exercises)
		return ExerciseView(
			number=number,
			total=total,
			question=exercise.question,
			progress=number / total,
		)
	return ExplanationView(
		number=number,
		question=exercise.question,
		answer=exercise.answer,
		explanation=exercise.explanation,
		is_last=flow.is_last_exercise,
	)
