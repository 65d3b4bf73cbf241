from __future__ import annotations
import uuid
from datetime import date
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


# Field aliases follow the stored JSON layout so existing saved data keeps loading.

class Exercise(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: str
	question: str = Field(min_length=1)
	answer: str = Field(min_length=1)
	explanation: str = Field(min_length=1)


class GeneratedContent(BaseModel):
	model_config = ConfigDict(frozen=True, populate_by_name=True)

	summary: str = Field(min_length=1)
	key_points: List[str] = Field(default_factory=list, alias="keyPoints")
	exercises: List[Exercise] = Field(default_factory=list)


class Lesson(BaseModel):
	model_config = ConfigDict(frozen=True, populate_by_name=True)

	id: str
	title: str = Field(min_length=1)
	created_date: str = Field(alias="date")
	# The original client stored the material URL under "transcription"
	source_reference: str = Field(min_length=1, alias="transcription")
	images: List[str] = Field(default_factory=list)
	content: Optional[GeneratedContent] = Field(default=None, alias="aiData")


def new_lesson_id() -> str:
	return f"lesson-{uuid.uuid4().hex}"


def new_exercise_id(index: int) -> str:
	return f"ex-{index}-{uuid.uuid4().hex}"


def format_display_date(d: date) -> str:
	# Japanese short date without zero padding, e.g. 2024/4/9
	return f"{d.year}/{d.month}/{d.day}"
