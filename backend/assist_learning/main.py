from __future__ import annotations
import logging
from typing import Callable, Optional

from .db import init_db, make_engine, make_session_factory
from .generator import ContentGenerator, GeminiContentGenerator
from .repository import LessonRepository
from .settings import settings
from .state_machine import LearningFlow, Notice
from .store import SqlKeyValueStore


def configure_logging(level: Optional[str] = None) -> None:
	logging.basicConfig(
		level=(level or settings.log_level).upper(),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)
	# Request lines from httpx are noise at INFO
	logging.getLogger("httpx").setLevel(logging.WARNING)


def build_flow(
	*,
	database_url: Optional[str] = None,
	generator: Optional[ContentGenerator] = None,
	confirm: Optional[Callable[[str], bool]] = None,
	notify: Optional[Callable[[Notice], None]] = None,
) -> LearningFlow:
	"""Wire the local store, lesson repository and Gemini generator into a flow."""
	engine = make_engine(database_url)
	init_db(engine)
	store = SqlKeyValueStore(make_session_factory(engine))
	repository = LessonRepository(store)
	kwargs = {"notify": notify}
	if confirm is not None:
		kwargs["confirm"] = confirm
	return LearningFlow(repository, generator or GeminiContentGenerator(), **kwargs)
