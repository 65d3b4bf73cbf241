from __future__ import annotations
from typing import Dict, Optional, Protocol
from sqlalchemy.orm import sessionmaker
from .models import KeyValueEntry


class KeyValueStore(Protocol):
	def read(self, key: str) -> Optional[str]: ...

	def write(self, key: str, value: str) -> None: ...


class SqlKeyValueStore:
	"""String store backed by the ``kv_store`` table.

	Each write replaces the whole value for the key; there is no diffing.
	"""

	def __init__(self, session_factory: sessionmaker) -> None:
		self._session_factory = session_factory

	def read(self, key: str) -> Optional[str]:
		db = self._session_factory()
		try:
			row = db.get(KeyValueEntry, key)
			return row.value if row is not None else None
		finally:
			db.close()

	def write(self, key: str, value: str) -> None:
		db = self._session_factory()
		try:
			row = db.get(KeyValueEntry, key)
			if row is None:
				row = KeyValueEntry(key=key, value=value)
			else:
				row.value = value
			db.add(row)
			db.commit()
		finally:
			db.close()


class MemoryKeyValueStore:
	def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
		self.data: Dict[str, str] = dict(initial or {})
		self.writes = 0

	def read(self, key: str) -> Optional[str]:
		return self.data.get(key)

	def write(self, key: str, value: str) -> None:
		self.data[key] = value
		self.writes += 1
