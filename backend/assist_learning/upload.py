from __future__ import annotations
import base64
from io import BytesIO
from pathlib import Path
from typing import List, Union
from PIL import Image, UnidentifiedImageError


def to_data_url(data: bytes) -> str:
	"""Encode image bytes as a ``data:`` URL, rejecting anything Pillow cannot identify."""
	try:
		with Image.open(BytesIO(data)) as img:
			fmt = (img.format or "jpeg").lower()
	except (UnidentifiedImageError, OSError) as e:
		raise ValueError(f"Not a readable image: {e}") from e
	encoded = base64.b64encode(data).decode("ascii")
	return f"data:image/{fmt};base64,{encoded}"


class UploadDraft:
	def __init__(self, title: str = "", source_reference: str = "", images: List[str] | None = None) -> None:
		self.title = title
		self.source_reference = source_reference
		self.images: List[str] = list(images or [])

	def add_image(self, data: bytes) -> str:
		url = to_data_url(data)
		self.images.append(url)
		return url

	def add_image_file(self, path: Union[str, Path]) -> str:
		return self.add_image(Path(path).read_bytes())

	def remove_image(self, index: int) -> None:
		if 0 <= index < len(self.images):
			del self.images[index]

	@property
	def is_complete(self) -> bool:
		return bool(self.title.strip()) and bool(self.source_reference.strip())
