from __future__ import annotations
import base64
import binascii
import json
from typing import Any, Dict, List, Optional, Protocol, Sequence
import httpx
from pydantic import BaseModel, Field, ValidationError
from .gemini_client import GeminiClient
from .schemas import Exercise, GeneratedContent, new_exercise_id


IMAGE_MIME_TYPE = "image/jpeg"

RESPONSE_SCHEMA: Dict[str, Any] = {
	"type": "OBJECT",
	"properties": {
		"summary": {"type": "STRING"},
		"keyPoints": {"type": "ARRAY", "items": {"type": "STRING"}},
		"exercises": {
			"type": "ARRAY",
			"items": {
				"type": "OBJECT",
				"properties": {
					"question": {"type": "STRING"},
					"answer": {"type": "STRING"},
					"explanation": {"type": "STRING"},
				},
				"required": ["question", "answer", "explanation"],
			},
		},
	},
	"required": ["summary", "keyPoints", "exercises"],
}


class GenerationError(Exception):
	"""Content generation failed; no partial result is available."""


class ContentGenerator(Protocol):
	async def generate(self, title: str, source_reference: str, images: Sequence[str]) -> GeneratedContent: ...


class _ExerciseOut(BaseModel):
	question: str = Field(min_length=1)
	answer: str = Field(min_length=1)
	explanation: str = Field(min_length=1)


class _ContentOut(BaseModel):
	summary: str = Field(min_length=1)
	keyPoints: List[str]
	exercises: List[_ExerciseOut]


def build_prompt(title: str, source_reference: str) -> str:
	return f"""
以下の授業資料をもとに、授業内容を自動で文字起こし・解析し、休んだ生徒が内容を理解できるように情報を整理してください。

【授業タイトル】
{title}

【提供されたGoogle Drive資料URL】
{source_reference}

【画像データ】
（添付された黒板やスライドの画像も解析に含めてください）

以下の手順で処理してください：
1. URL先のドキュメントまたは動画の内容を推論・解析し、重要な発言や説明を抽出する。
2. 画像内の文字や図表を読み取り、テキスト情報と統合する。
3. 以下のJSON形式で出力する：

- summary: 中高生向けに噛み砕いた、授業全体のわかりやすい要約（200〜400文字程度）。
- keyPoints: 重要なポイントを3〜5つの箇条書き形式。
- exercises: 授業内容の理解を確認するための例題を3問。
  - question: 問題文。
  - answer: 正解（単語や短い文章）。
  - explanation: なぜその答えになるのか、丁寧な解説。
""".strip()


def decode_image(image: str) -> bytes:
	# Accept both bare base64 and data URLs ("data:image/png;base64,....")
	_, sep, tail = image.partition(",")
	encoded = tail if sep and tail else image
	try:
		return base64.b64decode(encoded, validate=True)
	except (binascii.Error, ValueError) as e:
		raise ValueError("image is not valid base64") from e


def image_parts(images: Sequence[str]) -> List[Dict[str, Any]]:
	parts: List[Dict[str, Any]] = []
	for image in images:
		raw = decode_image(image)
		parts.append({
			"inlineData": {
				"mimeType": IMAGE_MIME_TYPE,
				"data": base64.b64encode(raw).decode("ascii"),
			}
		})
	return parts


def parse_content(text: str) -> GeneratedContent:
	"""Validate the model output and assign fresh ids to every exercise."""
	if not text or not text.strip():
		raise ValueError("AI returned empty content")
	data = _ContentOut.model_validate(json.loads(text.strip()))
	return GeneratedContent(
		summary=data.summary,
		key_points=list(data.keyPoints),
		exercises=[
			Exercise(
				id=new_exercise_id(idx),
				question=ex.question,
				answer=ex.answer,
				explanation=ex.explanation,
			)
			for idx, ex in enumerate(data.exercises)
		],
	)


class GeminiContentGenerator:
	def __init__(
		self,
		*,
		api_key: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self._api_key = api_key
		self._model = model
		self._transport = transport

	async def generate(self, title: str, source_reference: str, images: Sequence[str]) -> GeneratedContent:
		client: Optional[GeminiClient] = None
		try:
			client = GeminiClient(self._api_key, model=self._model, transport=self._transport)
			parts: List[Dict[str, Any]] = [{"text": build_prompt(title, source_reference)}]
			parts.extend(image_parts(images))
			raw = await client.generate_structured(parts, RESPONSE_SCHEMA)
			return parse_content(raw)
		except (httpx.HTTPError, RuntimeError, ValueError, ValidationError) as e:
			raise GenerationError(str(e)) from e
		finally:
			if client is not None:
				await client.aclose()
