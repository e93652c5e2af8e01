from __future__ import annotations

import json
import logging
import mimetypes
from typing import Any

import httpx
from openai import AsyncOpenAI, OpenAIError

from skillforge.ai.errors import ModelInvocationError, ModelUnavailableError
from skillforge.ai.media import parse_data_uri

logger = logging.getLogger(__name__)


def parse_json_object(text: str | None) -> dict | None:
    """Decode a model reply into a JSON object, tolerating markdown fences."""
    if not text or not text.strip():
        return None
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Model reply is not valid JSON (%d chars)", len(text))
        return None
    if not isinstance(data, dict):
        logger.warning("Model reply is JSON but not an object: %s", type(data).__name__)
        return None
    return data


def media_part(data_uri: str) -> dict[str, Any]:
    mime_type, _ = parse_data_uri(data_uri)
    if mime_type.startswith("image/"):
        return {"type": "input_image", "image_url": data_uri}
    extension = mimetypes.guess_extension(mime_type) or ".bin"
    # Other media travels as a file part; which types the model accepts is set by
    # settings.ai_review_media_types.
    return {"type": "input_file", "filename": f"upload{extension}", "file_data": data_uri}


class ModelClient:
    """Thin async wrapper around the OpenAI Responses API that always asks for a JSON object."""

    def __init__(self, api_key: str | None, model: str, timeout: float = 60.0) -> None:
        self.model = model
        self._client = (
            AsyncOpenAI(api_key=api_key, timeout=httpx.Timeout(timeout, connect=10.0)) if api_key else None
        )

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def complete_json(
        self,
        prompt: str,
        *,
        system: str | None = None,
        media: list[str] | None = None,
    ) -> dict | None:
        if self._client is None:
            raise ModelUnavailableError("OpenAI API key is not configured")

        content: list[dict[str, Any]] = [{"type": "input_text", "text": prompt}]
        for data_uri in media or []:
            content.append(media_part(data_uri))

        request: dict[str, Any] = {
            "model": self.model,
            "input": [{"role": "user", "content": content}],
            "text": {"format": {"type": "json_object"}},
        }
        if system:
            request["instructions"] = system

        try:
            response = await self._client.responses.create(**request)
        except OpenAIError as exc:
            raise ModelInvocationError(f"Model call failed: {exc}") from exc

        return parse_json_object(response.output_text)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
