"""Gemini generateContent client for food analysis."""

import json
from dataclasses import dataclass

import httpx

from nutrisnap.services.analysis import AnalysisClient

_GEMINI_SCHEMA_KEYS = {"type", "properties", "required", "description", "items"}


@dataclass
class HttpxGeminiAnalysisClient(AnalysisClient):
    """HTTPX-backed Gemini client using JSON response mode."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxGeminiAnalysisClient":
        """Create a Gemini client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient())

    async def analyze(  # noqa: PLR0913
        self,
        *,
        api_key: str,
        model: str,
        image_base64: str,
        mime_type: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Send the image and prompt, return the parsed JSON answer."""
        url = f"{self.base_url}/models/{model}:generateContent"
        response = await self.http_client.post(
            url,
            headers={"x-goog-api-key": api_key},
            json={
                "contents": [
                    {
                        "parts": [
                            {
                                "inlineData": {
                                    "mimeType": mime_type,
                                    "data": image_base64,
                                }
                            },
                            {"text": prompt},
                        ]
                    }
                ],
                "generationConfig": {
                    "responseMimeType": "application/json",
                    "responseSchema": _to_gemini_schema(schema),
                },
            },
            timeout=60,
        )
        response.raise_for_status()
        text = _response_text(response.json())
        if not text:
            raise RuntimeError("Gemini returned an empty response")
        return json.loads(text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _to_gemini_schema(schema: dict[str, object]) -> dict[str, object]:
    """Convert a JSON schema to Gemini's OpenAPI-style subset."""
    converted: dict[str, object] = {}
    for key, value in schema.items():
        if key not in _GEMINI_SCHEMA_KEYS:
            continue
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {
                name: _to_gemini_schema(child) for name, child in value.items()
            }
        elif key == "items" and isinstance(value, dict):
            converted[key] = _to_gemini_schema(value)
        else:
            converted[key] = value
    return converted


def _response_text(payload: dict[str, object]) -> str:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content", {})
    parts = content.get("parts", []) if isinstance(content, dict) else []
    return "".join(
        str(part.get("text", "")) for part in parts if isinstance(part, dict)
    )
