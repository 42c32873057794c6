"""HTTP client for the external analysis engine (OpenAI-compatible)."""

from typing import Protocol

import httpx

from scanara_engine.audits.prompt import SYSTEM_ROLE
from scanara_engine.common.config import ScanaraSettings
from scanara_engine.common.exceptions import UpstreamEngineError


class AnalysisEngine(Protocol):
    async def analyze(self, instruction: str, document: str) -> str:
        """Return the engine's raw text answer or raise UpstreamEngineError."""
        ...


class ChatCompletionsEngine:
    """Calls a chat-completions endpoint once per audit, without retries."""

    def __init__(self, settings: ScanaraSettings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def build_payload(self, instruction: str, document: str) -> dict:
        payload = {
            "model": self.settings.engine_model,
            "messages": [
                {"role": "system", "content": SYSTEM_ROLE},
                {"role": "system", "content": instruction},
                {"role": "user", "content": document},
            ],
            "temperature": self.settings.engine_temperature,
            "max_tokens": self.settings.engine_max_tokens,
        }
        if self.settings.engine_json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def analyze(self, instruction: str, document: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.engine_timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self.settings.engine_url,
                    json=self.build_payload(instruction, document),
                    headers={"Authorization": f"Bearer {self.settings.engine_api_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamEngineError(
                f"Analysis engine returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamEngineError(f"Analysis engine request failed: {exc}") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamEngineError("Malformed analysis engine response") from exc
        if not isinstance(content, str):
            raise UpstreamEngineError("Analysis engine returned no text")
        return content
