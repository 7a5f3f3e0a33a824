from __future__ import annotations

import logging
import time
from typing import Optional

from google import genai
from google.genai import types
from openai import OpenAI

logger = logging.getLogger(__name__)

GEMINI_MODEL_NAME = "gemini-2.5-flash-lite"
DEEPSEEK_MODEL_NAME = "deepseek-chat"
DEEPSEEK_BASE_URL = "https://api.deepseek.com"

MAX_RETRIES = 2
RETRY_DELAY_SECONDS = 1.5


class TextEngineError(Exception):
    """Raised when the text-generation engine is unavailable or a request fails."""


class TextEngine:
    """
    Owned handle on the external text-generation service.

    Gemini is used when a Gemini key is configured, DeepSeek (through the
    OpenAI SDK) otherwise. With neither key the engine stays unavailable and
    callers are expected to fall back.
    """

    def __init__(
        self,
        gemini_api_key: Optional[str] = None,
        deepseek_api_key: Optional[str] = None,
        gemini_model: str = GEMINI_MODEL_NAME,
        timeout_seconds: float = 60.0,
    ):
        self.gemini_api_key = gemini_api_key
        self.deepseek_api_key = deepseek_api_key
        self.gemini_model = gemini_model
        self.timeout_seconds = timeout_seconds
        self.provider: Optional[str] = None
        self._client = None

    @classmethod
    def from_config(cls, config) -> "TextEngine":
        return cls(
            gemini_api_key=config.get("GEMINI_API_KEY"),
            deepseek_api_key=config.get("MASTER_DEEPSEEK_API_KEY"),
            gemini_model=config.get("GEMINI_MODEL") or GEMINI_MODEL_NAME,
            timeout_seconds=float(config.get("TEXT_ENGINE_TIMEOUT") or 60),
        )

    @property
    def is_ready(self) -> bool:
        return self._client is not None

    def initialize(self) -> bool:
        if self._client is not None:
            return True

        if self.gemini_api_key:
            self._client = genai.Client(
                api_key=self.gemini_api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
            self.provider = "gemini"
        elif self.deepseek_api_key:
            self._client = OpenAI(
                api_key=self.deepseek_api_key,
                base_url=DEEPSEEK_BASE_URL,
                timeout=self.timeout_seconds,
            )
            self.provider = "deepseek"
        else:
            logger.info("[TextEngine] Action: INIT, Status: SKIPPED, Reason: no API key configured")
            return False

        logger.info(f"[TextEngine] Action: INIT, Status: SUCCESS, Provider: {self.provider}")
        return True

    def shutdown(self) -> None:
        client, self._client = self._client, None
        self.provider = None
        if client is not None and hasattr(client, "close"):
            client.close()

    def generate(self, prompt: str, *, temperature: float = 0.8, max_tokens: int = 800) -> str:
        if self._client is None:
            raise TextEngineError("API_KEY_MISSING: text engine is not initialized.")

        for attempt in range(MAX_RETRIES + 1):
            try:
                if self.provider == "gemini":
                    text = self._generate_gemini(prompt, temperature, max_tokens)
                else:
                    text = self._generate_deepseek(prompt, temperature, max_tokens)
                break
            except TextEngineError:
                raise
            except Exception as e:
                if "503" in str(e) and attempt < MAX_RETRIES:
                    time.sleep(RETRY_DELAY_SECONDS)
                    continue
                raise TextEngineError(f"{self.provider} request failed: {e}") from e

        text = (text or "").strip()
        if not text:
            raise TextEngineError(f"{self.provider} returned an empty response.")
        return text

    def _generate_gemini(self, prompt: str, temperature: float, max_tokens: int) -> str:
        response = self._client.models.generate_content(
            model=self.gemini_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )
        return getattr(response, "text", None) or ""

    def _generate_deepseek(self, prompt: str, temperature: float, max_tokens: int) -> str:
        response = self._client.chat.completions.create(
            model=DEEPSEEK_MODEL_NAME,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
