# inference/classifier.py

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434/v1"
DEFAULT_MODEL = "llama3.2:3b"


class TextClassifier(ABC):
    """
    The only contract the inference code has with a language model:
    a prompt goes in, text comes out. No output schema is guaranteed;
    callers parse defensively.
    """

    @abstractmethod
    def classify(self, prompt: str) -> str:
        raise NotImplementedError


class OpenAICompatibleClassifier(TextClassifier):
    """
    Talks to any OpenAI-compatible chat endpoint, including local model
    servers such as Ollama or LM Studio, so prompts never leave the device
    unless the endpoint says otherwise.

    Settings come from the arguments or from
    FOCUSLENS_LLM_BASE_URL / FOCUSLENS_LLM_API_KEY / FOCUSLENS_LLM_MODEL.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        *,
        timeout: float = 30.0,
        temperature: float = 0.2,
        max_tokens: int = 128,
    ):
        self.base_url = base_url or os.getenv("FOCUSLENS_LLM_BASE_URL", DEFAULT_BASE_URL)
        self.api_key = api_key or os.getenv("FOCUSLENS_LLM_API_KEY", "local")
        self.model = model or os.getenv("FOCUSLENS_LLM_MODEL", DEFAULT_MODEL)
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = None

    def _get_client(self):
        if self._client is None:
            import openai

            self._client = openai.OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    def classify(self, prompt: str) -> str:
        response = self._get_client().chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        content = response.choices[0].message.content or ""
        logger.debug("Classifier reply: %r", content)
        return content
