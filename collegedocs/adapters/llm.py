from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import openai
from openai import AsyncOpenAI


class GenerationError(RuntimeError):
    """The text-generation backend could not produce a document."""


class GeneratorNotConfiguredError(GenerationError):
    pass


class RateLimitedError(GenerationError):
    pass


class CreditsExhaustedError(GenerationError):
    pass


class TextGenerator(Protocol):
    async def generate(self, system_prompt: str, user_prompt: str) -> str: ...


@dataclass
class LLMConfig:
    base_url: str | None
    api_key: str | None
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: int


class DocumentGenerator:
    """Chat-completions client producing marked-up document text."""

    def __init__(self, cfg: LLMConfig):
        self.cfg = cfg
        self._client: AsyncOpenAI | None = None

    @property
    def configured(self) -> bool:
        return bool(self.cfg.api_key)

    def client(self) -> AsyncOpenAI:
        if not self.configured:
            raise GeneratorNotConfiguredError('LLM client is not configured')
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.cfg.api_key,
                base_url=self.cfg.base_url,
                timeout=max(30, int(self.cfg.timeout_seconds)),
            )
        return self._client

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        client = self.client()
        try:
            response = await client.chat.completions.create(
                model=self.cfg.model,
                messages=[
                    {'role': 'system', 'content': system_prompt},
                    {'role': 'user', 'content': user_prompt},
                ],
                temperature=self.cfg.temperature,
                max_tokens=self.cfg.max_tokens,
            )
        except openai.RateLimitError as exc:
            raise RateLimitedError('Rate limit exceeded. Please try again in a moment.') from exc
        except openai.APIStatusError as exc:
            if exc.status_code == 402:
                raise CreditsExhaustedError('AI credits exhausted. Please add credits to continue.') from exc
            raise GenerationError(f'AI gateway error: {exc.status_code}') from exc
        except openai.APIError as exc:
            raise GenerationError(f'AI gateway error: {exc}') from exc

        content = ''
        if response.choices:
            content = str(response.choices[0].message.content or '')
        if not content.strip():
            raise GenerationError('No content generated')
        return content
