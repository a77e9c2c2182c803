from __future__ import annotations

import asyncio
import logging
from typing import Any

from collegedocs.adapters.llm import DocumentGenerator, LLMConfig, TextGenerator
from collegedocs.config import get_settings
from collegedocs.prompts import GenerationRequest, build_system_prompt, build_user_prompt, parse_request
from collegedocs.state import load_college_settings, save_document
from collegedocs.types import CollegeSettings, GeneratedDocument


logger = logging.getLogger(__name__)


def build_generator() -> DocumentGenerator:
    settings = get_settings()
    return DocumentGenerator(
        LLMConfig(
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            model=settings.generation_model,
            temperature=settings.generation_temperature,
            max_tokens=settings.generation_max_tokens,
            timeout_seconds=settings.generation_timeout_seconds,
        )
    )


def _request_metadata(request: GenerationRequest) -> dict[str, Any]:
    payload = request.model_dump(mode='json', exclude={'title', 'document_type'})
    return {key: value for key, value in payload.items() if value not in ('', [], {}, None)}


async def generate_document(
    request: GenerationRequest | dict[str, Any],
    *,
    owner_id: str,
    generator: TextGenerator | None = None,
    college: CollegeSettings | None = None,
) -> GeneratedDocument:
    """Generate, store and return a draft document for ``owner_id``.

    Raises ``RequestValidationError`` for a bad request and a
    ``GenerationError`` subclass when the backend fails; nothing is stored in
    either case.
    """
    if not isinstance(request, GenerationRequest):
        request = parse_request(request)
    if college is None:
        college = load_college_settings(owner_id)
    if generator is None:
        generator = build_generator()

    system_prompt = build_system_prompt(request.document_type, college.college_short_name)
    user_prompt = build_user_prompt(request)

    logger.info('Generating %s document for owner %s: %s', request.document_type.value, owner_id, request.title)
    content = await generator.generate(system_prompt, user_prompt)

    document = GeneratedDocument(
        owner_id=owner_id,
        title=request.title,
        document_type=request.document_type,
        content=content,
        metadata=_request_metadata(request),
    )
    save_document(document)
    logger.info('Stored document %s (%d chars) for owner %s', document.id, len(content), owner_id)
    return document


def run_generation(
    request: GenerationRequest | dict[str, Any],
    *,
    owner_id: str,
    generator: TextGenerator | None = None,
    college: CollegeSettings | None = None,
) -> GeneratedDocument:
    return asyncio.run(generate_document(request, owner_id=owner_id, generator=generator, college=college))
