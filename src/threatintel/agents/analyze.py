"""
AnalyzeAgent — raw security text → AnalysisResult.

Sends the content to an OpenRouter-compatible chat-completion endpoint with a
Jinja2-rendered system prompt demanding a strict five-field JSON object, and
walks an ordered list of candidate models until one answers.

Per candidate:
  - transport failure (connection, timeout)     → skip to next model
  - HTTP 401 / 402 / 403 (auth, credit, access) → skip to next model
  - any other non-2xx status                    → skip to next model
  - 2xx whose body is not a chat completion     → skip to next model
  - completion content non-JSON or off-contract → degraded result, stop
  - completion content a valid object           → result, stop

Only when every candidate is skipped does the caller see an error
(AllModelsExhaustedError, carrying the last reason). Nothing is persisted
here; callers hand the result to threatintel.services.analyses.save_analysis.

Entry point: async def analyze(content, target_type=None) -> AnalysisResult
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from threatintel.config import get_settings
from threatintel.errors import AllModelsExhaustedError, CompletionFormatError
from threatintel.models.analysis import DEFAULT_TARGET_TYPE, AnalysisContract, AnalysisResult
from threatintel.models.common import Severity
from threatintel.utils.prompts import render_messages

logger = logging.getLogger(__name__)

_AUTH_CREDIT_STATUSES = frozenset({401, 402, 403})
_RAW_SNIPPET_CHARS = 500
_DEGRADED_RECOMMENDATIONS = [
    "Retry with a different model",
    "Verify API key/credits",
    "Reduce prompt size if very large",
]


@dataclass(frozen=True)
class Success:
    result: AnalysisResult


@dataclass(frozen=True)
class Skip:
    reason: str


Outcome = Union[Success, Skip]


async def _request_completion(model: str, messages: list[dict[str, str]]) -> str:
    """POST one chat completion and return the raw message content.

    Extracted as a standalone function so tests can patch it without
    touching the OpenAI client directly. SDK retries are disabled: the
    model list is the only retry policy.

    Raises:
        CompletionFormatError: If a 2xx body is not a chat completion (HTML
            gateway pages, truncated JSON). The SDK hands such bodies back as
            plain text or fails to decode them.
    """
    settings = get_settings()
    async with AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        default_headers={
            "HTTP-Referer": settings.openrouter_referer,
            "X-Title": settings.openrouter_title,
        },
        timeout=settings.openrouter_timeout_seconds,
        max_retries=0,
    ) as client:
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                response_format={"type": "json_object"},
            )
        except ValueError as e:
            raise CompletionFormatError(f"undecodable response body: {e}") from e
    if isinstance(response, str):
        raise CompletionFormatError(f"non-completion response body: {response[:_RAW_SNIPPET_CHARS]}")
    if not response.choices:
        return "{}"
    return response.choices[0].message.content or "{}"


def _degraded(model: str, raw: str, target_type: str, summary: str, problem: str) -> AnalysisResult:
    return AnalysisResult(
        summary=summary,
        details=(
            f"Cause: Model {model} {problem}. "
            f"Raw: {str(raw)[:_RAW_SNIPPET_CHARS]}"
        ),
        recommendations=list(_DEGRADED_RECOMMENDATIONS),
        severity=Severity.LOW,
        confidence=0,
        target_type=target_type,
    )


def _parse_result(raw: str, model: str, target_type: str) -> AnalysisResult:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("analyze_agent.non_json_response", extra={"model": model})
        return _degraded(
            model, raw, target_type,
            "AI returned non-JSON content",
            "did not follow the JSON response format",
        )

    try:
        contract = AnalysisContract.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "analyze_agent.contract_violation",
            extra={"model": model, "errors": e.error_count()},
        )
        return _degraded(
            model, raw, target_type,
            "AI returned an incomplete analysis",
            "returned JSON that does not match the analysis contract",
        )

    return AnalysisResult(**contract.model_dump(), target_type=target_type)


async def _attempt(model: str, messages: list[dict[str, str]], target_type: str) -> Outcome:
    try:
        raw = await _request_completion(model, messages)
    except openai.APIStatusError as e:
        if e.status_code in _AUTH_CREDIT_STATUSES:
            return Skip(f"OpenRouter auth/credit error {e.status_code} for model {model}")
        return Skip(f"OpenRouter API error: {e.status_code} for model {model}")
    except openai.APIError as e:
        return Skip(f"Model {model} failed: {e}")
    except CompletionFormatError as e:
        return Skip(f"Model {model} returned {e}")

    return Success(_parse_result(raw, model, target_type))


async def analyze(content: str, target_type: Optional[str] = None) -> AnalysisResult:
    """Produce a structured threat assessment for *content*.

    Args:
        content: Non-empty security text (log line, IOC context, raw event).
        target_type: Free-form tag stored with the result. Defaults to
                     "custom_analysis".

    Returns:
        The first successful AnalysisResult, possibly a degraded one
        (severity=low, confidence=0) if the model ignored the JSON contract.

    Raises:
        ValueError: If *content* is empty.
        ConfigurationError: If OPENROUTER_API_KEY is not set. No model is tried.
        AllModelsExhaustedError: If every candidate failed at transport/HTTP level.
    """
    if not content or not content.strip():
        raise ValueError("AnalyzeAgent: content must be a non-empty string")

    settings = get_settings()
    settings.validate_for("analyze")

    target = target_type or DEFAULT_TARGET_TYPE
    models = list(settings.openrouter_models)
    messages = render_messages("analyze", content=content)

    logger.info(
        "analyze_agent.start",
        extra={"target_type": target, "candidates": len(models), "content_chars": len(content)},
    )

    last_error: Optional[str] = None
    for model in models:
        outcome = await _attempt(model, messages, target)
        if isinstance(outcome, Success):
            logger.info(
                "analyze_agent.complete",
                extra={
                    "model": model,
                    "severity": outcome.result.severity.value,
                    "confidence": outcome.result.confidence,
                },
            )
            return outcome.result

        last_error = outcome.reason
        logger.warning("analyze_agent.model_failed", extra={"model": model, "reason": outcome.reason})

    logger.error("analyze_agent.exhausted", extra={"attempts": len(models), "last_error": last_error})
    raise AllModelsExhaustedError(last_error, attempts=len(models))
