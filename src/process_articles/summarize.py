"""Bilingual article summarization with the OpenAI chat completions API."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional

import openai
from openai import OpenAI
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from common.errors import ConfigurationError, SummarizationError
from common.models import ArticleSummary
from process_articles.config import ProviderConfig
from process_articles.instructions import SUMMARIZE_INSTRUCTIONS, format_article_for_prompt

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS = ("summary_ar", "summary_en", "why_it_matters_ar", "why_it_matters_en")


def is_retryable(exc: BaseException) -> bool:
    """Rate limits, server errors, timeouts and dropped connections are retried."""
    if isinstance(exc, (openai.RateLimitError, openai.APIConnectionError)):
        return True
    if isinstance(exc, openai.APIStatusError):
        return exc.status_code == 429 or exc.status_code >= 500
    return False


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    text = text.strip()
    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_summary_response(content: Optional[str]) -> ArticleSummary:
    """Parse and validate the model's JSON answer.

    Raises:
        SummarizationError: If the answer is empty, not JSON or missing fields.
    """
    if not content:
        raise SummarizationError("Empty response from summarization model")

    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise SummarizationError(f"Summarization response is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise SummarizationError("Summarization response is not a JSON object")

    for name in REQUIRED_TEXT_FIELDS:
        if not isinstance(data.get(name), str):
            raise SummarizationError(f"Summarization response field '{name}' missing or not a string")

    score = data.get("quality_score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise SummarizationError("Summarization response field 'quality_score' missing or not a number")
    if not 0.0 <= score <= 1.0:
        raise SummarizationError(f"Summarization quality_score out of range: {score}")

    topics = data.get("topics")
    if not isinstance(topics, list) or not all(isinstance(t, str) for t in topics):
        raise SummarizationError("Summarization response field 'topics' missing or not a list of strings")

    return ArticleSummary(
        summary_ar=data["summary_ar"],
        summary_en=data["summary_en"],
        why_it_matters_ar=data["why_it_matters_ar"],
        why_it_matters_en=data["why_it_matters_en"],
        quality_score=float(score),
        topics=topics,
    )


class OpenAISummarizer:
    """Summarization provider backed by OpenAI chat completions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[ProviderConfig] = None,
        client: Any = None,
    ):
        self.config = config or ProviderConfig()
        if client is None:
            api_key = api_key or os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY environment variable is required")
            # Retries are handled here so that backoff follows the configured schedule.
            client = OpenAI(api_key=api_key, timeout=self.config.timeout_seconds, max_retries=0)
        self.client = client

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_exponential(
                multiplier=self.config.retry_wait_min_seconds,
                min=self.config.retry_wait_min_seconds,
                max=self.config.retry_wait_max_seconds,
            ),
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def summarize(
        self,
        title: str,
        content: str,
        language: str,
        source_name: str,
        model: str,
    ) -> ArticleSummary:
        """Summarize one article.

        Raises:
            SummarizationError: On API failure (after retries) or an unusable response.
        """
        messages = [
            {"role": "system", "content": SUMMARIZE_INSTRUCTIONS},
            {"role": "user", "content": format_article_for_prompt(title, content, language, source_name)},
        ]

        try:
            for attempt in self._retrying():
                with attempt:
                    response = self.client.chat.completions.create(
                        model=model,
                        messages=messages,
                        response_format={"type": "json_object"},
                        max_tokens=1024,
                    )
        except openai.APIStatusError as exc:
            raise SummarizationError(f"OpenAI API error: {exc.status_code} - {exc.message}") from exc
        except openai.OpenAIError as exc:
            raise SummarizationError(f"OpenAI request failed: {exc}") from exc

        if not response.choices:
            raise SummarizationError("No choices in summarization response")
        return parse_summary_response(response.choices[0].message.content)
