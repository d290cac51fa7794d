"""Gemini generateContent client with bounded retry and tolerant findings parsing."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable

import requests

from diffgate.config import LLMConfig
from diffgate.errors import (
    MalformedResponseError,
    ReviewClientError,
    TransientError,
    UpstreamError,
)
from diffgate.schemas import RAW_OUTPUT_FILE, Finding, Severity

logger = logging.getLogger(__name__)

CODE_FENCE = "```"


class GeminiClient:
    """Sends review prompts to Gemini and turns the replies into findings.

    Only transport failures (HTTP 429, 5xx, network errors) are retried, with
    a linear backoff of ``backoff_seconds * attempt``. A reply that cannot be
    parsed is not retried.
    """

    def __init__(
        self,
        api_key: str,
        settings: LLMConfig | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or LLMConfig()
        self.endpoint = f"{self.settings.api_base.rstrip('/')}/models/{self.settings.model}:generateContent"
        self._api_key = api_key
        self._sleep = sleep
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def __enter__(self) -> GeminiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def review(self, prompt: str) -> list[Finding]:
        """Review one prompt; any upstream or parsing failure yields no findings."""
        try:
            return self.review_or_raise(prompt)
        except ReviewClientError as e:
            logger.warning("Review batch failed, continuing without its findings: %s", e)
            return []

    def review_or_raise(self, prompt: str) -> list[Finding]:
        """Like :meth:`review` but lets the caller see why a batch failed.

        Raises:
            UpstreamError: non-retryable HTTP status.
            TransientError: retries exhausted.
            MalformedResponseError: the reply could not be parsed and the raw
                output fallback is disabled.
        """
        payload = self._generate(prompt)
        text = extract_text(payload)
        if not text.strip():
            logger.info("Gemini returned no text; treating batch as clean")
            return []
        try:
            return parse_findings(text)
        except MalformedResponseError:
            if self.settings.raw_output_fallback:
                logger.warning("Gemini did not return structured JSON; keeping raw output")
                return [raw_output_finding(text)]
            raise

    # ------------------------------------------------------------------
    # Core request
    # ------------------------------------------------------------------

    def _generate(self, prompt: str) -> dict[str, Any]:
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        timeout = (self.settings.connect_timeout, self.settings.read_timeout)
        max_attempts = self.settings.max_attempts
        last_error: TransientError | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                resp = self.session.post(
                    self.endpoint,
                    params={"key": self._api_key},
                    json=body,
                    timeout=timeout,
                )
            except requests.RequestException as e:
                # The exception text carries the URL, and with it the API key
                last_error = TransientError(f"Request to Gemini failed: {type(e).__name__}")
            else:
                with resp:
                    status = resp.status_code
                    if status == 429 or status >= 500:
                        last_error = TransientError(f"Gemini returned HTTP {status}", status_code=status)
                    elif not 200 <= status < 300:
                        raise UpstreamError(
                            f"Gemini error: HTTP {status}: {resp.text[:200]}", status_code=status
                        )
                    else:
                        logger.debug("Gemini raw response:\n%s", resp.text)
                        try:
                            return resp.json()  # type: ignore[no-any-return]
                        except ValueError as e:
                            raise MalformedResponseError(
                                f"Gemini response is not JSON: {e}", status_code=status
                            ) from e

            if attempt < max_attempts:
                wait = self.settings.backoff_seconds * attempt
                logger.warning("%s. Sleeping %.1fs (attempt %d/%d)", last_error, wait, attempt, max_attempts)
                self._sleep(wait)

        raise TransientError(
            f"Gemini request failed after {max_attempts} attempts: {last_error}",
            status_code=last_error.status_code if last_error else None,
        )


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def extract_text(payload: Any) -> str:
    """Return the first candidate's first text part, or ``""`` if there is none."""
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return ""
    text = parts[0].get("text")
    return text if isinstance(text, str) else ""


def strip_code_fence(text: str) -> str:
    """Cut a fenced reply down to its outermost ``{...}`` span."""
    text = text.strip()
    if not text.startswith(CODE_FENCE):
        return text
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return text
    return text[start : end + 1]


def parse_findings(text: str) -> list[Finding]:
    """Parse the model's JSON reply into findings.

    Raises:
        MalformedResponseError: the text is not a JSON object.
    """
    try:
        data = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Failed to parse JSON from Gemini response: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")

    items = data.get("findings") or []
    if not isinstance(items, list):
        raise MalformedResponseError("'findings' is not a list")

    findings: list[Finding] = []
    for item in items:
        if not isinstance(item, dict):
            logger.debug("Ignoring non-object finding: %r", item)
            continue
        findings.append(Finding(
            file=_as_text(item.get("file")),
            line=item.get("line"),
            severity=item.get("severity") or Severity.INFO.value,
            title=_as_text(item.get("title")),
            detail=_as_text(item.get("detail")),
            suggestion=_as_text(item.get("suggestion")),
        ))
    return findings


def raw_output_finding(text: str) -> Finding:
    return Finding(
        file=RAW_OUTPUT_FILE,
        line=None,
        severity=Severity.INFO.value,
        title="Gemini raw response",
        detail="Gemini did not return structured JSON. See suggestion for raw text.",
        suggestion=text,
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
