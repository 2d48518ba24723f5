from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict

import requests
from pydantic import ValidationError

from .config import SETTINGS, Settings
from .errors import MalformedResponseError, UpstreamError
from .models import SCORES, EvaluationResult

logger = logging.getLogger(__name__)

TOOL_NAME = "report_evaluation"

PROMPT_TEMPLATE = """
Evaluate the truthfulness of the following statement. Provide a score from Very Low to Very High and include a detailed explanation with references. Additionally, provide a breakdown of the sources used, with each source's contribution to the truthfulness score. Attempt to find 15 high-quality sources based on impact and relevance.

For each source:
1. Prioritize links that are confirmed up-to-date and published within the last two years.
2. Exclude any links that might return HTTP errors like 404 (Not Found), 500 (Internal Server Error), 401 (Unauthorized), or 403 (Forbidden).
3. Prefer academic (.edu) and government (.gov) sites over mainstream news sites.
4. Use official, reputable, or well-known government or educational institutions, such as NASA, major universities, or government agencies.
5. Select only live links.
6. Replace any links that are no longer live before responding.
7. Do not send links that return 404.
8. Prioritize PDF documents and court documents or legal rulings over regular websites.

Input: {input}

Respond strictly with a JSON object containing the fields "score", "evidence", and "breakdown" (an array of objects with "source", "link", "descriptor", "summary", and "impact"). "score" must be one of: {scores}. "impact" is a number; positive values support the statement and negative values contradict it. Ensure no extra text outside of the JSON object is included in the response.
""".strip()

_FENCE = re.compile(r"```json|```", re.IGNORECASE)
_OBJECT = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(input=text, scores=", ".join(SCORES))


def evaluation_tool() -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": TOOL_NAME,
            "description": "Report the truthfulness evaluation of a statement with its cited sources.",
            "parameters": {
                "type": "object",
                "properties": {
                    "score": {"type": "string", "enum": list(SCORES)},
                    "evidence": {
                        "type": "string",
                        "description": "Detailed explanation of the score with references.",
                    },
                    "breakdown": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "source": {"type": "string"},
                                "link": {"type": "string"},
                                "descriptor": {"type": "string"},
                                "summary": {"type": "string"},
                                "impact": {"type": "number"},
                            },
                            "required": ["source", "link", "descriptor", "summary", "impact"],
                        },
                    },
                },
                "required": ["score", "evidence", "breakdown"],
            },
        },
    }


def build_request(text: str, settings: Settings = SETTINGS) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "model": settings.openai_model,
        "messages": [{"role": "user", "content": build_prompt(text)}],
        "max_tokens": settings.openai_max_tokens,
    }
    if settings.use_function_call:
        body["tools"] = [evaluation_tool()]
        body["tool_choice"] = {"type": "function", "function": {"name": TOOL_NAME}}
    return body


def parse_model_json(text: str) -> Dict[str, Any]:
    cleaned = _FENCE.sub("", text or "").strip()
    m = _OBJECT.search(cleaned)
    if not m:
        raise MalformedResponseError("No valid JSON found in AI response")
    candidate = _TRAILING_COMMA.sub(r"\1", m.group(0))
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Invalid JSON response from AI: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedResponseError("AI response JSON is not an object")
    return payload


def coerce_evaluation(payload: Dict[str, Any]) -> EvaluationResult:
    try:
        return EvaluationResult.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(f"AI response does not match the evaluation shape: {e}") from e


def _raw_output(js: Dict[str, Any], settings: Settings) -> str:
    message = js["choices"][0]["message"]
    if settings.use_function_call:
        for call in message.get("tool_calls") or []:
            fn = call.get("function", {})
            if fn.get("name") == TOOL_NAME:
                return fn.get("arguments") or ""
        # Models occasionally ignore the forced tool and answer in plain text.
        logger.warning("No %s tool call in AI response; falling back to message content.", TOOL_NAME)
    return message.get("content") or ""


def request_evaluation(text: str, settings: Settings = SETTINGS) -> EvaluationResult:
    if not settings.openai_api_key:
        raise UpstreamError("OPENAI_API_KEY is not configured")
    try:
        r = requests.post(
            f"{settings.openai_base_url}/chat/completions",
            timeout=settings.openai_timeout,
            headers={
                "Authorization": f"Bearer {settings.openai_api_key}",
                "Content-Type": "application/json",
            },
            json=build_request(text, settings),
        )
    except requests.RequestException as e:
        raise UpstreamError(f"completion request failed: {e}") from e
    if r.status_code >= 400:
        raise UpstreamError(f"completion API returned {r.status_code}: {r.text[:500]}")
    try:
        raw = _raw_output(r.json(), settings)
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
        raise UpstreamError(f"unexpected completion payload: {e}") from e

    try:
        return coerce_evaluation(parse_model_json(raw))
    except MalformedResponseError:
        logger.error("Full AI response: %s", raw)
        raise
