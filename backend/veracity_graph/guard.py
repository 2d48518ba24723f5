from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Pattern

import requests

from .config import SETTINGS, Settings
from .errors import BlockedInputError

logger = logging.getLogger(__name__)

MODERATION_MESSAGE = "Your submission was flagged by content moderation."


def load_patterns(path: Path) -> List[Pattern[str]]:
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        logger.warning("Patterns file %s not found; injection guard is empty.", path)
        return []
    out: List[Pattern[str]] = []
    for line in lines:
        p = line.strip()
        if not p or p.startswith("#"):
            continue
        try:
            out.append(re.compile(p, re.IGNORECASE))
        except re.error as e:
            # Plain phrases with regex metacharacters still match literally.
            logger.warning("Pattern %r is not a valid regex (%s); matching it literally.", p, e)
            out.append(re.compile(re.escape(p), re.IGNORECASE))
    logger.info("Loaded %d injection patterns from %s.", len(out), path)
    return out


INJECTION_PATTERNS = load_patterns(SETTINGS.patterns_file)


def contains_injection_pattern(text: str, patterns: List[Pattern[str]]) -> bool:
    return any(p.search(text or "") for p in patterns)


def check_input(text: str, patterns: List[Pattern[str]], settings: Settings = SETTINGS) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise BlockedInputError("empty input", "Please provide an input statement.")
    if len(cleaned) > settings.max_input_chars:
        raise BlockedInputError(
            f"input length {len(cleaned)} exceeds {settings.max_input_chars}",
            f"Input too long (max {settings.max_input_chars} characters).",
        )
    if contains_injection_pattern(cleaned, patterns):
        raise BlockedInputError("input matched an injection pattern")
    return cleaned


def moderate(text: str, settings: Settings = SETTINGS) -> None:
    if not settings.moderation_enabled:
        return
    try:
        r = requests.post(
            f"{settings.openai_base_url}/moderations",
            timeout=settings.moderation_timeout,
            headers={
                "Authorization": f"Bearer {settings.openai_api_key}",
                "Content-Type": "application/json",
            },
            json={"input": text},
        )
        r.raise_for_status()
        results = r.json().get("results", [])
    except (requests.RequestException, ValueError, AttributeError) as e:
        raise BlockedInputError(f"moderation check failed: {e}", MODERATION_MESSAGE) from e
    if not isinstance(results, list) or not results:
        raise BlockedInputError("moderation check returned no results", MODERATION_MESSAGE)
    if any(bool(x.get("flagged")) for x in results if isinstance(x, dict)):
        raise BlockedInputError("input flagged by moderation", MODERATION_MESSAGE)
