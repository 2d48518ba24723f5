from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]


def _bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return list(default)
    return [x.strip() for x in raw.split(",") if x.strip()]


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 1500
    openai_timeout: float = 60.0
    use_function_call: bool = False
    moderation_enabled: bool = False
    moderation_timeout: float = 15.0
    patterns_file: Path = PACKAGE_DIR / ".patterns"
    max_input_chars: int = 1000
    link_check_timeout: float = 5.0
    link_check_workers: int = 5
    min_verified_sources: int = 3
    max_sources: int = 10
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        patterns = os.getenv("PATTERNS_FILE", "").strip()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
            openai_base_url=os.getenv("OPENAI_BASE_URL", cls.openai_base_url).strip().rstrip("/"),
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model).strip(),
            openai_max_tokens=_int("OPENAI_MAX_TOKENS", cls.openai_max_tokens),
            openai_timeout=_float("OPENAI_TIMEOUT", cls.openai_timeout),
            use_function_call=_bool("USE_FUNCTION_CALL"),
            moderation_enabled=_bool("MODERATION_ENABLED"),
            moderation_timeout=_float("MODERATION_TIMEOUT", cls.moderation_timeout),
            patterns_file=Path(patterns) if patterns else PACKAGE_DIR / ".patterns",
            max_input_chars=_int("MAX_INPUT_CHARS", cls.max_input_chars),
            link_check_timeout=_float("LINK_CHECK_TIMEOUT", cls.link_check_timeout),
            link_check_workers=max(1, _int("LINK_CHECK_WORKERS", cls.link_check_workers)),
            min_verified_sources=_int("MIN_VERIFIED_SOURCES", cls.min_verified_sources),
            max_sources=max(1, _int("MAX_SOURCES", cls.max_sources)),
            cors_origins=_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).strip().upper() or "INFO",
        )


SETTINGS = Settings.from_env()
