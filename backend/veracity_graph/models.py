from __future__ import annotations

import math
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, field_validator

Score = Literal["Very Low", "Low", "Medium", "High", "Very High"]
SCORES: List[str] = ["Very Low", "Low", "Medium", "High", "Very High"]


class EvaluateRequest(BaseModel):
    input: str


class SourceItem(BaseModel):
    source: str = ""
    link: Optional[str] = None
    descriptor: str = ""
    summary: str = ""
    impact: float = 0.0

    @field_validator("source", "descriptor", "summary", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("link", mode="before")
    @classmethod
    def _link(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("impact", mode="before")
    @classmethod
    def _impact(cls, v: Any) -> float:
        try:
            x = float(v)
        except (TypeError, ValueError, OverflowError):
            return 0.0
        return x if math.isfinite(x) else 0.0


class EvaluationResult(BaseModel):
    score: Score
    evidence: str = ""
    breakdown: List[SourceItem]

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        key = " ".join(v.split()).lower()
        for s in SCORES:
            if s.lower() == key:
                return s
        return v

    @field_validator("evidence", mode="before")
    @classmethod
    def _evidence(cls, v: Any) -> str:
        return "" if v is None else str(v)


class ErrorResponse(BaseModel):
    error: str
