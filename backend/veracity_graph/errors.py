from __future__ import annotations

from typing import Optional

GENERIC_MESSAGE = "Failed to get a response from the AI."


class EvaluationError(Exception):
    status_code = 500
    user_message = GENERIC_MESSAGE

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        if user_message:
            self.user_message = user_message
        self.detail = detail or self.user_message
        super().__init__(self.detail)


class BlockedInputError(EvaluationError):
    status_code = 400
    user_message = "Your submission was flagged for potential injection attacks."


class InsufficientSourcesError(EvaluationError):
    user_message = "Not enough valid sources found. Please try again with a different statement."


class MalformedResponseError(EvaluationError):
    pass


class UpstreamError(EvaluationError):
    pass
