"""Feedback records attached to previously logged spans."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


DEFAULT_SCORE_NAME = "feedback"


@dataclass(frozen=True, slots=True)
class FeedbackRecord:
    """Feedback for one logged span.

    Every field is optional; `None` means "not provided" and is never sent.

    Attributes:
        score: Numeric score, usually between 0 and 1.
        expected: Expected output for the span, any JSON-serializable value.
        comment: Free-form reviewer comment.
        metadata: Extra key/value pairs stored with the feedback.
        score_name: Name under which `score` is recorded.
    """

    score: float | None = None
    expected: Any = None
    comment: str | None = None
    metadata: Mapping[str, Any] | None = None
    score_name: str = DEFAULT_SCORE_NAME

    def __post_init__(self) -> None:
        if not isinstance(self.score_name, str) or not self.score_name.strip():
            raise ValueError("`score_name` must be a non-empty string.")

    def as_log_feedback_kwargs(self) -> dict[str, Any]:
        """Return keyword arguments for `braintrust.Logger.log_feedback`."""

        kwargs: dict[str, Any] = {}
        if self.score is not None:
            kwargs["scores"] = {self.score_name: self.score}
        if self.expected is not None:
            kwargs["expected"] = self.expected
        if self.comment is not None:
            kwargs["comment"] = self.comment
        if self.metadata is not None:
            kwargs["metadata"] = dict(self.metadata)
        return kwargs
