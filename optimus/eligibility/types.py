"""Types for the eligibility module.

CheckResponse / CompetitionsResponse mirror the server's JSON bodies and
are only used for parsing. EligibilityDecision is what the rest of the
pipeline sees.
"""

import time
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


class CheckResponse(BaseModel):
    """Body of GET /check.

    submission_approved is optional on the wire: servers that only track
    attempts omit it, and approval then follows remaining_attempts.
    """

    model_config = {"extra": "ignore"}

    submission_approved: Optional[bool] = None
    required_format: str
    remaining_attempts: int = Field(ge=0)
    last_submission_by_user: Optional[int] = None
    competition_name: Optional[str] = None


class Competition(BaseModel):
    model_config = {"extra": "ignore"}

    id: str
    name: str
    max_attempts: Optional[int] = None


class CompetitionsResponse(BaseModel):
    """Body of GET /competitions."""

    competitions: list[Competition] = Field(default_factory=list)


@dataclass(frozen=True)
class EligibilityDecision:
    """The server's verdict for this run. Never persisted.

    required_format is kept as the raw wire string; the orchestrator
    validates it, so an unknown value surfaces as a ConfigError there.
    """

    approved: bool
    required_format: str
    remaining_attempts: int
    last_submission_at: Optional[int] = None  # epoch seconds
    competition_name: Optional[str] = None

    def seconds_since_last_submission(self, now: Optional[float] = None) -> Optional[int]:
        """Elapsed time for display only; it never gates a submission."""
        if self.last_submission_at is None:
            return None
        current = time.time() if now is None else now
        return max(0, int(current - self.last_submission_at))

    def describe_last_submission(self, now: Optional[float] = None) -> str:
        elapsed = self.seconds_since_last_submission(now)
        if elapsed is None:
            return "never"
        return f"{humanize_seconds(elapsed)} ago"


def humanize_seconds(seconds: int) -> str:
    """Render a duration as its two most significant units, e.g. "2h 5m"."""
    if seconds < 60:
        return f"{seconds}s"

    units = (("d", 86400), ("h", 3600), ("m", 60), ("s", 1))
    parts: list[str] = []
    remaining = seconds
    for suffix, size in units:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{suffix}")
        if len(parts) == 2:
            break
    return " ".join(parts)
