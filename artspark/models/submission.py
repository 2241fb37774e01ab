from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from artspark.models.streak import StreakSnapshot

SubmissionStatus = Literal["persisted", "queued"]


class SubmissionInput(BaseModel):
    """
    A user's response to a prompt as captured on the device.

    image_refs are locally addressable handles (file paths/URIs), never bytes.
    Structural limits are checked by the submission validator, not here, so
    that every violation is reported as a field error at once.
    """

    prompt_id: str
    image_refs: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class SubmissionPayload(SubmissionInput):
    """Input plus the response id allocated at submit time.

    The same submission_id is used for the online attempt and every replay,
    so a response that was persisted but not acknowledged is not duplicated.
    """

    submission_id: str


class QueuedSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    payload: SubmissionPayload
    enqueued_at: datetime
    retry_count: int = 0


@dataclass(frozen=True)
class ResponseRecord:
    id: str
    user_id: str
    prompt_id: str
    image_urls: List[str]
    notes: Optional[str]
    tags: List[str]
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "prompt_id": self.prompt_id,
            "image_urls": list(self.image_urls),
            "notes": self.notes,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class SubmissionOutcome:
    """What the caller learns about one submit call."""

    status: SubmissionStatus
    submission_id: str
    response: Optional[ResponseRecord] = None
    queue_id: Optional[str] = None
    streak: Optional[StreakSnapshot] = None

    @property
    def message(self) -> str:
        if self.status == "queued":
            return "Saved offline. Your response will upload when you're back online."
        return "Response saved."

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "submission_id": self.submission_id,
            "queue_id": self.queue_id,
            "message": self.message,
            "response": self.response.to_dict() if self.response else None,
            "streak": self.streak.to_dict() if self.streak else None,
        }


@dataclass(frozen=True)
class ReplayResult:
    succeeded: int = 0
    failed: int = 0
    retained: int = 0
    succeeded_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class QueueStats:
    pending: int
    succeeded: int
    dropped: int
    expired: int
