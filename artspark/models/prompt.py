from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

PromptKind = Literal["daily", "manual"]


@dataclass(frozen=True)
class PromptFields:
    """Generated content of a prompt, before the store assigns identity."""

    medium: str
    subject: str
    color_rule: Optional[str]
    twist: Optional[str]
    prompt_text: str


@dataclass(frozen=True)
class Prompt:
    """
    A generated prompt. Immutable once created.

    date_key is the UTC calendar day (YYYY-MM-DD) the prompt belongs to.
    """

    id: str
    user_id: str
    date_key: str
    kind: PromptKind
    medium: str
    subject: str
    color_rule: Optional[str]
    twist: Optional[str]
    prompt_text: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date_key": self.date_key,
            "kind": self.kind,
            "medium": self.medium,
            "subject": self.subject,
            "color_rule": self.color_rule,
            "twist": self.twist,
            "prompt_text": self.prompt_text,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class PromptWithStatus:
    prompt: Prompt
    response_count: int

    @property
    def is_completed(self) -> bool:
        return self.response_count > 0

    def to_dict(self) -> dict:
        data = self.prompt.to_dict()
        data["response_count"] = self.response_count
        data["is_completed"] = self.is_completed
        return data
