"""
Domain: Scheduled callbacks.

A callback is the one activity-related entity with its own lifecycle:
scheduled -> completed. Completing a callback updates the Callback record; the
`callback` activity entry written when it was scheduled is never touched.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


class CallbackPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CallbackStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class Callback:
    callback_id: UUID
    lead_id: UUID
    callback_date: datetime
    created_by: str
    priority: CallbackPriority = CallbackPriority.MEDIUM
    status: CallbackStatus = CallbackStatus.SCHEDULED
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("callback_date", self.callback_date)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.completed_at is not None:
            require_utc_timestamp("completed_at", self.completed_at)

    @property
    def is_completed(self) -> bool:
        return self.status is CallbackStatus.COMPLETED

    def completed(self, completed_at: datetime) -> "Callback":
        """Return a new Callback marked completed at `completed_at`."""

        require_utc_timestamp("completed_at", completed_at)
        if self.is_completed:
            raise ValueError("Callback is already completed")
        return replace(self, status=CallbackStatus.COMPLETED, completed_at=completed_at)


__all__ = ["Callback", "CallbackPriority", "CallbackStatus"]
