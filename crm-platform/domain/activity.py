"""
Domain: Activity ledger entries.

An Activity is an immutable fact about a lead. Each activity type carries exactly one
payload shape; the payload class is chosen by the type (tagged union), never an open
bag of keys.

Visibility:
- Private entries are visible only to their author. The rule is applied when entries
  are read, not when they are written.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union
from uuid import UUID

from .lead import LeadStage
from .time import require_utc_timestamp


class ActivityType(str, Enum):
    NOTE = "note"
    CALL = "call"
    EMAIL = "email"
    CALLBACK = "callback"
    STAGE_CHANGE = "stage_change"
    ASSIGNMENT_CHANGE = "assignment_change"


class CallDirection(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


@dataclass(frozen=True, slots=True)
class NotePayload:
    content: str
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CallPayload:
    direction: CallDirection
    outcome: str
    duration_seconds: int = 0

    def __post_init__(self) -> None:
        if self.duration_seconds < 0:
            raise ValueError("duration_seconds must be >= 0")


@dataclass(frozen=True, slots=True)
class EmailPayload:
    subject: str
    recipient: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CallbackPayload:
    callback_id: UUID
    callback_date: datetime
    priority: str


@dataclass(frozen=True, slots=True)
class StageChangePayload:
    old_stage: LeadStage
    new_stage: LeadStage


@dataclass(frozen=True, slots=True)
class AssignmentChangePayload:
    old_assignee: Optional[str]
    new_assignee: Optional[str]


ActivityPayload = Union[
    NotePayload,
    CallPayload,
    EmailPayload,
    CallbackPayload,
    StageChangePayload,
    AssignmentChangePayload,
]

PAYLOAD_TYPES: Mapping[ActivityType, Type[Any]] = {
    ActivityType.NOTE: NotePayload,
    ActivityType.CALL: CallPayload,
    ActivityType.EMAIL: EmailPayload,
    ActivityType.CALLBACK: CallbackPayload,
    ActivityType.STAGE_CHANGE: StageChangePayload,
    ActivityType.ASSIGNMENT_CHANGE: AssignmentChangePayload,
}


def payload_to_metadata(payload: ActivityPayload) -> Dict[str, Any]:
    """Flatten a payload into JSON-friendly metadata (enums to values, ids/dates to str)."""

    metadata: Dict[str, Any] = {}
    for key, value in asdict(payload).items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, UUID):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, tuple):
            value = list(value)
        metadata[key] = value
    return metadata


def payload_from_metadata(activity_type: ActivityType, metadata: Mapping[str, Any]) -> ActivityPayload:
    """Rebuild the typed payload for `activity_type` from stored metadata."""

    if activity_type is ActivityType.NOTE:
        return NotePayload(content=str(metadata.get("content", "")), tags=tuple(metadata.get("tags") or ()))
    if activity_type is ActivityType.CALL:
        return CallPayload(
            direction=CallDirection(metadata.get("direction", CallDirection.OUTBOUND.value)),
            outcome=str(metadata.get("outcome", "")),
            duration_seconds=int(metadata.get("duration_seconds") or 0),
        )
    if activity_type is ActivityType.EMAIL:
        return EmailPayload(subject=str(metadata.get("subject", "")), recipient=metadata.get("recipient"))
    if activity_type is ActivityType.CALLBACK:
        callback_date = metadata["callback_date"]
        if isinstance(callback_date, str):
            callback_date = datetime.fromisoformat(callback_date.replace("Z", "+00:00"))
        return CallbackPayload(
            callback_id=UUID(str(metadata["callback_id"])),
            callback_date=callback_date,
            priority=str(metadata.get("priority", "medium")),
        )
    if activity_type is ActivityType.STAGE_CHANGE:
        return StageChangePayload(
            old_stage=LeadStage.parse(metadata["old_stage"]),
            new_stage=LeadStage.parse(metadata["new_stage"]),
        )
    return AssignmentChangePayload(
        old_assignee=metadata.get("old_assignee"),
        new_assignee=metadata.get("new_assignee"),
    )


@dataclass(frozen=True, slots=True)
class Activity:
    """
    Immutable ledger entry for a lead.

    `activity_id` and `created_at` are assigned by the store on insert.
    """

    activity_id: UUID
    lead_id: UUID
    activity_type: ActivityType
    created_by: str
    created_at: datetime
    payload: ActivityPayload
    description: str = ""
    is_private: bool = False

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        expected = PAYLOAD_TYPES[self.activity_type]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.activity_type.value} activity requires {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )

    @property
    def metadata(self) -> Dict[str, Any]:
        return payload_to_metadata(self.payload)

    def is_visible_to(self, requester_id: Optional[str]) -> bool:
        return not self.is_private or self.created_by == requester_id


@dataclass(frozen=True, slots=True)
class NewActivity:
    """An activity as submitted to the store, before id and timestamp are assigned."""

    lead_id: UUID
    activity_type: ActivityType
    created_by: str
    payload: ActivityPayload
    description: str = ""
    is_private: bool = False

    def __post_init__(self) -> None:
        expected = PAYLOAD_TYPES[self.activity_type]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.activity_type.value} activity requires {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )


__all__ = [
    "Activity",
    "ActivityPayload",
    "ActivityType",
    "AssignmentChangePayload",
    "CallDirection",
    "CallPayload",
    "CallbackPayload",
    "EmailPayload",
    "NewActivity",
    "NotePayload",
    "PAYLOAD_TYPES",
    "StageChangePayload",
    "payload_from_metadata",
    "payload_to_metadata",
]
