"""
Domain error taxonomy.

- InvalidStage: target stage is not one of the seven pipeline values.
- InvalidRating: rating is not an integer in [1, 5] (or None).
- NotFound: referenced lead / callback does not exist.
- StoreUnavailable: the underlying record store failed.

Private activity filtering is not an error; hidden entries are simply omitted.
"""

from __future__ import annotations


class CRMError(Exception):
    """Base class for lead lifecycle errors."""


class InvalidStage(CRMError, ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid stage: {value!r}")
        self.value = value


class InvalidRating(CRMError, ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid rating: {value!r}. Must be 1-5 or null")
        self.value = value


class NotFound(CRMError, LookupError):
    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class StoreUnavailable(CRMError, RuntimeError):
    """Raised when the record store rejects or fails a request. Never retried here."""


__all__ = [
    "CRMError",
    "InvalidStage",
    "InvalidRating",
    "NotFound",
    "StoreUnavailable",
]
