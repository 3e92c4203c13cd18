"""
Request-scoped dependencies.

Identity comes from the upstream identity provider, which forwards the user id and
role claim as headers. Verifying those claims is the gateway's job, not this API's.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException

from domain.errors import InvalidRating, InvalidStage, NotFound, StoreUnavailable
from domain.sales import UserRole
from repositories.store import RecordStore, SupabaseRecordStore


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


@lru_cache(maxsize=1)
def get_store() -> RecordStore:
    return SupabaseRecordStore()


def get_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    # Unknown or missing role claims default to employee.
    role = UserRole.ADMIN if (x_user_role or "").lower() == UserRole.ADMIN.value else UserRole.EMPLOYEE
    return Identity(user_id=x_user_id, role=role)


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required")
    return identity


def to_http_exception(exc: Exception) -> HTTPException:
    """Map the domain error taxonomy onto HTTP status codes."""

    if isinstance(exc, (InvalidStage, InvalidRating)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, StoreUnavailable):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=500, detail=f"Internal server error: {exc}")
