from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: Plain data object (no DB access code). Users are never part of a
    snapshot, so restores leave the caller's own account untouched.
    """

    user_id: str
    email: str
    name: str
    password_hash: str
    role: Role
    email_verified: bool = False
    created_at: Optional[datetime] = None
