from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    PRO = "PRO"            # nutritionist / professional
    PATIENT = "PATIENT"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as decoded from the bearer token."""

    id: str
    role: Role
    patient_id: str | None = None   # linked patient record, patients only

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
