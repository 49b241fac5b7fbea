from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    admin = "admin"
    dorm_manager = "dorm_manager"
    student = "student"


class TicketStatus(str, Enum):
    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


STAFF_ROLES = (Role.admin, Role.dorm_manager)


@dataclass(frozen=True)
class User:
    id: int | None
    email: str
    name: str
    role: Role = Role.student


@dataclass(frozen=True)
class Identity:
    """Verified caller, decoded from a bearer token."""
    user_id: int
    role: Role
    email: str

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
