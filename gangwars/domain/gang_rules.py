"""Gang membership and role rules that are independent from HTTP and DB."""

import re
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    grunt = "Grunt"
    lieutenant = "Lieutenant"
    god_father = "God Father"


APPROVER_ROLES = (Role.lieutenant, Role.god_father)
ASSIGNABLE_ROLES = (Role.grunt, Role.lieutenant)

# Lieutenants may take at most 1/LIEUTENANT_WITHDRAW_DIVISOR of the bank per call.
LIEUTENANT_WITHDRAW_DIVISOR = 10


def parse_role(value) -> Role:
    """Map a stored role value to a Role. Missing values default to Grunt."""
    if value is None or value == "":
        return Role.grunt
    if isinstance(value, Role):
        return value
    return Role(value)


def can_approve_join(role: Role) -> bool:
    return parse_role(role) in APPROVER_ROLES


def within_withdraw_cap(role: Role, amount: int, bank: int) -> bool:
    """Check the per-role withdraw limit.

    The lieutenant check is done in integers (amount * 10 <= bank) so that
    exactly 10% of the bank is accepted.
    """
    role = parse_role(role)
    if role == Role.god_father:
        return amount <= bank
    if role == Role.lieutenant:
        return amount * LIEUTENANT_WITHDRAW_DIVISOR <= bank
    return False


def normalize_name(name: str) -> str:
    """Normalize a human-readable identifier for lookups.

    Strips surrounding whitespace and one leading '@'.
    """
    name = (name or "").strip()
    if name.startswith("@"):
        name = name[1:]
    return name.strip()


def generate_gang_id(gang_name: str, created_at: datetime) -> str:
    """Derive a stable gang id from its name and creation time."""
    slug = re.sub(r"\s+", "_", gang_name.strip().lower())
    millis = int(created_at.timestamp() * 1000)
    return f"{slug}_{millis}"
