import enum


class UserRole(str, enum.Enum):
    user = "user"
    manager = "manager"
    admin = "admin"


class UnknownRoleError(ValueError):
    """Raised by policy checks that meet a role they do not handle."""

    def __init__(self, role):
        super().__init__(f"Unhandled role: {role!r}")
        self.role = role


def parse_role(value) -> UserRole | None:
    """Return the enum member for a stored role string, or None when unknown."""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None
