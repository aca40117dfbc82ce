"""
Exception Classes - Strongly typed exception hierarchy.

All exceptions carry typed attributes; the HTTP layer maps them to status codes.
"""

from uuid import UUID


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    pass


class UnauthenticatedError(MarketplaceError):
    """Raised when an operation requires an actor and none was supplied."""

    def __init__(self) -> None:
        super().__init__("Not authenticated")


class AuthenticationError(MarketplaceError):
    """Raised when login credentials are rejected."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        self.message = message
        super().__init__(message)


class AccessDeniedError(MarketplaceError):
    """Raised when the actor holds none of the roles required on a store."""

    def __init__(self, store_id: UUID, required_roles: frozenset[str]) -> None:
        self.store_id = store_id
        self.required_roles = required_roles
        roles = ", ".join(sorted(required_roles))
        super().__init__(f"Access denied to store {store_id} (requires one of: {roles})")


class ForbiddenError(MarketplaceError):
    """Raised for actions that are structurally disallowed, whatever the role."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(MarketplaceError):
    """Raised when an entity doesn't exist."""

    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class ConflictError(MarketplaceError):
    """Raised when a write would duplicate existing state."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InviteExpiredError(MarketplaceError):
    """Raised when an invite is consumed after its expiry."""

    def __init__(self, invite_id: UUID) -> None:
        self.invite_id = invite_id
        super().__init__("Invite has expired")


class InviteAlreadyUsedError(MarketplaceError):
    """Raised when an invite has already been accepted."""

    def __init__(self, invite_id: UUID) -> None:
        self.invite_id = invite_id
        super().__init__("Invite has already been used")


class InviteRevokedError(MarketplaceError):
    """Raised when accepting an invite that was revoked."""

    def __init__(self, invite_id: UUID) -> None:
        self.invite_id = invite_id
        super().__init__("Invite has been revoked")


class InviteAlreadyRevokedError(MarketplaceError):
    """Raised when revoking an invite twice."""

    def __init__(self, invite_id: UUID) -> None:
        self.invite_id = invite_id
        super().__init__("Invite has already been revoked")
