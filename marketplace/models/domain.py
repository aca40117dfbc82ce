"""
Domain Models - Internal business logic models using dataclasses.

Strongly typed immutable dataclasses passed between the API and service layers.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from marketplace.models.api import ClientRole

if TYPE_CHECKING:
    from marketplace.db.models import Client


@dataclass(frozen=True)
class Actor:
    """The authenticated client performing an operation."""

    id: UUID
    email: str
    name: str | None = None
    role: ClientRole = ClientRole.USER

    def __post_init__(self) -> None:
        """Validate actor fields."""
        if not self.email:
            raise ValueError("email cannot be empty")

    @classmethod
    def from_client(cls, client: "Client") -> "Actor":
        return cls(
            id=client.id,
            email=client.email,
            name=client.name,
            role=ClientRole(client.role),
        )
