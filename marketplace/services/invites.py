"""
Invite Service - Team invitation lifecycle.

Handles:
- Invite creation with duplicate and membership checks
- Acceptance (marks invite used and grants membership atomically)
- Revocation
- Removal of managers and couriers from a store

Expiry is never stored: an invite is expired whenever now > expires_at,
regardless of its stored flags.
"""

import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

from structlog import get_logger

from marketplace.db.models import Client, Invite, Store, loaded
from marketplace.db.repository import MarketplaceRepository
from marketplace.exceptions import (
    ConflictError,
    ForbiddenError,
    InviteAlreadyRevokedError,
    InviteAlreadyUsedError,
    InviteExpiredError,
    InviteRevokedError,
    NotFoundError,
    UnauthenticatedError,
)
from marketplace.models.api import InviteState, TeamRole
from marketplace.models.domain import Actor
from marketplace.observability.metrics import metrics
from marketplace.observability.tracing import trace_operation
from marketplace.services.access_control import (
    ALL_ROLES,
    STAFF_ROLES,
    has_access,
    require_store_access,
)

logger = get_logger(__name__)

INVITE_TTL = timedelta(days=7)
TOKEN_BYTES = 32

# Relations the accepting client is returned with
CLIENT_STORE_RELATIONS = ("stores", "managing_stores", "delivering_stores")


def _utc_now() -> datetime:
    return datetime.now(UTC)


def generate_token() -> str:
    """Generate a URL-safe invite token from the OS CSPRNG."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def is_expired(invite: Invite, now: datetime) -> bool:
    return now > invite.expires_at


def invite_state(invite: Invite, now: datetime) -> InviteState:
    """
    Derive the presentation state of an invite.

    Terminal flags win over expiry: a used invite stays USED after it
    would have expired.
    """
    if invite.is_used:
        return InviteState.USED
    if invite.revoked:
        return InviteState.REVOKED
    if is_expired(invite, now):
        return InviteState.EXPIRED
    return InviteState.PENDING


def _member_emails(store: Store) -> set[str]:
    emails: set[str] = set()
    owner = loaded(store, "owner")
    if owner is not None:
        emails.add(owner.email)
    for relation in ("managers", "couriers"):
        for member in loaded(store, relation) or ():
            emails.add(member.email)
    return emails


class InviteService:
    """Service for team invitations and membership changes."""

    def __init__(self, repo: MarketplaceRepository) -> None:
        """Initialize with repository."""
        self.repo = repo

    async def create(
        self,
        store_id: UUID,
        role: TeamRole,
        email: str | None,
        actor: Actor | None,
    ) -> Invite:
        """
        Create an invite for a manager or courier.

        Raises:
            UnauthenticatedError: No actor
            NotFoundError: Store doesn't exist
            AccessDeniedError: Actor is not owner or manager
            ConflictError: Pending invite exists, or email is already on the team
        """
        store = await require_store_access(
            self.repo, store_id, actor, STAFF_ROLES, load=("owner", "couriers")
        )
        now = _utc_now()

        if email is not None:
            pending = await self.repo.invites.find_many(
                Invite.email == email,
                Invite.store_id == store_id,
                Invite.is_used.is_(False),
                Invite.expires_at > now,
            )
            if pending:
                raise ConflictError("An active invite already exists for this email")

            if email in _member_emails(store):
                raise ConflictError("This user is already a member of the store")

        async with self.repo.transaction():
            invite = await self.repo.invites.create(
                token=generate_token(),
                email=email,
                role=role.value,
                store_id=store_id,
                store=store,
                created_at=now,
                expires_at=now + INVITE_TTL,
                is_used=False,
                revoked=False,
            )

        metrics.record_invite_event("created", role.value)
        logger.info(
            "invite_created",
            invite_id=str(invite.id),
            store_id=str(store_id),
            role=role.value,
            has_email=email is not None,
        )
        return invite

    async def accept(self, token: str, actor: Actor | None) -> Client:
        """
        Accept an invite and join the store team.

        The invite row is locked for the duration of the transaction, so a
        concurrent second acceptance waits and then fails as already used.

        Returns:
            The accepting client with its store relations loaded

        Raises:
            UnauthenticatedError: No actor
            NotFoundError: Unknown token or client
            InviteExpiredError: now > expires_at
            InviteAlreadyUsedError: Invite was accepted before
            InviteRevokedError: Invite was revoked
            ConflictError: Actor already belongs to the store
        """
        if actor is None:
            raise UnauthenticatedError()

        with trace_operation("invite_accept", actor_id=actor.id) as span:
            async with self.repo.transaction():
                invite = await self.repo.invites.find_one(
                    Invite.token == token,
                    load=("store.managers", "store.couriers"),
                    for_update=True,
                )
                if invite is None:
                    raise NotFoundError("Invite", token)

                now = _utc_now()
                if is_expired(invite, now):
                    raise InviteExpiredError(invite.id)
                if invite.is_used:
                    raise InviteAlreadyUsedError(invite.id)
                if invite.revoked:
                    raise InviteRevokedError(invite.id)

                store = invite.store
                if has_access(store, actor, ALL_ROLES):
                    raise ConflictError("You are already a member of this store")

                client = await self.repo.clients.find_by_id(
                    actor.id, load=CLIENT_STORE_RELATIONS
                )
                if client is None:
                    raise NotFoundError("Client", actor.id)

                if invite.role == TeamRole.MANAGER.value:
                    store.managers.append(client)
                else:
                    store.couriers.append(client)

                await self.repo.invites.update(
                    invite, is_used=True, used_at=now, used_by_id=actor.id
                )

            span.set_attribute("store_id", str(invite.store_id))
            span.set_attribute("role", invite.role)

        metrics.record_invite_event("accepted", invite.role)
        logger.info(
            "invite_accepted",
            invite_id=str(invite.id),
            store_id=str(invite.store_id),
            client_id=str(actor.id),
            role=invite.role,
        )
        return client

    async def revoke(self, invite_id: UUID, actor: Actor | None) -> Invite:
        """
        Revoke a pending invite.

        The invite row is locked like in accept, so a revoke racing an
        accept sees the committed is_used flag.

        Raises:
            NotFoundError: Invite doesn't exist
            AccessDeniedError: Actor is not owner or manager
            InviteAlreadyUsedError: Invite was accepted
            InviteAlreadyRevokedError: Invite was revoked before
        """
        if actor is None:
            raise UnauthenticatedError()

        async with self.repo.transaction():
            invite = await self.repo.invites.find_by_id(
                invite_id, load=("store",), for_update=True
            )
            if invite is None:
                raise NotFoundError("Invite", invite_id)

            await require_store_access(self.repo, invite.store_id, actor, STAFF_ROLES)

            if invite.is_used:
                raise InviteAlreadyUsedError(invite.id)
            if invite.revoked:
                raise InviteAlreadyRevokedError(invite.id)

            await self.repo.invites.update(invite, revoked=True, revoked_at=_utc_now())

        metrics.record_invite_event("revoked", invite.role)
        logger.info("invite_revoked", invite_id=str(invite.id), store_id=str(invite.store_id))
        return invite

    async def remove_member(
        self, store_id: UUID, target_user_id: UUID, actor: Actor | None
    ) -> Client:
        """
        Remove a manager or courier from a store.

        Returns:
            The removed client

        Raises:
            AccessDeniedError: Actor is not owner or manager
            ForbiddenError: Target is the store owner
            NotFoundError: Target client doesn't exist or is not on the team
        """
        store = await require_store_access(
            self.repo, store_id, actor, STAFF_ROLES, load=("couriers",)
        )

        if target_user_id == store.owner_id:
            raise ForbiddenError("Cannot remove store owner")

        target = await self.repo.clients.find_by_id(
            target_user_id, load=CLIENT_STORE_RELATIONS
        )
        if target is None:
            raise NotFoundError("Client", target_user_id)

        managers = [m for m in store.managers if m.id == target_user_id]
        couriers = [c for c in store.couriers if c.id == target_user_id]
        if not managers and not couriers:
            raise NotFoundError("Team member", target_user_id)

        async with self.repo.transaction():
            for member in managers:
                store.managers.remove(member)
            for member in couriers:
                store.couriers.remove(member)
            await self.repo.flush()

        metrics.record_invite_event("member_removed", "manager" if managers else "courier")
        logger.info(
            "team_member_removed",
            store_id=str(store_id),
            target_user_id=str(target_user_id),
            removed_manager=bool(managers),
            removed_courier=bool(couriers),
        )
        return target

    async def get_by_token(self, token: str) -> Invite:
        """
        Public invite preview by token.

        A revoked invite is still returned; its state shows REVOKED and
        accept rejects it.

        Raises:
            NotFoundError: Unknown token
            InviteExpiredError: now > expires_at
            InviteAlreadyUsedError: Invite was accepted
        """
        invite = await self.repo.invites.find_one(Invite.token == token, load=("store",))
        if invite is None:
            raise NotFoundError("Invite", token)

        if is_expired(invite, _utc_now()):
            raise InviteExpiredError(invite.id)
        if invite.is_used:
            raise InviteAlreadyUsedError(invite.id)

        return invite

    async def list_for_store(self, store_id: UUID, actor: Actor | None) -> list[Invite]:
        """All invites of a store in any state, newest first."""
        await require_store_access(self.repo, store_id, actor, STAFF_ROLES)
        return await self.repo.invites.find_many(
            Invite.store_id == store_id,
            load=("store",),
            order_by=(Invite.created_at.desc(),),
        )
