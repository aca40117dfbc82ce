"""
Tests for Invite Service.

Covers creation checks, the accept state machine, revocation and team
member removal.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest

from marketplace.exceptions import (
    AccessDeniedError,
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
from marketplace.services.invites import (
    INVITE_TTL,
    InviteService,
    generate_token,
    invite_state,
    is_expired,
)


class TestInviteHelpers:
    """Tests for expiry and presentation state."""

    def test_ttl_is_seven_days(self):
        assert INVITE_TTL == timedelta(days=7)

    def test_tokens_are_unique_and_url_safe(self):
        tokens = {generate_token() for _ in range(50)}
        assert len(tokens) == 50
        assert all("/" not in t and "+" not in t for t in tokens)

    def test_expired_only_after_expires_at(self, store, invite_factory):
        invite = invite_factory(store)
        assert is_expired(invite, invite.expires_at) is False
        assert is_expired(invite, invite.expires_at + timedelta(seconds=1)) is True

    def test_state_pending(self, store, invite_factory):
        invite = invite_factory(store)
        assert invite_state(invite, datetime.now(UTC)) == InviteState.PENDING

    def test_state_expired_is_derived(self, store, invite_factory):
        invite = invite_factory(store, expires_at=datetime.now(UTC) - timedelta(minutes=1))
        assert invite_state(invite, datetime.now(UTC)) == InviteState.EXPIRED

    def test_state_used_wins_over_expiry(self, store, invite_factory):
        invite = invite_factory(
            store, is_used=True, expires_at=datetime.now(UTC) - timedelta(days=1)
        )
        assert invite_state(invite, datetime.now(UTC)) == InviteState.USED

    def test_state_revoked(self, store, invite_factory):
        invite = invite_factory(store, revoked=True)
        assert invite_state(invite, datetime.now(UTC)) == InviteState.REVOKED


class TestCreateInvite:
    """Tests for InviteService.create()."""

    @pytest.mark.asyncio
    async def test_create_sets_seven_day_expiry(self, repo, store, owner_actor):
        repo.stores.find_by_id.return_value = store
        now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

        with patch("marketplace.services.invites._utc_now", return_value=now):
            invite = await InviteService(repo).create(
                store.id, TeamRole.COURIER, "new@example.com", owner_actor
            )

        assert invite.expires_at == now + timedelta(days=7)
        assert invite.role == "COURIER"
        assert invite.email == "new@example.com"
        assert invite.is_used is False
        assert invite.revoked is False
        assert invite.token
        repo.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_manager_may_invite(self, repo, store, manager_actor):
        repo.stores.find_by_id.return_value = store

        invite = await InviteService(repo).create(store.id, TeamRole.COURIER, None, manager_actor)

        assert invite.store_id == store.id

    @pytest.mark.asyncio
    async def test_courier_may_not_invite(self, repo, owner, courier, courier_actor, store_factory):
        store = store_factory(owner, couriers=[courier])
        repo.stores.find_by_id.return_value = store

        with pytest.raises(AccessDeniedError):
            await InviteService(repo).create(store.id, TeamRole.COURIER, None, courier_actor)

        repo.invites.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pending_invite_for_email_conflicts(
        self, repo, store, owner_actor, invite_factory
    ):
        repo.stores.find_by_id.return_value = store
        repo.invites.find_many.return_value = [invite_factory(store, email="dup@example.com")]

        with pytest.raises(ConflictError):
            await InviteService(repo).create(
                store.id, TeamRole.MANAGER, "dup@example.com", owner_actor
            )

        repo.invites.create.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["owner@example.com", "manager@example.com"])
    async def test_existing_member_email_conflicts(self, repo, store, owner_actor, email):
        repo.stores.find_by_id.return_value = store

        with pytest.raises(ConflictError):
            await InviteService(repo).create(store.id, TeamRole.COURIER, email, owner_actor)

    @pytest.mark.asyncio
    async def test_courier_email_conflicts(self, repo, owner, courier, owner_actor, store_factory):
        store = store_factory(owner, couriers=[courier])
        repo.stores.find_by_id.return_value = store

        with pytest.raises(ConflictError):
            await InviteService(repo).create(
                store.id, TeamRole.MANAGER, courier.email, owner_actor
            )

    @pytest.mark.asyncio
    async def test_anonymous_invites_skip_email_checks(self, repo, store, owner_actor):
        repo.stores.find_by_id.return_value = store

        service = InviteService(repo)
        first = await service.create(store.id, TeamRole.COURIER, None, owner_actor)
        second = await service.create(store.id, TeamRole.COURIER, None, owner_actor)

        assert first.token != second.token
        repo.invites.find_many.assert_not_awaited()


class TestAcceptInvite:
    """Tests for InviteService.accept()."""

    @pytest.mark.asyncio
    async def test_courier_invite_accept_then_second_accept_fails(
        self, repo, store, stranger, stranger_actor, invite_factory
    ):
        invite = invite_factory(store, role="COURIER")
        repo.invites.find_one.return_value = invite
        repo.clients.find_by_id.return_value = stranger
        service = InviteService(repo)

        client = await service.accept(invite.token, stranger_actor)

        assert client is stranger
        assert stranger in store.couriers
        assert stranger not in store.managers
        assert invite.is_used is True
        assert invite.used_by_id == stranger.id
        assert invite.used_at is not None
        repo.session.commit.assert_awaited_once()

        with pytest.raises(InviteAlreadyUsedError):
            await service.accept(invite.token, stranger_actor)

    @pytest.mark.asyncio
    async def test_manager_invite_adds_manager(
        self, repo, store, stranger, stranger_actor, invite_factory
    ):
        invite = invite_factory(store, role="MANAGER")
        repo.invites.find_one.return_value = invite
        repo.clients.find_by_id.return_value = stranger

        await InviteService(repo).accept(invite.token, stranger_actor)

        assert stranger in store.managers
        assert stranger not in store.couriers

    @pytest.mark.asyncio
    async def test_invite_row_locked_with_store_team(self, repo, store, stranger, stranger_actor, invite_factory):
        invite = invite_factory(store)
        repo.invites.find_one.return_value = invite
        repo.clients.find_by_id.return_value = stranger

        await InviteService(repo).accept(invite.token, stranger_actor)

        kwargs = repo.invites.find_one.await_args.kwargs
        assert kwargs["for_update"] is True
        assert set(kwargs["load"]) == {"store.managers", "store.couriers"}

    @pytest.mark.asyncio
    async def test_no_actor(self, repo):
        with pytest.raises(UnauthenticatedError):
            await InviteService(repo).accept("token", None)

    @pytest.mark.asyncio
    async def test_unknown_token(self, repo, stranger_actor):
        with pytest.raises(NotFoundError):
            await InviteService(repo).accept("missing", stranger_actor)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "flags",
        [
            {},
            {"is_used": True},
            {"revoked": True},
            {"is_used": True, "revoked": True},
        ],
    )
    async def test_expired_fails_regardless_of_flags(
        self, repo, store, stranger_actor, invite_factory, flags
    ):
        invite = invite_factory(
            store, expires_at=datetime.now(UTC) - timedelta(seconds=1), **flags
        )
        repo.invites.find_one.return_value = invite

        with pytest.raises(InviteExpiredError):
            await InviteService(repo).accept(invite.token, stranger_actor)

        repo.session.rollback.assert_awaited_once()
        repo.session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_used_checked_before_revoked(self, repo, store, stranger_actor, invite_factory):
        invite = invite_factory(store, is_used=True, revoked=True)
        repo.invites.find_one.return_value = invite

        with pytest.raises(InviteAlreadyUsedError):
            await InviteService(repo).accept(invite.token, stranger_actor)

    @pytest.mark.asyncio
    async def test_revoked(self, repo, store, stranger_actor, invite_factory):
        invite = invite_factory(store, revoked=True)
        repo.invites.find_one.return_value = invite

        with pytest.raises(InviteRevokedError):
            await InviteService(repo).accept(invite.token, stranger_actor)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("who", ["owner_actor", "manager_actor"])
    async def test_existing_member_conflicts(self, repo, store, invite_factory, request, who):
        actor = request.getfixturevalue(who)
        invite = invite_factory(store)
        repo.invites.find_one.return_value = invite

        with pytest.raises(ConflictError):
            await InviteService(repo).accept(invite.token, actor)

        assert invite.is_used is False
        repo.invites.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_membership_rolled_back_when_marking_fails(
        self, repo, store, stranger, stranger_actor, invite_factory
    ):
        invite = invite_factory(store)
        repo.invites.find_one.return_value = invite
        repo.clients.find_by_id.return_value = stranger
        repo.invites.update.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            await InviteService(repo).accept(invite.token, stranger_actor)

        repo.session.rollback.assert_awaited_once()
        repo.session.commit.assert_not_awaited()


class TestRevokeInvite:
    """Tests for InviteService.revoke()."""

    @pytest.mark.asyncio
    async def test_revoke_pending(self, repo, store, owner_actor, invite_factory):
        invite = invite_factory(store)
        repo.invites.find_by_id.return_value = invite
        repo.stores.find_by_id.return_value = store

        result = await InviteService(repo).revoke(invite.id, owner_actor)

        assert result.revoked is True
        assert result.revoked_at is not None

    @pytest.mark.asyncio
    async def test_revoke_locks_invite_row(self, repo, store, owner_actor, invite_factory):
        invite = invite_factory(store)
        repo.invites.find_by_id.return_value = invite
        repo.stores.find_by_id.return_value = store

        await InviteService(repo).revoke(invite.id, owner_actor)

        assert repo.invites.find_by_id.await_args.kwargs["for_update"] is True
        repo.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revoke_sees_accept_committed_before_lock(
        self, repo, store, owner_actor, invite_factory
    ):
        """An accept that wins the row lock leaves the invite used, never revoked."""
        invite = invite_factory(store)

        async def locked_read(invite_id, load=(), for_update=False):
            if for_update:
                invite.is_used = True
            return invite

        repo.invites.find_by_id.side_effect = locked_read
        repo.stores.find_by_id.return_value = store

        with pytest.raises(InviteAlreadyUsedError):
            await InviteService(repo).revoke(invite.id, owner_actor)

        assert invite.revoked is False
        repo.invites.update.assert_not_awaited()
        repo.session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revoke_used_fails(self, repo, store, owner_actor, invite_factory):
        invite = invite_factory(store, is_used=True)
        repo.invites.find_by_id.return_value = invite
        repo.stores.find_by_id.return_value = store

        with pytest.raises(InviteAlreadyUsedError):
            await InviteService(repo).revoke(invite.id, owner_actor)

    @pytest.mark.asyncio
    async def test_revoke_twice_fails(self, repo, store, owner_actor, invite_factory):
        invite = invite_factory(store, revoked=True)
        repo.invites.find_by_id.return_value = invite
        repo.stores.find_by_id.return_value = store

        with pytest.raises(InviteAlreadyRevokedError):
            await InviteService(repo).revoke(invite.id, owner_actor)

    @pytest.mark.asyncio
    async def test_revoke_unknown(self, repo, owner_actor):
        with pytest.raises(NotFoundError):
            await InviteService(repo).revoke(uuid4(), owner_actor)

    @pytest.mark.asyncio
    async def test_revoke_requires_staff(self, repo, store, stranger_actor, invite_factory):
        invite = invite_factory(store)
        repo.invites.find_by_id.return_value = invite
        repo.stores.find_by_id.return_value = store

        with pytest.raises(AccessDeniedError):
            await InviteService(repo).revoke(invite.id, stranger_actor)

        assert invite.revoked is False


class TestRemoveMember:
    """Tests for InviteService.remove_member()."""

    @pytest.mark.asyncio
    async def test_removing_owner_forbidden_state_unchanged(
        self, repo, store, owner, manager, owner_actor
    ):
        repo.stores.find_by_id.return_value = store

        with pytest.raises(ForbiddenError):
            await InviteService(repo).remove_member(store.id, owner.id, owner_actor)

        assert store.owner_id == owner.id
        assert store.managers == [manager]
        repo.session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remove_manager(self, repo, store, manager, owner_actor):
        repo.stores.find_by_id.return_value = store
        repo.clients.find_by_id.return_value = manager

        result = await InviteService(repo).remove_member(store.id, manager.id, owner_actor)

        assert result is manager
        assert store.managers == []
        assert repo.clients.find_by_id.await_args.kwargs["load"] == (
            "stores",
            "managing_stores",
            "delivering_stores",
        )
        repo.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_removes_from_both_sets(self, repo, owner, courier, owner_actor, store_factory):
        store = store_factory(owner, managers=[courier], couriers=[courier])
        repo.stores.find_by_id.return_value = store
        repo.clients.find_by_id.return_value = courier

        await InviteService(repo).remove_member(store.id, courier.id, owner_actor)

        assert store.managers == []
        assert store.couriers == []

    @pytest.mark.asyncio
    async def test_unknown_client_not_found(self, repo, store, owner_actor):
        repo.stores.find_by_id.return_value = store

        with pytest.raises(NotFoundError):
            await InviteService(repo).remove_member(store.id, uuid4(), owner_actor)

    @pytest.mark.asyncio
    async def test_non_member_not_found(self, repo, store, stranger, owner_actor):
        repo.stores.find_by_id.return_value = store
        repo.clients.find_by_id.return_value = stranger

        with pytest.raises(NotFoundError):
            await InviteService(repo).remove_member(store.id, stranger.id, owner_actor)

    @pytest.mark.asyncio
    async def test_courier_cannot_remove(self, repo, owner, manager, courier, courier_actor, store_factory):
        store = store_factory(owner, managers=[manager], couriers=[courier])
        repo.stores.find_by_id.return_value = store

        with pytest.raises(AccessDeniedError):
            await InviteService(repo).remove_member(store.id, manager.id, courier_actor)

        assert store.managers == [manager]


class TestInviteQueries:
    """Tests for get_by_token() and list_for_store()."""

    @pytest.mark.asyncio
    async def test_get_pending(self, repo, store, invite_factory):
        invite = invite_factory(store)
        repo.invites.find_one.return_value = invite

        assert await InviteService(repo).get_by_token(invite.token) is invite

    @pytest.mark.asyncio
    async def test_get_unknown(self, repo):
        with pytest.raises(NotFoundError):
            await InviteService(repo).get_by_token("missing")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("flags", "error"),
        [
            ({"expires_at": datetime.now(UTC) - timedelta(days=1)}, InviteExpiredError),
            ({"is_used": True}, InviteAlreadyUsedError),
        ],
    )
    async def test_get_non_pending_fails(self, repo, store, invite_factory, flags, error):
        repo.invites.find_one.return_value = invite_factory(store, **flags)

        with pytest.raises(error):
            await InviteService(repo).get_by_token("invite-token")

    @pytest.mark.asyncio
    async def test_get_revoked_is_returned(self, repo, store, invite_factory):
        invite = invite_factory(store, revoked=True)
        repo.invites.find_one.return_value = invite

        result = await InviteService(repo).get_by_token(invite.token)

        assert result is invite
        assert invite_state(result, datetime.now(UTC)) == InviteState.REVOKED

    @pytest.mark.asyncio
    async def test_list_requires_staff(self, repo, store, stranger_actor):
        repo.stores.find_by_id.return_value = store

        with pytest.raises(AccessDeniedError):
            await InviteService(repo).list_for_store(store.id, stranger_actor)

    @pytest.mark.asyncio
    async def test_list_returns_all_states(self, repo, store, manager_actor, invite_factory):
        invites = [invite_factory(store), invite_factory(store, is_used=True)]
        repo.stores.find_by_id.return_value = store
        repo.invites.find_many.return_value = invites

        assert await InviteService(repo).list_for_store(store.id, manager_actor) == invites
