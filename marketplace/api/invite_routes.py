"""
Invite Routes - Team invitations and membership.
"""

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, status

from marketplace.api.dependencies import get_actor, get_invite_service
from marketplace.api.responses import client_response, invite_response
from marketplace.models.api import (
    ClientResponse,
    CreateInviteRequest,
    InviteResponse,
)
from marketplace.models.domain import Actor
from marketplace.services.invites import InviteService

router = APIRouter()


@router.get("/v1/invites/{token}", response_model=InviteResponse, operation_id="getInvite")
async def get_invite(
    token: str,
    service: InviteService = Depends(get_invite_service),
) -> InviteResponse:
    """
    Public invite preview.

    Expired and used invites fail. Revoked invites are returned with state REVOKED.
    """
    invite = await service.get_by_token(token)
    return invite_response(invite, datetime.now(UTC))


@router.get(
    "/v1/stores/{store_id}/invites",
    response_model=list[InviteResponse],
    operation_id="getStoreInvites",
)
async def get_store_invites(
    store_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: InviteService = Depends(get_invite_service),
) -> list[InviteResponse]:
    now = datetime.now(UTC)
    return [invite_response(invite, now) for invite in await service.list_for_store(store_id, actor)]


@router.post(
    "/v1/stores/{store_id}/invites",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createInvite",
)
async def create_invite(
    store_id: UUID,
    request: CreateInviteRequest,
    actor: Actor | None = Depends(get_actor),
    service: InviteService = Depends(get_invite_service),
) -> InviteResponse:
    """Invite a manager or courier. Expires after 7 days."""
    invite = await service.create(store_id, request.role, request.email, actor)
    return invite_response(invite, datetime.now(UTC))


@router.post(
    "/v1/invites/{token}/accept", response_model=ClientResponse, operation_id="acceptInvite"
)
async def accept_invite(
    token: str,
    actor: Actor | None = Depends(get_actor),
    service: InviteService = Depends(get_invite_service),
) -> ClientResponse:
    """Join the inviting store's team with the invite's role."""
    return client_response(await service.accept(token, actor))


@router.post(
    "/v1/invites/{invite_id}/revoke", response_model=InviteResponse, operation_id="revokeInvite"
)
async def revoke_invite(
    invite_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: InviteService = Depends(get_invite_service),
) -> InviteResponse:
    invite = await service.revoke(invite_id, actor)
    return invite_response(invite, datetime.now(UTC))


@router.delete(
    "/v1/stores/{store_id}/team/{user_id}",
    response_model=ClientResponse,
    operation_id="removeTeamMember",
)
async def remove_team_member(
    store_id: UUID,
    user_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: InviteService = Depends(get_invite_service),
) -> ClientResponse:
    """Remove a manager or courier and return them. The owner cannot be removed."""
    return client_response(await service.remove_member(store_id, user_id, actor))
