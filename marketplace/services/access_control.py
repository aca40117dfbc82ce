"""
Access Control - Single evaluator for store-scoped permissions.

Every store-scoped query and mutation goes through require_store_access.
The owner check is always available; manager and courier checks run only
when the corresponding relationship has been loaded on the store.
"""

from collections.abc import Iterable
from uuid import UUID

from structlog import get_logger

from marketplace.db.models import Store, loaded
from marketplace.db.repository import MarketplaceRepository
from marketplace.exceptions import AccessDeniedError, NotFoundError, UnauthenticatedError
from marketplace.models.api import StoreRole
from marketplace.models.domain import Actor
from marketplace.observability.metrics import metrics

logger = get_logger(__name__)

OWNER = StoreRole.OWNER.value
MANAGER = StoreRole.MANAGER.value
COURIER = StoreRole.COURIER.value

ALL_ROLES: frozenset[str] = frozenset({OWNER, MANAGER, COURIER})
STAFF_ROLES: frozenset[str] = frozenset({OWNER, MANAGER})
OWNER_ONLY: frozenset[str] = frozenset({OWNER})

# Store relationship backing each membership role
_ROLE_RELATIONS = {MANAGER: "managers", COURIER: "couriers"}


def _is_member(store: object, relation: str, actor_id: UUID) -> bool | None:
    """Membership test over a loaded relation; None when it was not loaded."""
    members = loaded(store, relation)
    if members is None:
        return None
    return any(member.id == actor_id for member in members)


def has_access(store: object | None, actor: Actor | None, allowed_roles: Iterable[str]) -> bool:
    """
    Decide whether the actor holds any allowed role on the store.

    Args:
        store: Store with whatever relations the caller loaded
        actor: Acting client, or None for anonymous requests
        allowed_roles: Subset of owner/manager/courier

    Returns:
        True if at least one evaluated role check passes
    """
    if store is None or actor is None:
        return False

    roles = frozenset(allowed_roles)

    if OWNER in roles and getattr(store, "owner_id", None) == actor.id:
        return True

    for role, relation in _ROLE_RELATIONS.items():
        if role in roles and _is_member(store, relation, actor.id):
            return True

    return False


def relations_for(allowed_roles: Iterable[str]) -> tuple[str, ...]:
    """Relationships that must be loaded to evaluate the given roles."""
    roles = frozenset(allowed_roles)
    return tuple(relation for role, relation in _ROLE_RELATIONS.items() if role in roles)


async def require_store_access(
    repo: MarketplaceRepository,
    store_id: UUID,
    actor: Actor | None,
    allowed_roles: Iterable[str],
    load: Iterable[str] = (),
) -> Store:
    """
    Load a store and assert the actor may act on it.

    Raises:
        UnauthenticatedError: No actor
        NotFoundError: Store doesn't exist
        AccessDeniedError: Actor holds none of the allowed roles
    """
    if actor is None:
        raise UnauthenticatedError()

    roles = frozenset(allowed_roles)
    paths = tuple(dict.fromkeys((*relations_for(roles), *load)))

    store = await repo.stores.find_by_id(store_id, load=paths)
    if store is None:
        raise NotFoundError("Store", store_id)

    if not has_access(store, actor, roles):
        required = ",".join(sorted(roles))
        metrics.record_access_denied(required)
        logger.warning(
            "store_access_denied",
            store_id=str(store_id),
            actor_id=str(actor.id),
            required_roles=required,
        )
        raise AccessDeniedError(store_id, roles)

    return store
