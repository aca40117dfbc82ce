"""
Credential Service - Password hashing and bearer token issuance.

Passwords are hashed with argon2. Tokens are HS256 JWTs whose subject is
the client id.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from structlog import get_logger

from marketplace.db.models import Client
from marketplace.db.repository import MarketplaceRepository
from marketplace.exceptions import AuthenticationError, ConflictError
from marketplace.models.api import LoginRequest, RegisterRequest
from marketplace.models.domain import Actor

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"


class CredentialService:
    """Service for client registration, login and token verification."""

    def __init__(
        self,
        repo: MarketplaceRepository,
        jwt_secret: str,
        jwt_expire_hours: int = 24,
    ) -> None:
        """Initialize with repository and signing configuration."""
        self.repo = repo
        self.jwt_secret = jwt_secret
        self.jwt_expire_hours = jwt_expire_hours
        self.password_hasher = PasswordHasher()

    def hash_password(self, password: str) -> str:
        return self.password_hasher.hash(password)

    def verify_password(self, password_hash: str, password: str) -> bool:
        try:
            return self.password_hasher.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False

    def issue_token(self, client_id: UUID) -> str:
        """Create a signed bearer token for a client."""
        now = datetime.now(UTC)
        payload = {
            "sub": str(client_id),
            "iat": now,
            "exp": now + timedelta(hours=self.jwt_expire_hours),
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> UUID | None:
        """Verify a bearer token and return its client id, or None."""
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.warning("jwt_token_expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning("jwt_token_invalid", error=str(e))
            return None

        try:
            return UUID(str(payload.get("sub")))
        except ValueError:
            logger.warning("jwt_subject_invalid")
            return None

    async def resolve_actor(self, token: str | None) -> Actor | None:
        """Map a bearer token to the acting client. Anonymous on any failure."""
        if not token:
            return None

        client_id = self.verify_token(token)
        if client_id is None:
            return None

        client = await self.repo.clients.find_by_id(client_id)
        if client is None:
            logger.warning("jwt_client_not_found", client_id=str(client_id))
            return None

        return Actor.from_client(client)

    async def register(self, request: RegisterRequest) -> tuple[str, Client]:
        """
        Create a client account.

        Raises:
            ConflictError: Email already registered
        """
        existing = await self.repo.clients.find_one(Client.email == request.email)
        if existing is not None:
            raise ConflictError("User with this email already exists")

        async with self.repo.transaction():
            client = await self.repo.clients.create(
                email=request.email,
                password_hash=self.hash_password(request.password),
                name=request.name,
                stores=[],
                managing_stores=[],
                delivering_stores=[],
            )

        logger.info("client_registered", client_id=str(client.id))
        return self.issue_token(client.id), client

    async def login(self, request: LoginRequest) -> tuple[str, Client]:
        """
        Authenticate with email and password.

        Raises:
            AuthenticationError: Unknown email or wrong password
        """
        client = await self.repo.clients.find_one(
            Client.email == request.email,
            load=("stores", "managing_stores", "delivering_stores"),
        )
        if client is None or not self.verify_password(client.password_hash, request.password):
            logger.warning("login_failed")
            raise AuthenticationError()

        logger.info("client_logged_in", client_id=str(client.id))
        return self.issue_token(client.id), client
