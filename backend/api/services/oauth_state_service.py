"""Persistence of in-flight Google sign-ins (state -> PKCE verifier)."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.oauth import generate_state
from api.errors import OAuthError
from api.models import OAuthState

logger = logging.getLogger(__name__)


class OAuthStateService:
    """Stores PKCE verifiers until the matching callback consumes them."""

    def __init__(self, db: AsyncSession, ttl_seconds: int = 600):
        self.db = db
        self.ttl = timedelta(seconds=ttl_seconds)

    async def create(self, code_verifier: str) -> str:
        """Persist a verifier under a fresh state value and return the state.

        Expired rows are purged on the way.
        """
        await self.db.execute(
            delete(OAuthState).where(OAuthState.created_at < datetime.now(UTC) - self.ttl)
        )
        state = generate_state()
        self.db.add(OAuthState(state=state, code_verifier=code_verifier))
        await self.db.flush()
        return state

    async def consume(self, state: str) -> str:
        """Return and delete the verifier stored under ``state``.

        The delete is committed before returning, so a later failure in the
        same request (a rejected code exchange, say) cannot roll the state
        back and make it usable a second time.

        Raises:
            OAuthError: Unknown, already used, or expired state
        """
        result = await self.db.execute(
            delete(OAuthState)
            .where(OAuthState.state == state)
            .returning(OAuthState.code_verifier, OAuthState.created_at)
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        await self.db.commit()

        if row is None:
            raise OAuthError("Invalid or expired state")

        created_at = row.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        if datetime.now(UTC) - created_at > self.ttl:
            logger.info("Rejected expired OAuth state")
            raise OAuthError("Invalid or expired state")
        return row.code_verifier
