"""Pending OAuth authorization requests.

One row per Google sign-in that has been started but not completed. The row
holds the PKCE verifier so whichever task receives the callback can finish
the code exchange. Rows are deleted when consumed.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from api.models.base import Base, utc_now


class OAuthState(Base):
    """PKCE verifier keyed by the OAuth ``state`` parameter."""

    __tablename__ = "oauth_states"

    state: Mapped[str] = mapped_column(String(128), primary_key=True)
    code_verifier: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        index=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<OAuthState(state={self.state[:8]}...)>"
