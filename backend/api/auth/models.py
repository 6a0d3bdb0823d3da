"""Authenticated principal extracted from a bearer token."""

from dataclasses import dataclass


@dataclass
class AuthUser:
    """Identity carried by a validated access token."""

    user_id: int
    token_version: int = 0

    @classmethod
    def from_token_payload(cls, payload: dict) -> "AuthUser":
        """Create AuthUser from decoded JWT claims.

        Args:
            payload: Claims produced by ``TokenService.decode``.

        Returns:
            AuthUser with the user id and token version.
        """
        return cls(
            user_id=int(payload.get("user_id", payload.get("sub"))),
            token_version=int(payload.get("ver", 0)),
        )
