"""Bearer token authentication for the remote admin surface.

The metrics and cache-management tools are operator-only. When the server
runs over ``streamable-http`` with ``MCP_AUTH_TOKEN`` set, FastMCP checks
every request with :class:`BearerTokenVerifier` and grants the admin role
to a matching token.
"""

import hmac

from fastmcp.server.auth import AccessToken, TokenVerifier

from skillsnap.models.enums import Role

_MIN_TOKEN_LENGTH = 32


class BearerTokenVerifier(TokenVerifier):
    """Verify incoming bearer tokens against a pre-shared operator secret.

    Args:
        token: The expected bearer token (must be >= 32 characters).
        role: Role granted to callers presenting *token*.

    Raises:
        ValueError: If *token* is empty or shorter than 32 characters.
    """

    def __init__(self, token: str, role: Role = Role.ADMIN) -> None:
        if not token or len(token) < _MIN_TOKEN_LENGTH:
            raise ValueError(
                f"MCP auth token must be at least {_MIN_TOKEN_LENGTH} characters, "
                f"got {len(token) if token else 0}"
            )
        self._token = token
        self.role = role

    async def verify_token(self, token: str) -> AccessToken | None:
        """Return an ``AccessToken`` scoped to :attr:`role` when *token* matches."""
        if hmac.compare_digest(token, self._token):
            return AccessToken(
                token=token, client_id="operator", scopes=[str(self.role)]
            )
        return None
