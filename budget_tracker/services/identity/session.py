"""
Session-backed identity provider.

The front end keeps the signed-in user in Streamlit's session state.
Any mutable mapping works, which is what the tests use.
"""

from collections.abc import MutableMapping
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from budget_tracker.models.transaction import AuthenticatedUser
from budget_tracker.services.identity.interface import IdentityProviderInterface


SESSION_USER_KEY = "authenticated_user"

logger = structlog.get_logger(__name__)


class SessionIdentityProvider(IdentityProviderInterface):
    """Reads and writes the current user in a session mapping."""

    def __init__(
        self,
        session: MutableMapping[str, Any],
        key: str = SESSION_USER_KEY,
    ):
        self._session = session
        self._key = key

    async def get_current_user(self) -> Optional[AuthenticatedUser]:
        raw = self._session.get(self._key)
        if raw is None:
            return None
        if isinstance(raw, AuthenticatedUser):
            return raw
        try:
            return AuthenticatedUser.model_validate(raw)
        except ValidationError:
            # A corrupted session entry is treated as logged out
            logger.warning("session_user_invalid", key=self._key)
            return None

    def sign_in(self, user: AuthenticatedUser) -> None:
        self._session[self._key] = user.model_dump()
        logger.info("user_signed_in", user_id=user.id)

    def sign_out(self) -> None:
        user = self._session.pop(self._key, None)
        if user is not None:
            logger.info("user_signed_out")

    @property
    def is_signed_in(self) -> bool:
        return self._session.get(self._key) is not None
