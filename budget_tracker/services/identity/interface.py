"""
Abstract Identity Interface

DESIGN DECISION: Authentication is an external concern. The entry
workflow only needs to ask "who, if anyone, is logged in right now?"
and must ask it fresh on every submission.
"""

from abc import ABC, abstractmethod
from typing import Optional

from budget_tracker.models.transaction import AuthenticatedUser


class IdentityProviderInterface(ABC):
    """Source of the currently authenticated user."""

    @abstractmethod
    async def get_current_user(self) -> Optional[AuthenticatedUser]:
        """
        Look up the authenticated user.

        Returns:
            The user, or None when nobody is logged in.

        Raises:
            IdentityError: If the provider could not be reached.
        """
        pass


class IdentityError(Exception):
    """The identity provider failed to answer."""
    pass
