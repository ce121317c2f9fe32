"""Identity services package."""

from budget_tracker.services.identity.interface import (
    IdentityError,
    IdentityProviderInterface,
)
from budget_tracker.services.identity.session import (
    SESSION_USER_KEY,
    SessionIdentityProvider,
)

__all__ = [
    "IdentityError",
    "IdentityProviderInterface",
    "SESSION_USER_KEY",
    "SessionIdentityProvider",
]
