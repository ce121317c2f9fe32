"""
Shared plumbing for operations that act on a signed-in user's data.

Every operation asks the identity provider first, then talks to a store.
Store failures of any kind come back as SaveFailedError so the caller
only ever has to render one message.
"""

import asyncio
from typing import Any, Awaitable, Optional
from uuid import UUID

import structlog

from budget_tracker.audit import AuditLogger
from budget_tracker.errors import (
    AUTH_REQUIRED_MESSAGE,
    STORAGE_TIMEOUT_MESSAGE,
    AuthError,
    SaveFailedError,
)
from budget_tracker.models.transaction import AuthenticatedUser
from budget_tracker.services.identity import IdentityProviderInterface
from budget_tracker.services.storage import NotFoundError, StorageError


logger = structlog.get_logger(__name__)


class AuthenticatedOperation:
    """Base for workflows that need a user and a bounded store call."""

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        audit_logger: Optional[AuditLogger] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self._identity = identity_provider
        self._audit_logger = audit_logger or AuditLogger()
        self._timeout = timeout_seconds or None

    async def _with_timeout(self, awaitable: Awaitable[Any]) -> Any:
        if self._timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self._timeout)

    async def _current_user(
        self,
        correlation_id: UUID,
        message: str = AUTH_REQUIRED_MESSAGE,
    ) -> AuthenticatedUser:
        """
        Ask the provider who is logged in.

        Raises:
            AuthError: No user, a provider failure, or a timeout
        """
        try:
            user = await self._with_timeout(self._identity.get_current_user())
        except asyncio.TimeoutError:
            error = AuthError(message, reason="timeout")
        except Exception as e:
            logger.warning(
                "identity_lookup_failed",
                error=str(e),
                correlation_id=str(correlation_id),
            )
            error = AuthError(message, reason="provider_error")
        else:
            if user is not None:
                return user
            error = AuthError(message, reason="no_user")

        await self._audit_logger.log_auth_failed(
            message=error.message,
            correlation_id=correlation_id,
            reason=error.reason,
        )
        raise error

    async def _call_store(
        self,
        awaitable: Awaitable[Any],
        correlation_id: UUID,
        user_id: str,
        fallback: str,
        operation: str,
        entity_type: str = "transaction",
        not_found_message: Optional[str] = None,
        timeout_message: str = STORAGE_TIMEOUT_MESSAGE,
    ) -> Any:
        """
        Await one store call, mapping every failure to SaveFailedError.

        Args:
            awaitable: The store coroutine, not yet awaited
            fallback: Message used when the failure carries none
            operation: insert, update, delete, save, ...
            not_found_message: Shown instead of the store's message
                               when it raises NotFoundError
        """
        try:
            return await self._with_timeout(awaitable)
        except asyncio.TimeoutError:
            error = SaveFailedError(timeout_message, error_type="timeout")
        except NotFoundError as e:
            error = SaveFailedError(
                not_found_message or e.message or fallback,
                error_type=type(e).__name__,
            )
        except StorageError as e:
            error = SaveFailedError(e.message or str(e) or fallback, error_type=type(e).__name__)
        except Exception as e:
            logger.exception(
                "store_call_crashed",
                operation=operation,
                entity_type=entity_type,
                correlation_id=str(correlation_id),
            )
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": operation, "entity_type": entity_type},
                correlation_id=correlation_id,
            )
            error = SaveFailedError(str(e) or fallback, error_type=type(e).__name__)

        await self._audit_logger.log_save_failed(
            message=error.message,
            user_id=user_id,
            correlation_id=correlation_id,
            error_type=error.error_type,
            operation=operation,
            entity_type=entity_type,
        )
        raise error
