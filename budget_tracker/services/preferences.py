"""
Preferences Store

DESIGN DECISION: Theme and currency are an explicit object handed to
whoever needs them, not ambient global state. Components that react to
changes subscribe; everyone else just reads.
"""

from typing import Any, Callable, Optional

import structlog

from budget_tracker.models.preferences import UserPreferences


Subscriber = Callable[[UserPreferences], None]

logger = structlog.get_logger(__name__)


class PreferencesStore:
    """
    Holds the current UserPreferences and notifies subscribers on change.

    Updates are validated through the model, so an invalid currency or
    theme raises and leaves the current preferences untouched.
    """

    def __init__(self, initial: Optional[UserPreferences] = None):
        self._defaults = initial or UserPreferences()
        self._current = self._defaults
        self._subscribers: list[Subscriber] = []

    def get(self) -> UserPreferences:
        return self._current

    def update(self, **changes: Any) -> UserPreferences:
        """
        Apply field changes and notify subscribers if anything differs.

        Raises:
            pydantic.ValidationError: If a value is invalid
            ValueError: If a field name is unknown
        """
        unknown = set(changes) - set(UserPreferences.model_fields)
        if unknown:
            raise ValueError(f"Unknown preference(s): {', '.join(sorted(unknown))}")

        data = self._current.model_dump()
        data.update(changes)
        updated = UserPreferences.model_validate(data)

        if updated == self._current:
            return self._current

        self._current = updated
        logger.info(
            "preferences_updated",
            fields=sorted(changes),
            user_id=updated.user_id,
        )
        self._notify()
        return updated

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for changes.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def reset(self) -> UserPreferences:
        """Back to the preferences the store was created with."""
        if self._current != self._defaults:
            self._current = self._defaults
            self._notify()
        return self._current

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self._current)
