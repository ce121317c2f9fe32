"""
Display preferences.

The theme and currency a user picked, as a plain validated model.
Keeping and broadcasting changes is the job of PreferencesStore.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Theme(str, Enum):
    """Colour scheme choice. SYSTEM follows the operating system."""
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class UserPreferences(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    user_id: Optional[str] = None
    username: str = ""
    currency: str = Field(default="USD", min_length=3, max_length=3)
    theme: Theme = Theme.SYSTEM
    initialized: bool = False

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """ISO 4217 codes are three letters."""
        if not v.isalpha():
            raise ValueError(f"Invalid currency code: {v}")
        return v.upper()


def resolve_dark_mode(theme: Theme, system_prefers_dark: bool = False) -> bool:
    """Whether the dark palette should be applied for this theme."""
    if theme == Theme.SYSTEM:
        return system_prefers_dark
    return theme == Theme.DARK
