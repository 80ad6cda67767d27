"""
Flashbuild - release build helper for the Flutter flashlight app.
"""

from .signing import (
    DEBUG_PROFILE,
    BuildVariant,
    SigningProfile,
    load_signing_profile,
    resolve_signing_profile,
)

__version__ = "0.1.0"

__all__ = [
    "BuildVariant",
    "DEBUG_PROFILE",
    "SigningProfile",
    "load_signing_profile",
    "resolve_signing_profile",
]
