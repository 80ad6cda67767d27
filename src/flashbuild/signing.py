"""
Release signing resolution.

Turns the contents of ``key.properties`` into exactly one signing profile:
the release profile when every credential is present, the debug profile when
the file does not exist. A file that exists but is incomplete is an error,
never a silent fallback to debug signing.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from flashbuild.constants import (
    KEY_ALIAS_KEY,
    KEY_PASSWORD_KEY,
    REQUIRED_SIGNING_KEYS,
    SECRET_MASK,
    STORE_FILE_KEY,
    STORE_PASSWORD_KEY,
)
from flashbuild.exceptions import ConfigurationError
from flashbuild.log_utils import logger
from flashbuild.properties import load_properties


class BuildVariant(enum.Enum):
    DEBUG = "debug"
    RELEASE = "release"


@dataclass(frozen=True)
class SigningProfile:
    """
    A resolved signing identity for one build invocation.

    A release profile always carries all four credentials; the debug profile
    carries none and leaves signing to the toolchain's debug keystore.
    """

    variant: BuildVariant
    keystore_path: Optional[str] = None
    store_password: Optional[str] = field(default=None, repr=False)
    key_password: Optional[str] = field(default=None, repr=False)
    key_alias: Optional[str] = None

    @property
    def is_release(self) -> bool:
        return self.variant is BuildVariant.RELEASE

    def describe(self) -> Dict[str, Optional[str]]:
        """
        Return a display mapping with the passwords masked.
        """

        def mask(secret: Optional[str]) -> Optional[str]:
            return SECRET_MASK if secret else None

        return {
            "variant": self.variant.value,
            "keystore_path": self.keystore_path,
            "store_password": mask(self.store_password),
            "key_password": mask(self.key_password),
            "key_alias": self.key_alias,
        }


DEBUG_PROFILE = SigningProfile(variant=BuildVariant.DEBUG)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _resolve_keystore_path(store_file: str, project_root: Optional[str]) -> str:
    if os.path.isabs(store_file) or not project_root:
        return store_file
    return os.path.normpath(os.path.join(project_root, store_file))


def resolve_signing_profile(
    properties_file_exists: bool,
    properties: Optional[Mapping[str, str]],
    project_root: Optional[str] = None,
) -> SigningProfile:
    """
    Resolve a signing profile from already-loaded signing properties.

    Parameters:
        properties_file_exists (bool): Whether the signing properties file exists.
        properties (Mapping[str, str] | None): The parsed properties, or None
            when nothing was loaded.
        project_root (str | None): Directory a relative ``storeFile`` is
            resolved against. Relative paths are kept as-is when None.

    Returns:
        SigningProfile: The release profile when all of storeFile,
        storePassword, keyPassword and keyAlias are present and non-empty;
        the debug profile when the file does not exist.

    Raises:
        ConfigurationError: If the file exists but any required key is
            missing or empty. ``missing_keys`` lists exactly those keys.
    """
    if not properties_file_exists or properties is None:
        return DEBUG_PROFILE

    missing = [key for key in REQUIRED_SIGNING_KEYS if _is_blank(properties.get(key))]
    if missing:
        raise ConfigurationError(missing_keys=missing)

    return SigningProfile(
        variant=BuildVariant.RELEASE,
        keystore_path=_resolve_keystore_path(properties[STORE_FILE_KEY], project_root),
        store_password=properties[STORE_PASSWORD_KEY],
        key_password=properties[KEY_PASSWORD_KEY],
        key_alias=properties[KEY_ALIAS_KEY],
    )


def load_signing_profile(
    properties_path: str, project_root: Optional[str] = None
) -> SigningProfile:
    """
    Load ``properties_path`` if it exists and resolve a signing profile from it.

    ``project_root`` defaults to the directory containing the properties
    file. Read errors (for example permission denied) propagate unchanged.
    """
    exists = os.path.exists(properties_path)
    if not exists:
        logger.info(
            f"No signing properties at {properties_path}; using debug signing."
        )
        return resolve_signing_profile(False, None, project_root)

    properties = load_properties(properties_path)
    if project_root is None:
        project_root = os.path.dirname(os.path.abspath(properties_path))

    try:
        profile = resolve_signing_profile(True, properties, project_root)
    except ConfigurationError as exc:
        raise ConfigurationError(
            missing_keys=exc.missing_keys, properties_path=properties_path
        ) from None

    logger.info(
        f"Release signing with key alias '{profile.key_alias}' from {profile.keystore_path}"
    )
    return profile
