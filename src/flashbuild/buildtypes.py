"""
Build type definitions and build plan resolution.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Tuple

from flashbuild.constants import (
    ANDROID_DIR_NAME,
    APP_MODULE_DIR_NAME,
    BUILD_TYPE_DEBUG,
    BUILD_TYPE_RELEASE,
    DEFAULT_PROGUARD_FILES,
)
from flashbuild.exceptions import ConfigValidationError
from flashbuild.log_utils import logger
from flashbuild.signing import (
    DEBUG_PROFILE,
    BuildVariant,
    SigningProfile,
    load_signing_profile,
)

if TYPE_CHECKING:
    from flashbuild.config import AndroidBuildConfig


@dataclass(frozen=True)
class BuildType:
    name: str
    signing_variant: BuildVariant
    minify_enabled: bool = False
    shrink_resources: bool = False
    proguard_files: Tuple[str, ...] = ()

    @property
    def gradle_task(self) -> str:
        return f"assemble{self.name[:1].upper()}{self.name[1:]}"


def default_build_types() -> Dict[str, BuildType]:
    """
    Return the release and debug build types of the flashlight app.
    """
    return {
        BUILD_TYPE_RELEASE: BuildType(
            name=BUILD_TYPE_RELEASE,
            signing_variant=BuildVariant.RELEASE,
            minify_enabled=True,
            shrink_resources=True,
            proguard_files=DEFAULT_PROGUARD_FILES,
        ),
        BUILD_TYPE_DEBUG: BuildType(
            name=BUILD_TYPE_DEBUG,
            signing_variant=BuildVariant.DEBUG,
        ),
    }


def validate_build_type(build_type: BuildType) -> None:
    """
    Raise ConfigValidationError for flag combinations the Android plugin rejects.
    """
    if build_type.shrink_resources and not build_type.minify_enabled:
        raise ConfigValidationError(
            f"Build type '{build_type.name}' enables resource shrinking without code shrinking",
            field=f"build_types.{build_type.name}.shrink_resources",
            value=True,
        )


def _flag(name: str, options: Mapping[str, Any], key: str, default: bool) -> bool:
    value = options.get(key, default)
    if not isinstance(value, bool):
        raise ConfigValidationError(
            f"{key} for build type '{name}' must be true or false",
            field=f"build_types.{name}.{key}",
            value=value,
        )
    return value


def parse_build_types(raw: Mapping[str, Any]) -> Dict[str, BuildType]:
    """
    Merge build type overrides from the YAML config over the defaults.

    Each entry may set ``signing`` ("release" or "debug"), ``minify_enabled``,
    ``shrink_resources`` and ``proguard_files``. Unknown names define new
    build types, signed with the debug key unless stated otherwise.
    """
    build_types = default_build_types()
    for name, options in raw.items():
        if options is None:
            options = {}
        if not isinstance(options, Mapping):
            raise ConfigValidationError(
                f"Build type '{name}' must be a mapping",
                field=f"build_types.{name}",
                value=options,
            )

        base = build_types.get(name) or BuildType(
            name=name, signing_variant=BuildVariant.DEBUG
        )
        signing = options.get("signing", base.signing_variant.value)
        try:
            variant = BuildVariant(str(signing).lower())
        except ValueError:
            raise ConfigValidationError(
                f"Unknown signing config '{signing}' for build type '{name}'",
                field=f"build_types.{name}.signing",
                value=signing,
            ) from None

        proguard_files = options.get("proguard_files", base.proguard_files)
        if proguard_files is None:
            proguard_files = ()
        elif isinstance(proguard_files, str):
            proguard_files = [proguard_files]
        elif not isinstance(proguard_files, (list, tuple)):
            raise ConfigValidationError(
                f"proguard_files for build type '{name}' must be a list of paths",
                field=f"build_types.{name}.proguard_files",
                value=proguard_files,
            )

        build_type = BuildType(
            name=name,
            signing_variant=variant,
            minify_enabled=_flag(name, options, "minify_enabled", base.minify_enabled),
            shrink_resources=_flag(
                name, options, "shrink_resources", base.shrink_resources
            ),
            proguard_files=tuple(str(path) for path in proguard_files),
        )
        validate_build_type(build_type)
        build_types[name] = build_type
    return build_types


@dataclass(frozen=True)
class BuildPlan:
    """
    Everything the packaging step needs for one build invocation.
    """

    build_type: BuildType
    signing: SigningProfile
    config: "AndroidBuildConfig"
    project_root: str
    warnings: List[str] = field(default_factory=list)

    @property
    def android_dir(self) -> str:
        return os.path.join(self.project_root, ANDROID_DIR_NAME)

    def describe(self) -> Dict[str, Any]:
        return {
            "build_type": self.build_type.name,
            "gradle_task": self.build_type.gradle_task,
            "minify_enabled": self.build_type.minify_enabled,
            "shrink_resources": self.build_type.shrink_resources,
            "proguard_files": list(self.build_type.proguard_files),
            "application_id": self.config.application_id,
            "version_name": self.config.version_name,
            "version_code": self.config.version_code,
            "signing": self.signing.describe(),
        }


def resolve_build_plan(
    build_type_name: str, config: "AndroidBuildConfig", project_root: str
) -> BuildPlan:
    """
    Pick a build type and resolve the signing profile it uses.

    Build types signed with the release config read ``key.properties`` from
    the Android project directory; a relative ``storeFile`` resolves against
    the app module directory, as Gradle's ``file()`` does there. A missing
    properties file yields a debug-signed plan with a warning; an incomplete
    one raises ConfigurationError. Debug build types never read the file.

    Raises:
        ConfigValidationError: If the build type is unknown.
        ConfigurationError: If the signing properties are incomplete.
    """
    name = build_type_name.lower()
    build_type = config.build_types.get(name)
    if build_type is None:
        raise ConfigValidationError(
            f"Unknown build type: {build_type_name}",
            field="build_type",
            value=build_type_name,
            details=f"choose from {', '.join(sorted(config.build_types))}",
        )

    warnings: List[str] = []
    if build_type.signing_variant is BuildVariant.RELEASE:
        android_dir = os.path.join(project_root, ANDROID_DIR_NAME)
        properties_path = os.path.join(android_dir, config.key_properties_file)
        signing = load_signing_profile(
            properties_path,
            project_root=os.path.join(android_dir, APP_MODULE_DIR_NAME),
        )
        if not signing.is_release:
            message = (
                f"{properties_path} not found; the {name} build will be "
                "signed with the debug key"
            )
            logger.warning(message)
            warnings.append(message)
    else:
        signing = DEBUG_PROFILE

    return BuildPlan(
        build_type=build_type,
        signing=signing,
        config=config,
        project_root=project_root,
        warnings=warnings,
    )
