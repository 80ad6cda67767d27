"""
Android build configuration for the Flutter app.

Values the Gradle script took from the Flutter plugin (SDK levels, version
code and name) are passed in here as plain configuration: defaults from
constants, then ``pubspec.yaml`` and ``android/local.properties``, then an
optional ``flashbuild.yaml``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

import platformdirs
import yaml

from flashbuild.buildtypes import BuildType, default_build_types, parse_build_types
from flashbuild.constants import (
    ANDROID_DIR_NAME,
    APPLICATION_ID_PATTERN,
    CONFIG_FILE_NAME,
    DEFAULT_APPLICATION_ID,
    DEFAULT_COMPILE_SDK,
    DEFAULT_FLUTTER_SOURCE,
    DEFAULT_JAVA_VERSION,
    DEFAULT_MIN_SDK,
    DEFAULT_NAMESPACE,
    DEFAULT_NDK_VERSION,
    DEFAULT_TARGET_SDK,
    DEFAULT_VERSION_CODE,
    DEFAULT_VERSION_NAME,
    KEY_PROPERTIES_FILE,
    LOCAL_FLUTTER_VERSION_CODE_KEY,
    LOCAL_FLUTTER_VERSION_NAME_KEY,
    LOCAL_PROPERTIES_FILE,
    PUBSPEC_FILE,
    PUBSPEC_VERSION_PATTERN,
    VERSION_NAME_PATTERN,
)
from flashbuild.exceptions import ConfigFileError, ConfigValidationError
from flashbuild.log_utils import logger
from flashbuild.properties import load_properties


@dataclass
class AndroidBuildConfig:
    namespace: str = DEFAULT_NAMESPACE
    application_id: str = DEFAULT_APPLICATION_ID
    compile_sdk: int = DEFAULT_COMPILE_SDK
    min_sdk: int = DEFAULT_MIN_SDK
    target_sdk: int = DEFAULT_TARGET_SDK
    ndk_version: str = DEFAULT_NDK_VERSION
    version_code: int = DEFAULT_VERSION_CODE
    version_name: str = DEFAULT_VERSION_NAME
    java_version: str = DEFAULT_JAVA_VERSION
    flutter_source: str = DEFAULT_FLUTTER_SOURCE
    key_properties_file: str = KEY_PROPERTIES_FILE
    build_types: Dict[str, BuildType] = field(default_factory=default_build_types)

    def describe(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {
            f.name: getattr(self, f.name) for f in fields(self) if f.name != "build_types"
        }
        summary["build_types"] = sorted(self.build_types)
        return summary


_SCALAR_FIELDS = tuple(f.name for f in fields(AndroidBuildConfig) if f.name != "build_types")


def user_config_file() -> str:
    """
    Return the per-user flashbuild.yaml path under the platformdirs config dir.
    """
    return os.path.join(platformdirs.user_config_dir("flashbuild"), CONFIG_FILE_NAME)


def find_config_file(project_root: str) -> Optional[str]:
    """
    Return the project flashbuild.yaml if present, else the user one, else None.
    """
    for candidate in (os.path.join(project_root, CONFIG_FILE_NAME), user_config_file()):
        if os.path.isfile(candidate):
            return candidate
    return None


def _read_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigFileError(
            f"Could not read configuration file {path}", details=str(exc)
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(
            f"Configuration file {path} must contain a mapping",
            details=f"got {type(data).__name__}",
        )
    return data


def _parse_pubspec_version(value: Any) -> Tuple[Optional[str], Optional[int]]:
    match = re.match(PUBSPEC_VERSION_PATTERN, str(value).strip())
    if not match:
        logger.warning(f"Ignoring unrecognized pubspec version: {value}")
        return None, None
    code = match.group("code")
    return match.group("name"), int(code) if code else None


def read_flutter_version(project_root: str) -> Tuple[str, int]:
    """
    Return the (version_name, version_code) Flutter would hand to Gradle.

    ``pubspec.yaml`` supplies ``version: <name>+<code>``; the
    ``flutter.versionName`` and ``flutter.versionCode`` entries of
    ``android/local.properties`` take precedence when present. Missing values
    fall back to Flutter's defaults ("1.0" and 1).
    """
    version_name: Optional[str] = None
    version_code: Optional[int] = None

    pubspec_path = os.path.join(project_root, PUBSPEC_FILE)
    if os.path.isfile(pubspec_path):
        pubspec = _read_yaml(pubspec_path)
        if pubspec.get("version") is not None:
            version_name, version_code = _parse_pubspec_version(pubspec["version"])

    local_path = os.path.join(project_root, ANDROID_DIR_NAME, LOCAL_PROPERTIES_FILE)
    if os.path.isfile(local_path):
        local = load_properties(local_path)
        version_name = local.get(LOCAL_FLUTTER_VERSION_NAME_KEY) or version_name
        local_code = local.get(LOCAL_FLUTTER_VERSION_CODE_KEY)
        if local_code:
            try:
                version_code = int(local_code)
            except ValueError:
                raise ConfigValidationError(
                    f"{LOCAL_FLUTTER_VERSION_CODE_KEY} is not an integer",
                    field=LOCAL_FLUTTER_VERSION_CODE_KEY,
                    value=local_code,
                ) from None

    return version_name or DEFAULT_VERSION_NAME, version_code or DEFAULT_VERSION_CODE


def validate_config(config: AndroidBuildConfig) -> None:
    """
    Check SDK levels, version values, path settings and the application id.

    Raises:
        ConfigValidationError: Naming the first field that is invalid.
    """
    for name in ("namespace", "application_id", "flutter_source", "key_properties_file"):
        value = getattr(config, name)
        if not isinstance(value, str) or not value.strip():
            raise ConfigValidationError(
                f"{name} must be a non-empty string", field=name, value=value
            )

    for name in ("compile_sdk", "min_sdk", "target_sdk", "version_code"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigValidationError(
                f"{name} must be a positive integer", field=name, value=value
            )

    if config.min_sdk > config.target_sdk:
        raise ConfigValidationError(
            "min_sdk cannot be greater than target_sdk",
            field="min_sdk",
            value=config.min_sdk,
            details=f"target_sdk is {config.target_sdk}",
        )
    if config.target_sdk > config.compile_sdk:
        raise ConfigValidationError(
            "target_sdk cannot be greater than compile_sdk",
            field="target_sdk",
            value=config.target_sdk,
            details=f"compile_sdk is {config.compile_sdk}",
        )

    if not re.match(VERSION_NAME_PATTERN, str(config.version_name)):
        raise ConfigValidationError(
            f"Invalid version name: {config.version_name}",
            field="version_name",
            value=config.version_name,
        )

    for name in ("application_id", "namespace"):
        value = getattr(config, name)
        if not re.match(APPLICATION_ID_PATTERN, str(value)):
            raise ConfigValidationError(
                f"Invalid {name}: {value}", field=name, value=value
            )


def load_config(
    project_root: str, config_path: Optional[str] = None
) -> AndroidBuildConfig:
    """
    Build the Android configuration for the Flutter project at ``project_root``.

    Parameters:
        project_root (str): Flutter project directory (holding pubspec.yaml).
        config_path (str | None): Explicit flashbuild.yaml; when None the
            project file is preferred over the per-user one.

    Returns:
        AndroidBuildConfig: The validated configuration.

    Raises:
        ConfigFileError: If the YAML file cannot be read or parsed.
        ConfigValidationError: If a value is invalid.
    """
    version_name, version_code = read_flutter_version(project_root)
    config = AndroidBuildConfig(version_name=version_name, version_code=version_code)

    path = config_path or find_config_file(project_root)
    if path is not None:
        if config_path and not os.path.isfile(config_path):
            raise ConfigFileError(f"Configuration file not found: {config_path}")
        data = _read_yaml(path)
        logger.debug(f"Loaded build configuration from {path}")

        for key, value in data.items():
            if key == "build_types":
                if value is not None and not isinstance(value, dict):
                    raise ConfigValidationError(
                        "build_types must be a mapping", field="build_types", value=value
                    )
                config.build_types = parse_build_types(value or {})
            elif key in _SCALAR_FIELDS:
                setattr(config, key, value)
            else:
                logger.warning(f"Ignoring unknown configuration key '{key}' in {path}")

    config.version_name = str(config.version_name)
    config.java_version = str(config.java_version)
    config.ndk_version = str(config.ndk_version)
    validate_config(config)
    return config
