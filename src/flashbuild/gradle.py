"""
Packaging step: hand a resolved build plan to the Gradle wrapper.
"""

from __future__ import annotations

import glob
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from flashbuild.buildtypes import BuildPlan
from flashbuild.constants import (
    APK_EXTENSION,
    GRADLE_PROJECT_ENV_PREFIX,
    INJECTED_KEY_ALIAS,
    INJECTED_KEY_PASSWORD,
    INJECTED_STORE_FILE,
    INJECTED_STORE_PASSWORD,
    INJECTED_VERSION_CODE,
    INJECTED_VERSION_NAME,
    LOCAL_PROPERTIES_FILE,
    LOCAL_SDK_DIR_KEY,
    SECRET_GRADLE_PROPERTIES,
    SECRET_MASK,
)
from flashbuild.exceptions import KeystoreNotFoundError
from flashbuild.log_utils import logger
from flashbuild.properties import write_properties


def resolve_android_sdk_root() -> Optional[str]:
    """
    Resolve an Android SDK root from environment variables or common default locations.
    """
    env_root = os.environ.get("ANDROID_SDK_ROOT") or os.environ.get("ANDROID_HOME")
    if env_root and os.path.isdir(env_root):
        return env_root

    candidates = [
        os.path.expanduser("~/Android/sdk"),
        os.path.expanduser("~/Android/Sdk"),
        os.path.expanduser("~/Library/Android/sdk"),
        os.path.expanduser("~/Library/Android/Sdk"),
    ]
    for candidate in candidates:
        if os.path.isdir(os.path.join(candidate, "platforms")):
            return candidate

    return None


def ensure_local_properties(android_dir: str, sdk_root: str) -> None:
    """
    Ensure local.properties exists with sdk.dir configured for Gradle builds.
    """
    local_properties = os.path.join(android_dir, LOCAL_PROPERTIES_FILE)
    if os.path.exists(local_properties):
        return

    try:
        write_properties(local_properties, {LOCAL_SDK_DIR_KEY: sdk_root})
    except OSError as exc:
        logger.warning("Could not write local.properties: %s", exc)


def gradle_arguments(plan: BuildPlan) -> List[str]:
    """
    Return the wrapper arguments for a plan: the assemble task and injected properties.

    The keystore path and key alias are only added for a release profile; a
    debug profile leaves signing to the Android plugin's debug keystore.
    Passwords never appear on the command line, see gradle_environment().
    """
    args = [plan.build_type.gradle_task]
    signing = plan.signing
    if signing.is_release:
        args.extend(
            [
                f"-P{INJECTED_STORE_FILE}={signing.keystore_path}",
                f"-P{INJECTED_KEY_ALIAS}={signing.key_alias}",
            ]
        )
    args.extend(
        [
            f"-P{INJECTED_VERSION_CODE}={plan.config.version_code}",
            f"-P{INJECTED_VERSION_NAME}={plan.config.version_name}",
        ]
    )
    return args


def gradle_environment(plan: BuildPlan) -> Dict[str, str]:
    """
    Return the environment entries carrying the release passwords to Gradle.

    Gradle maps ``ORG_GRADLE_PROJECT_<name>`` variables to project properties,
    which keeps the passwords out of the process list. Empty for debug.
    """
    signing = plan.signing
    if not signing.is_release:
        return {}
    return {
        f"{GRADLE_PROJECT_ENV_PREFIX}{INJECTED_STORE_PASSWORD}": signing.store_password or "",
        f"{GRADLE_PROJECT_ENV_PREFIX}{INJECTED_KEY_PASSWORD}": signing.key_password or "",
    }


def redact_arguments(args: Sequence[str]) -> List[str]:
    """
    Return a copy of Gradle arguments with password values masked for logging.
    """
    redacted: List[str] = []
    for arg in args:
        name = arg[2:].split("=", 1)[0] if arg.startswith("-P") else None
        if name in SECRET_GRADLE_PROPERTIES:
            redacted.append(f"-P{name}={SECRET_MASK}")
        else:
            redacted.append(arg)
    return redacted


def newest_match(paths: Iterable[str]) -> Optional[str]:
    """
    Return the newest file path from the iterable, or None if empty.
    """
    path_list = [p for p in paths if os.path.isfile(p)]
    if not path_list:
        return None
    return max(path_list, key=os.path.getmtime)


def artifact_patterns(build_type: str) -> List[str]:
    """
    Return APK glob patterns, relative to the Flutter project root, for a build type.
    """
    return [
        f"build/app/outputs/flutter-apk/app-{build_type}.apk",
        f"build/app/outputs/apk/{build_type}/*.apk",
        f"android/app/build/outputs/apk/{build_type}/*.apk",
    ]


@dataclass
class BuildResult:
    success: bool
    message: str
    build_type: str
    artifact_path: Optional[str] = None
    dest_path: Optional[str] = None
    signed_with: Optional[str] = None


class GradleBuilder:
    """
    Runs the Gradle wrapper of a Flutter project's Android directory.
    """

    def __init__(self, sdk_root: Optional[str] = None) -> None:
        self.sdk_root = sdk_root

    def build(self, plan: BuildPlan, dist_dir: str) -> BuildResult:
        """
        Build the plan's APK and copy it to ``dist_dir``.

        Raises:
            KeystoreNotFoundError: If a release keystore path does not exist;
                raised before Gradle is started.
        """
        build_type = plan.build_type.name
        signing = plan.signing
        if signing.is_release and not os.path.isfile(signing.keystore_path or ""):
            raise KeystoreNotFoundError(
                signing.keystore_path or "", details="check storeFile in key.properties"
            )

        android_dir = plan.android_dir
        gradlew = _resolve_gradlew(android_dir)
        if not gradlew:
            return BuildResult(
                success=False,
                message=f"Gradle wrapper not found in {android_dir}.",
                build_type=build_type,
            )

        build_env = os.environ.copy()
        sdk_root = self.sdk_root or resolve_android_sdk_root()
        if sdk_root:
            build_env.setdefault("ANDROID_SDK_ROOT", sdk_root)
            build_env.setdefault("ANDROID_HOME", sdk_root)
            ensure_local_properties(android_dir, sdk_root)
        else:
            logger.warning("Android SDK not found; relying on local.properties.")
        build_env.update(gradle_environment(plan))

        args = gradle_arguments(plan)
        logger.info(f"Running {os.path.basename(gradlew)} {' '.join(redact_arguments(args))}")
        try:
            subprocess.run(
                [gradlew, *args],
                check=True,
                cwd=android_dir,
                env=build_env,
            )
        except subprocess.CalledProcessError as exc:
            return BuildResult(
                success=False,
                message=f"Build failed with exit code {exc.returncode}",
                build_type=build_type,
            )
        except OSError as exc:
            return BuildResult(
                success=False,
                message=f"Build failed: {exc}",
                build_type=build_type,
            )

        artifact = _find_artifact(plan.project_root, artifact_patterns(build_type))
        if not artifact:
            return BuildResult(
                success=False,
                message="Build finished but no APK was found.",
                build_type=build_type,
            )

        config = plan.config
        dest_dir = os.path.expanduser(dist_dir)
        os.makedirs(dest_dir, exist_ok=True)
        dest_path = os.path.join(
            dest_dir,
            f"{config.application_id}-{config.version_name}-{build_type}{APK_EXTENSION}",
        )
        try:
            shutil.copy2(artifact, dest_path)
        except OSError as exc:
            return BuildResult(
                success=False,
                message=f"Failed to copy APK: {exc}",
                build_type=build_type,
                artifact_path=artifact,
            )

        return BuildResult(
            success=True,
            message=f"Saved APK to {dest_path}",
            build_type=build_type,
            artifact_path=artifact,
            dest_path=dest_path,
            signed_with=signing.variant.value,
        )


def _resolve_gradlew(android_dir: str) -> Optional[str]:
    gradlew = "gradlew.bat" if os.name == "nt" else "gradlew"
    gradlew_path = os.path.join(android_dir, gradlew)
    if not os.path.exists(gradlew_path):
        return None
    if os.name != "nt":
        try:
            os.chmod(gradlew_path, os.stat(gradlew_path).st_mode | 0o111)
        except OSError as exc:
            logger.debug("Could not chmod gradlew: %s", exc)
    return gradlew_path


def _find_artifact(project_root: str, patterns: Sequence[str]) -> Optional[str]:
    candidates: List[str] = []
    for pattern in patterns:
        candidates.extend(glob.glob(os.path.join(project_root, pattern)))
    return newest_match(candidates)
