import os
import subprocess
from pathlib import Path

import pytest

from flashbuild.buildtypes import resolve_build_plan
from flashbuild.config import AndroidBuildConfig
from flashbuild.exceptions import KeystoreNotFoundError
from flashbuild.gradle import (
    GradleBuilder,
    ensure_local_properties,
    gradle_arguments,
    gradle_environment,
    newest_match,
    redact_arguments,
    resolve_android_sdk_root,
)


def _release_plan(project: Path, keystore: Path):
    (project / "android" / "key.properties").write_text(
        f"storeFile={keystore}\nstorePassword=s3cret\nkeyPassword=k3y\nkeyAlias=upload\n",
        encoding="iso-8859-1",
    )
    config = AndroidBuildConfig(version_name="1.2.3", version_code=45)
    return resolve_build_plan("release", config, str(project))


def _add_gradlew(project: Path) -> Path:
    gradlew = project / "android" / "gradlew"
    gradlew.write_text("#!/bin/sh\nexit 0\n")
    return gradlew


@pytest.mark.unit
def test_gradle_arguments_for_release(flutter_project, tmp_path):
    keystore = tmp_path / "upload.jks"
    plan = _release_plan(flutter_project, keystore)
    assert gradle_arguments(plan) == [
        "assembleRelease",
        f"-Pandroid.injected.signing.store.file={keystore}",
        "-Pandroid.injected.signing.key.alias=upload",
        "-Pandroid.injected.version.code=45",
        "-Pandroid.injected.version.name=1.2.3",
    ]


@pytest.mark.unit
def test_gradle_environment_carries_release_passwords(flutter_project, tmp_path):
    plan = _release_plan(flutter_project, tmp_path / "upload.jks")
    assert gradle_environment(plan) == {
        "ORG_GRADLE_PROJECT_android.injected.signing.store.password": "s3cret",
        "ORG_GRADLE_PROJECT_android.injected.signing.key.password": "k3y",
    }


@pytest.mark.unit
def test_gradle_environment_empty_for_debug(flutter_project):
    plan = resolve_build_plan("debug", AndroidBuildConfig(), str(flutter_project))
    assert gradle_environment(plan) == {}


@pytest.mark.unit
def test_gradle_arguments_for_debug_have_no_signing(flutter_project):
    plan = resolve_build_plan("debug", AndroidBuildConfig(), str(flutter_project))
    args = gradle_arguments(plan)
    assert args[0] == "assembleDebug"
    assert not any("signing" in arg for arg in args)


@pytest.mark.unit
def test_redact_arguments_masks_passwords():
    args = [
        "assembleRelease",
        "-Pandroid.injected.signing.store.password=s3cret",
        "-Pandroid.injected.signing.key.alias=upload",
        "-Pandroid.injected.signing.key.password=k3y",
    ]
    assert redact_arguments(args) == [
        "assembleRelease",
        "-Pandroid.injected.signing.store.password=********",
        "-Pandroid.injected.signing.key.alias=upload",
        "-Pandroid.injected.signing.key.password=********",
    ]


@pytest.mark.unit
def test_resolve_android_sdk_root_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("ANDROID_HOME", str(tmp_path))
    assert resolve_android_sdk_root() == str(tmp_path)


@pytest.mark.unit
def test_resolve_android_sdk_root_none(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_android_sdk_root() is None


@pytest.mark.unit
def test_ensure_local_properties_writes_sdk_dir(tmp_path):
    ensure_local_properties(str(tmp_path), "/opt/android-sdk")
    content = (tmp_path / "local.properties").read_text(encoding="iso-8859-1")
    assert content == "sdk.dir=/opt/android-sdk\n"


@pytest.mark.unit
def test_ensure_local_properties_keeps_existing(tmp_path):
    local = tmp_path / "local.properties"
    local.write_text("flutter.sdk=/flutter\n")
    ensure_local_properties(str(tmp_path), "/opt/android-sdk")
    assert local.read_text() == "flutter.sdk=/flutter\n"


@pytest.mark.unit
def test_newest_match(tmp_path):
    older = tmp_path / "a.apk"
    newer = tmp_path / "b.apk"
    older.write_bytes(b"a")
    newer.write_bytes(b"b")
    os.utime(older, (1000, 1000))
    os.utime(newer, (2000, 2000))
    assert newest_match([str(older), str(newer), str(tmp_path / "gone.apk")]) == str(
        newer
    )
    assert newest_match([]) is None


class TestGradleBuilder:
    """Test the packaging step with the wrapper mocked out."""

    @pytest.mark.unit
    def test_release_build_copies_apk(self, flutter_project, tmp_path, mocker):
        keystore = tmp_path / "upload.jks"
        keystore.write_bytes(b"keystore")
        plan = _release_plan(flutter_project, keystore)
        _add_gradlew(flutter_project)
        apk = flutter_project / "build" / "app" / "outputs" / "flutter-apk" / "app-release.apk"
        apk.parent.mkdir(parents=True)
        apk.write_bytes(b"apk")
        run = mocker.patch("flashbuild.gradle.subprocess.run", return_value=mocker.Mock())

        dist = tmp_path / "dist"
        result = GradleBuilder(sdk_root=str(tmp_path / "sdk")).build(plan, str(dist))

        assert result.success is True
        assert result.signed_with == "release"
        assert Path(result.dest_path) == dist / "dev.parthprolegend.flashlight-1.2.3-release.apk"
        assert Path(result.dest_path).read_bytes() == b"apk"
        command = run.call_args[0][0]
        assert command[0].endswith("gradlew")
        assert command[1] == "assembleRelease"
        assert run.call_args[1]["cwd"] == str(flutter_project / "android")
        assert run.call_args[1]["env"]["ANDROID_SDK_ROOT"] == str(tmp_path / "sdk")

    @pytest.mark.unit
    def test_missing_keystore_aborts_before_gradle(self, flutter_project, tmp_path, mocker):
        plan = _release_plan(flutter_project, tmp_path / "missing.jks")
        _add_gradlew(flutter_project)
        run = mocker.patch("flashbuild.gradle.subprocess.run")
        with pytest.raises(KeystoreNotFoundError) as exc_info:
            GradleBuilder().build(plan, str(tmp_path / "dist"))
        assert exc_info.value.path == str(tmp_path / "missing.jks")
        run.assert_not_called()

    @pytest.mark.unit
    def test_missing_wrapper(self, flutter_project, tmp_path):
        plan = resolve_build_plan("debug", AndroidBuildConfig(), str(flutter_project))
        result = GradleBuilder().build(plan, str(tmp_path / "dist"))
        assert result.success is False
        assert "Gradle wrapper not found" in result.message

    @pytest.mark.unit
    def test_gradle_failure_is_reported(self, flutter_project, tmp_path, mocker):
        plan = resolve_build_plan("debug", AndroidBuildConfig(), str(flutter_project))
        _add_gradlew(flutter_project)
        mocker.patch(
            "flashbuild.gradle.subprocess.run",
            side_effect=subprocess.CalledProcessError(1, ["gradlew"]),
        )
        result = GradleBuilder(sdk_root=str(tmp_path)).build(plan, str(tmp_path / "dist"))
        assert result.success is False
        assert "exit code 1" in result.message

    @pytest.mark.unit
    def test_no_apk_found(self, flutter_project, tmp_path, mocker):
        plan = resolve_build_plan("debug", AndroidBuildConfig(), str(flutter_project))
        _add_gradlew(flutter_project)
        mocker.patch("flashbuild.gradle.subprocess.run", return_value=mocker.Mock())
        result = GradleBuilder(sdk_root=str(tmp_path)).build(plan, str(tmp_path / "dist"))
        assert result.success is False
        assert "no APK" in result.message

    @pytest.mark.unit
    def test_passwords_stay_off_command_line_and_logs(
        self, flutter_project, tmp_path, mocker
    ):
        keystore = tmp_path / "upload.jks"
        keystore.write_bytes(b"keystore")
        plan = _release_plan(flutter_project, keystore)
        _add_gradlew(flutter_project)
        run = mocker.patch("flashbuild.gradle.subprocess.run", return_value=mocker.Mock())
        info = mocker.patch("flashbuild.gradle.logger.info")
        GradleBuilder(sdk_root=str(tmp_path)).build(plan, str(tmp_path / "dist"))

        command = " ".join(run.call_args[0][0])
        logged = " ".join(str(call[0][0]) for call in info.call_args_list)
        for secret in ("s3cret", "k3y"):
            assert secret not in command
            assert secret not in logged
        env = run.call_args[1]["env"]
        assert env["ORG_GRADLE_PROJECT_android.injected.signing.store.password"] == "s3cret"
        assert env["ORG_GRADLE_PROJECT_android.injected.signing.key.password"] == "k3y"
