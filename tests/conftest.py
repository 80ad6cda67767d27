import subprocess
from pathlib import Path

import platformdirs
import pytest

_SUBPROCESS_BLOCK_MSG = (
    "Spawning processes is blocked during tests. Mock subprocess.run."
)


def _block_subprocess(*_args, **_kwargs):
    """
    Prevent tests from starting Gradle or any other external tool.

    Raises:
        RuntimeError: with `_SUBPROCESS_BLOCK_MSG`.
    """
    raise RuntimeError(_SUBPROCESS_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used by the test suite.
    """
    config.addinivalue_line("markers", "unit: fast tests without external tools")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs at a temporary tree and block subprocess spawning.

    The per-user config directory is isolated so a developer's own
    flashbuild.yaml never leaks into a test, and Android SDK environment
    variables are cleared so SDK discovery is deterministic.
    """
    base = tmp_path_factory.mktemp("flashbuild")
    config_dir = base / "config"
    log_dir = base / "log"
    for path in (config_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.delenv("ANDROID_SDK_ROOT", raising=False)
    monkeypatch.delenv("ANDROID_HOME", raising=False)
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )
    monkeypatch.setattr(subprocess, "run", _block_subprocess)


@pytest.fixture
def flutter_project(tmp_path) -> Path:
    """
    Create a minimal Flutter project layout with pubspec.yaml and android/app.
    """
    project = tmp_path / "flashlight"
    (project / "android" / "app").mkdir(parents=True)
    (project / "pubspec.yaml").write_text(
        "name: flashlight\nversion: 1.2.3+45\n", encoding="utf-8"
    )
    return project


@pytest.fixture
def write_key_properties():
    """
    Return a helper that writes android/key.properties for a project.
    """

    def _write(project: Path, content: str) -> Path:
        path = project / "android" / "key.properties"
        path.write_text(content, encoding="iso-8859-1")
        return path

    return _write
