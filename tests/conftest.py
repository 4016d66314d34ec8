"""Shared test fixtures for cas-overlay."""

import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner

from cas_overlay.config import CasConfig, save_config

RESOURCES = {
    "application.properties": "server.port=8443\n",
    "messages.properties": "screen.welcome.instructions=Enter your credentials\n",
    "templates/casLoginView.html": "<html><body>login</body></html>\n",
    "templates/fragments/footer.html": "<footer>CAS</footer>\n",
    "static/css/cas.css": "body { margin: 0; }\n",
}


def write_jar(path: Path, files: dict[str, str | bytes]) -> Path:
    """Write a jar containing the given relative paths and contents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        directories = set()
        for name in files:
            parts = name.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                directories.add("/".join(parts[:i]) + "/")
        for directory in sorted(directories):
            zf.writestr(directory, "")
        for name, content in files.items():
            zf.writestr(name, content)
    return path


def write_tree(root: Path, files: dict[str, str]) -> None:
    """Create files below root."""
    for name, content in files.items():
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)


def read_tree(root: Path) -> dict[str, str]:
    """Map every file below root to its text content."""
    if not root.exists():
        return {}
    return {
        p.relative_to(root).as_posix(): p.read_text()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def cli_runner():
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def make_jar(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing resource jars into tmp_path/artifacts."""

    def factory(files: dict[str, str | bytes] | None = None, version: str = "5.0.0") -> Path:
        jar = tmp_path / "artifacts" / f"cas-server-webapp-{version}-resources.jar"
        return write_jar(jar, RESOURCES if files is None else files)

    return factory


@pytest.fixture
def overlay_project(tmp_path: Path, make_jar) -> Path:
    """A project configured for CAS 5.0.0 with the resources jar in an artifact dir."""
    project = tmp_path / "overlay"
    project.mkdir()
    jar = make_jar()
    config = CasConfig(
        version="5.0.0",
        features={"json-service-registry"},
        artifact_dirs=[str(jar.parent)],
        maven_local=str(tmp_path / "m2"),
    )
    save_config(config, project)
    return project


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Keep environment overrides out of tests unless set explicitly."""
    monkeypatch.delenv("CAS_VERSION", raising=False)
    monkeypatch.delenv("CAS_FEATURES", raising=False)
    monkeypatch.delenv("CAS_OVERLAY_LOG_LEVEL", raising=False)
