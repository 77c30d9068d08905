"""Shared fixtures: an in-memory registry and on-disk project scaffolding."""

import copy
import json
import os

import pytest

from openupm.common.http_client import clear_cache
from openupm.domain.registry import Registry

PRIMARY_URL = "https://registry.example.com"
UPSTREAM_URL = "https://packages.unity.com"


class FakeRegistry:
    """Callable stand-in for ``fetch_packument`` that records every query."""

    def __init__(self):
        self.packuments = {}
        self.errors = {}
        self.calls = []

    def publish(self, registry_url, name, version, dependencies=None, latest=True, **fields):
        """Add a version to the packument of ``name`` on ``registry_url``."""
        packument = self.packuments.setdefault(registry_url, {}).setdefault(
            name, {"name": name, "versions": {}, "dist-tags": {}}
        )
        info = {"name": name, "version": version, "dependencies": dict(dependencies or {})}
        info.update(fields)
        packument["versions"][version] = info
        if latest:
            packument["dist-tags"]["latest"] = version
        return info

    def fail(self, registry_url, name, error):
        """Make queries for ``name`` on ``registry_url`` raise ``error``."""
        self.errors[(registry_url, name)] = error

    def __call__(self, registry, name):
        self.calls.append((registry.url, name))
        if (registry.url, name) in self.errors:
            raise self.errors[(registry.url, name)]
        packument = self.packuments.get(registry.url, {}).get(name)
        return copy.deepcopy(packument) if packument is not None else None

    def calls_for(self, name):
        return [url for url, called_name in self.calls if called_name == name]


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def primary_registry():
    return Registry(url=PRIMARY_URL)


@pytest.fixture(autouse=True)
def _clear_http_cache():
    """Keep cached responses from leaking between tests."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def make_project(tmp_path):
    """Create a project directory with a manifest and optional editor version."""

    def _make(manifest=None, editor_version="2022.2.1f2", raw_manifest=None):
        project = tmp_path / "project"
        (project / "Packages").mkdir(parents=True, exist_ok=True)
        content = raw_manifest if raw_manifest is not None else json.dumps(
            manifest if manifest is not None else {"dependencies": {}}, indent=2
        )
        (project / "Packages" / "manifest.json").write_text(content, encoding="utf-8")
        if editor_version is not None:
            (project / "ProjectSettings").mkdir(exist_ok=True)
            (project / "ProjectSettings" / "ProjectVersion.txt").write_text(
                f"m_EditorVersion: {editor_version}\n"
                f"m_EditorVersionWithRevision: {editor_version} (abcdef)\n",
                encoding="utf-8",
            )
        return str(project)

    return _make


@pytest.fixture
def read_manifest():
    """Read a project's manifest file as text."""

    def _read(project_path):
        with open(os.path.join(project_path, "Packages", "manifest.json"), encoding="utf-8") as f:
            return f.read()

    return _read
