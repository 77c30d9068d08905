"""Tests for project files: manifest, editor version and built-in packages."""

import os

import pytest

from openupm.domain.editor_version import EditorVersion
from openupm.domain.project_manifest import ProjectManifest
from openupm.errors import (
    BuiltInPackagesReadError,
    EditorNotInstalledError,
    EditorVersionNotSupportedError,
    ManifestLoadError,
    OSNotSupportedError,
    ProjectVersionLoadError,
    VersionNotSupportedOnOsError,
)
from openupm.project import builtin_packages
from openupm.project.builtin_packages import find_builtin_packages, get_editor_install_path
from openupm.project.editor_version import determine_editor_version, load_project_version
from openupm.project.manifest_io import load_project_manifest, save_project_manifest


class TestManifestIO:
    def test_load(self, make_project):
        project = make_project({"dependencies": {"a": "1.0.0"}})
        assert load_project_manifest(project).dependencies == {"a": "1.0.0"}

    def test_missing(self, tmp_path):
        with pytest.raises(ManifestLoadError):
            load_project_manifest(str(tmp_path))

    def test_malformed(self, make_project):
        project = make_project(raw_manifest="{ not json")
        with pytest.raises(ManifestLoadError):
            load_project_manifest(project)

    def test_save_creates_directory(self, tmp_path, read_manifest):
        save_project_manifest(str(tmp_path), ProjectManifest(dependencies={"a": "1.0.0"}))
        assert read_manifest(str(tmp_path)) == '{\n  "dependencies": {\n    "a": "1.0.0"\n  }\n}\n'


class TestEditorVersion:
    def test_release_version(self, make_project):
        project = make_project(editor_version="2022.2.1f2")
        assert determine_editor_version(project) == EditorVersion(2022, 2, 1, "f", 2)

    def test_non_release_version_stays_string(self, make_project):
        project = make_project(editor_version="2022.2")
        assert determine_editor_version(project) == "2022.2"

    def test_short_version_keeps_trailing_zero(self, make_project):
        project = make_project(editor_version="2019.10")
        assert load_project_version(project) == "2019.10"

    def test_empty_value(self, make_project):
        project = make_project(editor_version="")
        with pytest.raises(ProjectVersionLoadError):
            load_project_version(project)

    def test_missing_file(self, make_project):
        project = make_project(editor_version=None)
        with pytest.raises(ProjectVersionLoadError):
            load_project_version(project)

    def test_missing_key(self, make_project):
        project = make_project()
        path = os.path.join(project, "ProjectSettings", "ProjectVersion.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write("something: else\n")
        with pytest.raises(ProjectVersionLoadError):
            load_project_version(project)


class TestBuiltInPackages:
    def test_windows_path(self):
        path = get_editor_install_path(EditorVersion(2022, 2, 1, "f", 2), platform="win32")
        assert path == "C:\\Program Files\\Unity\\Hub\\Editor\\2022.2.1f2"

    def test_mac_path(self):
        path = get_editor_install_path(EditorVersion(2022, 2, 1, "f", 2), platform="darwin")
        assert path == "/Applications/Unity/Hub/Editor/2022.2.1f2"

    def test_linux_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        path = get_editor_install_path(EditorVersion(2022, 2, 1, "f", 2), platform="linux")
        assert path == os.path.join(str(tmp_path), "Unity", "Hub", "Editor", "2022.2.1f2")

    def test_old_editor_on_linux(self):
        with pytest.raises(VersionNotSupportedOnOsError):
            get_editor_install_path(EditorVersion(2019, 1, 1, "f", 1), platform="linux")

    def test_editor_without_package_manager(self):
        with pytest.raises(EditorVersionNotSupportedError):
            get_editor_install_path(EditorVersion(2017, 4, 1, "f", 1), platform="darwin")

    def test_unsupported_os(self):
        with pytest.raises(OSNotSupportedError):
            get_editor_install_path(EditorVersion(2022, 2, 1, "f", 2), platform="sunos5")

    def test_lists_package_directories(self, monkeypatch, tmp_path):
        packages_dir = tmp_path.joinpath("Editor", "Data", "Resources", "PackageManager", "BuiltInPackages")
        for name in ("com.unity.ugui", "com.unity.modules.audio"):
            (packages_dir / name).mkdir(parents=True)
        (packages_dir / "README.txt").write_text("not a package", encoding="utf-8")
        monkeypatch.setattr(builtin_packages, "get_editor_install_path", lambda version, platform=None: str(tmp_path))

        assert find_builtin_packages(EditorVersion(2022, 2, 1, "f", 2)) == [
            "com.unity.modules.audio",
            "com.unity.ugui",
        ]

    def test_editor_not_installed(self, monkeypatch, tmp_path):
        monkeypatch.setattr(builtin_packages, "get_editor_install_path", lambda version, platform=None: str(tmp_path))
        with pytest.raises(EditorNotInstalledError):
            find_builtin_packages(EditorVersion(2022, 2, 1, "f", 2))

    def test_unreadable_package_directory(self, monkeypatch, tmp_path):
        def _denied(path):
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr(builtin_packages, "get_editor_install_path", lambda version, platform=None: str(tmp_path))
        monkeypatch.setattr(builtin_packages.os, "listdir", _denied)
        with pytest.raises(BuiltInPackagesReadError):
            find_builtin_packages(EditorVersion(2022, 2, 1, "f", 2))
