"""Tests for atomically removing packages."""

import json

import pytest

from openupm.domain.project_manifest import ProjectManifest, ScopedRegistry
from openupm.errors import PackumentNotFoundError
from openupm.services.remove_packages import (
    RemovedPackage,
    remove_packages,
    remove_packages_from_project,
)

URL = "https://registry.example.com"


def _manifest():
    return ProjectManifest(
        dependencies={"a": "1.0.0", "b": "2.0.0", "c": "3.0.0"},
        scoped_registries=(
            ScopedRegistry("only-a", "https://a.example.com", ("a",)),
            ScopedRegistry("r", URL, ("a", "b")),
        ),
        testables=("a", "c"),
    )


class TestRemovePackages:
    def test_removes_dependency_scopes_and_testable(self):
        updated, removed = remove_packages(_manifest(), ["a"])

        assert updated.dependencies == {"b": "2.0.0", "c": "3.0.0"}
        assert updated.scoped_registries == (ScopedRegistry("r", URL, ("b",)),)
        assert updated.testables == ("c",)
        assert removed == [RemovedPackage("a", "1.0.0")]

    def test_empty_sections_are_dropped(self):
        updated, removed = remove_packages(_manifest(), ["a", "b", "c"])

        assert updated.dependencies == {}
        assert updated.scoped_registries is None
        assert updated.testables is None
        assert [p.name for p in removed] == ["a", "b", "c"]

    def test_missing_package_fails_without_removing_anything(self):
        manifest = _manifest()

        with pytest.raises(PackumentNotFoundError) as exc_info:
            remove_packages(manifest, ["a", "missing", "other-missing"])

        assert exc_info.value.package_name == "missing"
        assert manifest == _manifest()

    def test_duplicate_names(self):
        _, removed = remove_packages(_manifest(), ["b", "b"])
        assert removed == [RemovedPackage("b", "2.0.0")]


class TestRemoveFromProject:
    def test_scope_pruning_on_disk(self, make_project, read_manifest):
        project = make_project({
            "dependencies": {"pkg": "1.0.0", "other": "1.0.0"},
            "scopedRegistries": [{"name": "r", "url": URL, "scopes": ["pkg"]}],
        })

        removed = remove_packages_from_project(project, ["pkg"])

        assert removed == [RemovedPackage("pkg", "1.0.0")]
        assert json.loads(read_manifest(project)) == {"dependencies": {"other": "1.0.0"}}

    def test_not_found_leaves_file_byte_for_byte(self, make_project, read_manifest):
        raw = '{ "dependencies": {"other": "1.0.0"} }'
        project = make_project(raw_manifest=raw)

        with pytest.raises(PackumentNotFoundError):
            remove_packages_from_project(project, ["pkg"])

        assert read_manifest(project) == raw
