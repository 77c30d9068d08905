"""End-to-end tests of the command line handlers with a fake registry."""

import json
import logging
from unittest.mock import patch

import pytest

from openupm.args import parse_args
from openupm.cli import main

PRIMARY_URL = "https://registry.example.com"
UPSTREAM_URL = "https://packages.unity.com"


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    for name in ("OPENUPM_REGISTRY", "OPENUPM_UPSTREAM", "OPENUPM_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OPENUPM_CONFIG", str(tmp_path / "no-config.yaml"))


@pytest.fixture
def run(fake_registry, caplog):
    """Run the CLI against a project with the fake registry and no built-ins."""
    caplog.set_level(logging.INFO)

    def _run(project, *argv):
        with patch("openupm.cli.fetch_packument", fake_registry), \
                patch("openupm.cli.find_builtin_packages", return_value=[]):
            return main(["--chdir", project, "--registry", PRIMARY_URL, *argv])

    return _run


class TestArgs:
    def test_add_flags(self):
        args = parse_args(["add", "a", "b@1.0.0", "--force", "--test"])
        assert (args.COMMAND, args.PACKAGES, args.FORCE, args.TEST) == ("add", ["a", "b@1.0.0"], True, True)

    def test_rm_alias(self):
        assert parse_args(["rm", "a"]).COMMAND == "remove"

    def test_view_alias(self):
        assert parse_args(["v", "a"]).COMMAND == "view"

    def test_deps_deep(self):
        args = parse_args(["deps", "a", "--deep"])
        assert (args.PACKAGE, args.DEEP) == ("a", True)

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestAddCommand:
    def test_add(self, fake_registry, make_project, read_manifest, run, caplog):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0", {"dep": "1.0.0"})
        fake_registry.publish(PRIMARY_URL, "dep", "1.0.0", unity="2022.2")
        project = make_project()

        assert run(project, "add", "pkg") == 0

        assert json.loads(read_manifest(project)) == {
            "dependencies": {"pkg": "1.0.0"},
            "scopedRegistries": [
                {"name": "registry.example.com", "url": PRIMARY_URL, "scopes": ["dep", "pkg"]},
            ],
        }
        assert "added pkg@1.0.0" in caplog.text

    def test_existing(self, fake_registry, make_project, run, caplog):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0")
        project = make_project({
            "dependencies": {"pkg": "1.0.0"},
            "scopedRegistries": [{"name": "r", "url": PRIMARY_URL, "scopes": ["pkg"]}],
        })

        assert run(project, "add", "pkg") == 0
        assert "existed pkg@1.0.0" in caplog.text

    def test_invalid_reference(self, make_project, read_manifest, run):
        project = make_project()
        before = read_manifest(project)

        assert run(project, "add", "Not.Valid") == 1
        assert read_manifest(project) == before

    def test_unresolved_dependency_suggests_force(self, fake_registry, make_project, read_manifest, run, caplog):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0", {"missing": "1.0.0"})
        project = make_project()
        before = read_manifest(project)

        assert run(project, "add", "pkg") == 1

        assert read_manifest(project) == before
        assert 'Failed to resolve dependency "missing@1.0.0"' in caplog.text
        assert "--force" in caplog.text

    def test_force(self, fake_registry, make_project, read_manifest, run):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0", {"missing": "1.0.0"})
        project = make_project()

        assert run(project, "add", "pkg", "--force") == 0
        assert json.loads(read_manifest(project))["dependencies"] == {"pkg": "1.0.0"}

    def test_missing_project_version(self, fake_registry, make_project, run):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0")
        project = make_project(editor_version=None)

        assert run(project, "add", "pkg") == 1


class TestRemoveCommand:
    def test_remove(self, make_project, read_manifest, run, caplog):
        project = make_project({
            "dependencies": {"pkg": "1.0.0"},
            "scopedRegistries": [{"name": "r", "url": PRIMARY_URL, "scopes": ["pkg"]}],
        })

        assert run(project, "remove", "pkg") == 0

        assert json.loads(read_manifest(project)) == {"dependencies": {}}
        assert "removed pkg@1.0.0" in caplog.text

    def test_version_is_rejected(self, make_project, run, caplog):
        project = make_project({"dependencies": {"pkg": "1.0.0"}})

        assert run(project, "remove", "pkg@1.0.0") == 1
        assert "do not specify a version" in caplog.text

    def test_missing_package(self, make_project, read_manifest, run):
        project = make_project({"dependencies": {"other": "1.0.0"}})
        before = read_manifest(project)

        assert run(project, "remove", "pkg") == 1
        assert read_manifest(project) == before


class TestDepsCommand:
    def test_shallow(self, fake_registry, make_project, run, caplog):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0", {"dep": "1.0.0"})
        fake_registry.publish(PRIMARY_URL, "dep", "1.0.0", {"deeper": "1.0.0"})

        assert run(make_project(), "deps", "pkg") == 0

        assert "pkg@1.0.0" in caplog.text
        assert "└─ dep@1.0.0" in caplog.text
        assert "deeper" not in caplog.text

    def test_deep_with_upstream_dependency(self, fake_registry, make_project, run, caplog):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0", {"com.unity.dep": "1.0.0"})
        fake_registry.publish(UPSTREAM_URL, "com.unity.dep", "1.0.0")

        assert run(make_project(editor_version=None), "deps", "pkg", "--deep") == 0

        assert "└─ com.unity.dep@1.0.0 [upstream]" in caplog.text

    def test_latest_comes_from_first_registry_with_package(self, fake_registry, make_project, run):
        fake_registry.publish(UPSTREAM_URL, "com.unity.pkg", "2.0.0")

        assert run(make_project(), "deps", "com.unity.pkg") == 0
        assert fake_registry.calls_for("com.unity.pkg")[:2] == [PRIMARY_URL, UPSTREAM_URL]

    def test_unknown_package(self, make_project, run):
        assert run(make_project(), "deps", "pkg") == 1

    def test_url_version(self, make_project, run):
        assert run(make_project(), "deps", "pkg@https://github.com/owner/repo.git") == 1

    def test_unreadable_builtin_packages(self, fake_registry, make_project, read_manifest, caplog):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0", {"com.unity.ugui": "1.0.0"})
        project = make_project()
        before = read_manifest(project)

        def _denied(path):
            raise PermissionError(13, "Permission denied", path)

        with patch("openupm.cli.fetch_packument", fake_registry), \
                patch("openupm.project.builtin_packages.get_editor_install_path", return_value=project), \
                patch("openupm.project.builtin_packages.os.listdir", side_effect=_denied):
            exit_code = main(["--chdir", project, "--registry", PRIMARY_URL, "add", "pkg"])

        assert exit_code == 1
        assert "Permission denied" in caplog.text
        assert read_manifest(project) == before


class TestViewCommand:
    def test_view(self, fake_registry, make_project, run, caplog):
        fake_registry.publish(PRIMARY_URL, "pkg", "1.0.0", license="MIT")

        assert run(make_project(), "view", "pkg") == 0

        assert "pkg@1.0.0 | MIT | versions: 1" in caplog.text
        assert fake_registry.calls_for("pkg") == [PRIMARY_URL]

    def test_falls_back_to_upstream(self, fake_registry, make_project, run, caplog):
        fake_registry.publish(UPSTREAM_URL, "com.unity.pkg", "2.0.0")

        assert run(make_project(), "v", "com.unity.pkg") == 0

        assert "com.unity.pkg@2.0.0" in caplog.text
        assert fake_registry.calls_for("com.unity.pkg") == [PRIMARY_URL, UPSTREAM_URL]

    def test_no_upstream(self, fake_registry, make_project, run):
        fake_registry.publish(UPSTREAM_URL, "com.unity.pkg", "2.0.0")

        assert run(make_project(), "--no-upstream", "view", "com.unity.pkg") == 1
        assert fake_registry.calls_for("com.unity.pkg") == [PRIMARY_URL]

    def test_version_is_rejected(self, fake_registry, make_project, run, caplog):
        assert run(make_project(), "view", "pkg@1.0.0") == 1
        assert "do not specify a version" in caplog.text
        assert fake_registry.calls == []
