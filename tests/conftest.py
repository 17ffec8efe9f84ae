"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from core.composer import Composer
from core.errors import ExecutionError, VersionControlError
from tests.helpers import write_manifest


class ToolRecorder:
    """Stands in for the composer and git binaries.

    `composer require` edits the project's composer.json, `composer install`
    writes a composer.lock, and git tracks the files as of the last commit.
    """

    def __init__(self):
        self.composer_calls: list[list[str]] = []
        self.commits: list[str] = []
        self.failing_packages: set[str] = set()
        self.fail_install = False
        self._committed: dict[Path, str] = {}

    def snapshot(self, path: Path) -> str:
        files = [path / "composer.json", path / "composer.lock"]
        return "\n".join(f.read_text() for f in files if f.exists())

    def mark_clean(self, path: Path) -> None:
        self._committed[Path(path)] = self.snapshot(Path(path))

    def is_dirty(self, path: Path) -> bool:
        return self.snapshot(path) != self._committed.get(path)

    def commit(self, path: Path, message: str) -> None:
        if not self.is_dirty(path):
            raise VersionControlError("Failed executing Git command: nothing to commit, working tree clean")
        self.commits.append(message)
        self.mark_clean(path)

    def run_composer(self, composer: Composer, arguments: list[str]) -> None:
        self.composer_calls.append(arguments)
        operation = arguments[0]

        if operation == "require":
            package, _, version = arguments[1].partition(":")
            if package in self.failing_packages:
                raise ExecutionError(
                    f"Failed executing Composer command: Could not find a matching version of package {package}"
                )
            data = composer.read_manifest()
            section = "require-dev" if "--dev" in arguments else "require"
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][package] = version or "*"
            composer.write_manifest(data)

        elif operation == "install":
            if self.fail_install:
                raise ExecutionError("Failed executing Composer command: Your requirements could not be resolved")
            data = composer.read_manifest()
            installed = sorted(data.get("require", {}))
            (composer.working_directory / "composer.lock").write_text(json.dumps({"packages": installed}))


@pytest.fixture
def scaffold_manifest():
    """composer.json of a freshly scaffolded Pantheon Drupal project."""
    return {
        "name": "pantheon-upstreams/drupal-composer-managed",
        "type": "project",
        "require": {
            "composer/installers": "^1.9",
            "drupal/core-composer-scaffold": "^9",
        },
        "require-dev": {},
        "minimum-stability": "stable",
        "prefer-stable": True,
        "extra": {
            "installer-paths": {
                "web/core": ["type:drupal-core"],
                "web/libraries/{$name}": ["type:drupal-library"],
                "web/modules/contrib/{$name}": ["type:drupal-module"],
            },
        },
    }


@pytest.fixture
def source_manifest():
    """composer.json of the site being converted."""
    return {
        "name": "example/site",
        "require": {
            "drupal/core": "^9.2",
            "drupal/token": "^1.9",
            "cweagans/composer-patches": "^1.7",
            "oomphinc/composer-installers-extender": "^2.0",
            "npm-asset/dropzone": "^5.9",
        },
        "require-dev": {
            "drupal/devel": "^4.1",
        },
        "minimum-stability": "dev",
        "extra": {
            "patches": {
                "drupal/token": {"Fix token tree": "https://www.drupal.org/files/issues/token-tree.patch"},
            },
            "patches-file": "composer.patches.json",
            "installer-types": ["npm-asset"],
            "installer-paths": {
                "web/libraries/{$name}": ["type:drupal-library", "type:npm-asset"],
                "web/modules/contrib/{$name}": ["type:drupal-module"],
                "web/modules/custom/{$name}": ["type:drupal-custom-module"],
            },
        },
    }


@pytest.fixture
def target_project(tmp_path, scaffold_manifest):
    """A scaffolded project directory with its composer.json."""
    project = tmp_path / "project"
    write_manifest(project, scaffold_manifest)
    return project


@pytest.fixture
def tools(target_project):
    """Replace the composer and git clients used by the reconciler."""
    recorder = ToolRecorder()
    recorder.mark_clean(target_project)

    class RecordingComposer(Composer):
        def _execute(self, arguments):
            recorder.run_composer(self, arguments)

    class RecordingGit:
        def __init__(self, working_directory, binary="git", timeout=60.0):
            self.working_directory = Path(working_directory)

        def is_anything_to_commit(self):
            return recorder.is_dirty(self.working_directory)

        def commit(self, message):
            recorder.commit(self.working_directory, message)

    with patch("core.reconcile.Composer", RecordingComposer), patch("core.reconcile.Git", RecordingGit):
        yield recorder
