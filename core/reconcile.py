"""Reconcile a scaffolded composer.json with an existing project's manifest."""

import copy
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from . import extra as extra_rules
from .composer import DEFAULT_TIMEOUT, Composer
from .errors import MigrationError
from .git import Git
from .manifest import drupal_core_dependencies, missing_packages, normalize_packages
from .models import ContribProject, Dependency, Failure, PhaseResult, ReconcileReport

logger = logging.getLogger(__name__)

MIGRATED_NOTICE = (
    "Composer require and require-dev sections have been migrated. "
    "Look at the logs for any errors in the process."
)
MANUAL_SECTIONS_NOTICE = (
    "Please note that other composer.json sections: repositories, config, extra, etc. "
    "should be manually migrated if needed."
)
NO_EXTRA_NOTICE = "No extra composer configuration found."
EXTRA_COMMIT_MESSAGE = "Copy extra composer configuration."


class ManifestReconciler:
    """Migrates dependencies and extra configuration into a Composer project.

    Every meaningful change to the target project is committed on its own so
    the resulting history can be audited step by step. Failures to add a
    dependency are logged and recorded in the returned report; they never
    stop the pass.
    """

    def __init__(
        self,
        composer_binary: str = "composer",
        git_binary: str = "git",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.composer_binary = composer_binary
        self.git_binary = git_binary
        self.timeout = timeout
        self._source: dict[str, Any] = {}
        self._composer: Composer | None = None
        self._git: Git | None = None

    def reconcile(
        self,
        source_manifest: dict[str, Any],
        project_path: str | Path,
        contrib_projects: Iterable[Any] = (),
        library_projects: Iterable[Any] = (),
    ) -> ReconcileReport:
        """Run a full reconciliation pass.

        Args:
            source_manifest: Parsed composer.json of the site being converted
            project_path: Directory of the scaffolded Composer project
            contrib_projects: Drupal contrib projects as ``{name, version}``
            library_projects: Package names or ``{package, version, is_dev}`` records

        Returns:
            Report with one PhaseResult per step

        Raises:
            ConfigurationError: If the target composer.json is missing or cannot
                be read or written
        """
        logger.info("Migrating Composer project components...")

        # Validate inputs before touching the project.
        contrib = [ContribProject.coerce(entry) for entry in contrib_projects]
        libraries = normalize_packages(library_projects)

        self._source = copy.deepcopy(source_manifest)
        self._composer = Composer(project_path, binary=self.composer_binary, timeout=self.timeout)
        self._git = Git(project_path, binary=self.git_binary)

        report = ReconcileReport()
        report.phases.append(self._copy_minimum_stability())
        report.phases.append(self._add_drupal_core_packages())
        report.phases.append(self._add_contrib_packages(contrib))
        report.phases.append(self._add_packages("libraries", libraries))

        missing = missing_packages(self._source, self._composer.read_manifest())
        report.phases.append(self._add_packages("missing-packages", missing))

        logger.info(MIGRATED_NOTICE)
        logger.info(MANUAL_SECTIONS_NOTICE)

        report.phases.append(self._copy_extra_configuration())
        return report

    def _commit_if_dirty(self, message: str, result: PhaseResult) -> bool:
        if not self._git.is_anything_to_commit():
            return False
        self._git.commit(message)
        result.commits.append(message)
        return True

    def _persist(self, current: dict[str, Any], updated: dict[str, Any]) -> bool:
        if updated == current:
            return False
        self._composer.write_manifest(updated)
        return True

    def _copy_minimum_stability(self) -> PhaseResult:
        result = PhaseResult("minimum-stability")
        if "minimum-stability" not in self._source:
            return result

        current = self._composer.read_manifest()
        updated = copy.deepcopy(current)
        updated["minimum-stability"] = self._source["minimum-stability"]
        if self._persist(current, updated):
            self._commit_if_dirty("Copy minimum-stability setting", result)
            logger.info("minimum-stability set to %s", updated["minimum-stability"])
        return result

    def _add_drupal_core_packages(self) -> PhaseResult:
        result = PhaseResult("drupal-core")
        try:
            for dependency in drupal_core_dependencies(self._source):
                options = ["--no-update"]
                if dependency.is_dev:
                    options.append("--dev")
                self._composer.require(dependency.package, dependency.version, *options)

                message = f"Add {dependency.package} ({dependency.version}) project to Composer"
                if self._commit_if_dirty(message, result):
                    result.added.append(dependency.package)
                    logger.info("%s (%s) is added", dependency.package, dependency.version)

            self._composer.install("--no-dev")
            self._commit_if_dirty("Install composer packages", result)
        except MigrationError as e:
            logger.warning("Failed adding and/or installing Drupal dependencies: %s", e)
            result.failures.append(Failure("drupal-core", str(e)))
        return result

    def _add_contrib_packages(self, projects: list[ContribProject]) -> PhaseResult:
        result = PhaseResult("drupal-contrib")
        for project in projects:
            package, constraint = project.package, project.constraint
            try:
                self._composer.require(package, constraint)
                self._commit_if_dirty(f"Add {package} ({constraint}) project to Composer", result)
            except MigrationError as e:
                logger.warning("Failed adding %s (%s) composer package: %s", package, constraint, e)
                result.failures.append(Failure(package, str(e)))
                continue

            result.added.append(package)
            logger.info("%s (%s) is added", package, constraint)
        return result

    def _add_packages(self, phase: str, dependencies: list[Dependency]) -> PhaseResult:
        result = PhaseResult(phase)
        seen = set()
        for dependency in dependencies:
            if dependency.package in seen:
                continue
            seen.add(dependency.package)

            options = ["--dev"] if dependency.is_dev else []
            options += ["-n", "-W"]
            try:
                self._composer.require(dependency.package, dependency.version, *options)
                self._commit_if_dirty(f"Add {dependency.package} project to Composer", result)
            except MigrationError as e:
                logger.warning("Failed adding %s composer package: %s", dependency.package, e)
                result.failures.append(Failure(dependency.package, str(e)))
                continue

            result.added.append(dependency.package)
            logger.info("%s is added", dependency.package)
        return result

    def _copy_extra_configuration(self) -> PhaseResult:
        result = PhaseResult("extra-configuration")
        changed = False

        current = self._composer.read_manifest()
        updated, warnings = extra_rules.copy_patches_configuration(self._source, current)
        for warning in warnings:
            logger.warning(warning)
            result.notes.append(warning)
        if self._persist(current, updated):
            changed = True
            result.added.append(extra_rules.PATCHES_PACKAGE)
            self._commit_if_dirty(f"Copy {extra_rules.PATCHES_PACKAGE} configuration", result)
            logger.info("%s configuration is copied", extra_rules.PATCHES_PACKAGE)

        current = self._composer.read_manifest()
        updated = extra_rules.copy_installers_extender_configuration(self._source, current)
        if self._persist(current, updated):
            changed = True
            result.added.append(extra_rules.INSTALLERS_EXTENDER_PACKAGE)
            self._commit_if_dirty(f"Copy {extra_rules.INSTALLERS_EXTENDER_PACKAGE} configuration", result)
            logger.info("%s configuration is copied", extra_rules.INSTALLERS_EXTENDER_PACKAGE)

        current = self._composer.read_manifest()
        updated = extra_rules.merge_installer_paths(self._source, current)
        if self._persist(current, updated):
            changed = True
            result.added.append("installer-paths")
            self._commit_if_dirty("Copy composer/installers paths configuration", result)
            logger.info("composer/installers paths configuration is copied")

        if self._commit_if_dirty(EXTRA_COMMIT_MESSAGE, result):
            changed = True
        if not changed:
            logger.info(NO_EXTRA_NOTICE)
            result.notes.append(NO_EXTRA_NOTICE)
        return result
