"""composer.json helpers: loading, Drupal core packages and package diffs."""

import json
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .composer import MANIFEST_FILENAME
from .errors import ConfigurationError
from .models import Dependency

DEFAULT_CORE_CONSTRAINT = "^8.9"
REQUIRE_SECTIONS = ("require", "require-dev")

# Leading non-digit characters followed by a 9, e.g. "^9.1", "~9", "9.0.0"
_MAJOR_NINE = re.compile(r"^[^0-9]*9")


def load_manifest(path: str | Path) -> dict[str, Any]:
    """Load a composer.json file, or the one inside a project directory.

    Args:
        path: Path to composer.json or to its directory

    Returns:
        Parsed manifest mapping

    Raises:
        ConfigurationError: If the file is missing or not a JSON object
    """
    manifest_path = Path(path)
    if manifest_path.is_dir():
        manifest_path = manifest_path / MANIFEST_FILENAME

    if not manifest_path.is_file():
        raise ConfigurationError(f"{MANIFEST_FILENAME} file not found at {manifest_path}.")

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed reading {manifest_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"{manifest_path} must contain a JSON object")
    return data


def section(manifest: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a mapping section, treating absent or empty-list sections as empty."""
    value = manifest.get(name)
    return value if isinstance(value, dict) else {}


def requires_package(manifest: dict[str, Any], package: str) -> bool:
    """Check whether a package is declared in require or require-dev."""
    return any(package in section(manifest, name) for name in REQUIRE_SECTIONS)


def core_constraint(source: dict[str, Any]) -> str:
    require = section(source, "require")
    return (
        require.get("drupal/core-recommended")
        or require.get("drupal/core")
        or DEFAULT_CORE_CONSTRAINT
    )


def integrations_constraint(drupal_constraint: str) -> str:
    """Pick the pantheon-systems/drupal-integrations constraint for a core constraint."""
    return "^9" if _MAJOR_NINE.match(drupal_constraint) else "^8"


def drupal_core_dependencies(source: dict[str, Any]) -> list[Dependency]:
    """Return the Drupal core packages every converted site needs."""
    constraint = core_constraint(source)
    return [
        Dependency("drupal/core-recommended", constraint),
        Dependency("pantheon-systems/drupal-integrations", integrations_constraint(constraint)),
        Dependency("drupal/core-dev", constraint, is_dev=True),
    ]


def missing_packages(source: dict[str, Any], target: dict[str, Any]) -> list[Dependency]:
    """List source packages that the target does not declare in the same section."""
    missing = []
    for name in REQUIRE_SECTIONS:
        current = section(target, name)
        for package, version in section(source, name).items():
            if package in current:
                continue
            missing.append(Dependency(package, version, is_dev=name != "require"))
    return missing


def normalize_packages(entries: Iterable[Any] | None) -> list[Dependency]:
    """Resolve bare names and records into Dependency objects."""
    return [Dependency.coerce(entry) for entry in entries or []]


def parse_package_spec(spec: str, is_dev: bool = False) -> Dependency:
    """Parse a CLI package argument such as ``vendor/name`` or ``vendor/name:^1.2``."""
    package, _, version = spec.partition(":")
    package = package.strip()
    if not package:
        raise ValueError(f"Invalid package spec: {spec!r}")
    return Dependency(package, version.strip() or None, is_dev=is_dev)
