"""Core data models for composer-migrate."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Dependency:
    """A single Composer package to require."""

    package: str
    version: str | None = None
    is_dev: bool = False

    @classmethod
    def coerce(cls, entry: Any) -> "Dependency":
        """Build a Dependency from a bare package name or a record.

        Args:
            entry: A package name, a mapping with ``package``, ``version`` and
                ``is_dev`` keys, or a Dependency

        Returns:
            The equivalent Dependency
        """
        if isinstance(entry, cls):
            return entry
        if isinstance(entry, str):
            return cls(package=entry)
        if isinstance(entry, dict) and entry.get("package"):
            return cls(
                package=entry["package"],
                version=entry.get("version"),
                is_dev=bool(entry.get("is_dev", False)),
            )
        raise ValueError(f"Invalid package entry: {entry!r}")

    @property
    def spec(self) -> str:
        """Package argument as passed to `composer require`."""
        if self.version is None:
            return self.package
        return f"{self.package}:{self.version}"


@dataclass
class ContribProject:
    """A Drupal contrib project, e.g. ``views_bulk_operations`` 3.13."""

    name: str
    version: str

    @property
    def package(self) -> str:
        return f"drupal/{self.name}"

    @property
    def constraint(self) -> str:
        return f"^{self.version}"

    @classmethod
    def coerce(cls, entry: Any) -> "ContribProject":
        if isinstance(entry, cls):
            return entry
        if isinstance(entry, dict) and entry.get("name") and entry.get("version"):
            return cls(name=entry["name"], version=str(entry["version"]))
        if isinstance(entry, str) and ":" in entry:
            name, version = entry.split(":", 1)
            if name.strip() and version.strip():
                return cls(name=name.strip(), version=version.strip())
        raise ValueError(f"Invalid contrib project: {entry!r}")


@dataclass
class Failure:
    """A recovered failure recorded during reconciliation."""

    subject: str
    message: str


@dataclass
class PhaseResult:
    """Outcome of one reconciliation phase."""

    name: str
    added: list[str] = field(default_factory=list)
    commits: list[str] = field(default_factory=list)
    failures: list[Failure] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class ReconcileReport:
    """Report of everything a reconciliation pass did."""

    phases: list[PhaseResult] = field(default_factory=list)

    def phase(self, name: str) -> PhaseResult:
        for result in self.phases:
            if result.name == name:
                return result
        raise KeyError(name)

    @property
    def failures(self) -> list[Failure]:
        return [failure for result in self.phases for failure in result.failures]

    @property
    def commits(self) -> list[str]:
        return [message for result in self.phases for message in result.commits]

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.phases)
