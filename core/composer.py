"""Composer command-line client."""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from .errors import ConfigurationError, ExecutionError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "composer.json"
DEFAULT_TIMEOUT = 180.0


class Composer:
    """Runs Composer commands inside a project directory."""

    def __init__(
        self,
        working_directory: str | Path,
        binary: str = "composer",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            working_directory: Directory holding the project's composer.json
            binary: Composer executable
            timeout: Per-command timeout in seconds

        Raises:
            ConfigurationError: If composer.json does not exist
        """
        self.working_directory = Path(working_directory)
        if not self.manifest_path.is_file():
            raise ConfigurationError(
                f"{MANIFEST_FILENAME} file not found in {self.working_directory}."
            )
        self.binary = binary
        self.timeout = timeout

    @property
    def manifest_path(self) -> Path:
        return self.working_directory / MANIFEST_FILENAME

    def require(self, package: str, version: str | None = None, *options: str) -> None:
        """Run `composer require`.

        Args:
            package: Package name, e.g. "drupal/token"
            version: Optional version constraint
            *options: Extra command-line flags
        """
        spec = package if version is None else f"{package}:{version}"
        self._execute(["require", spec, *options])

    def install(self, *options: str) -> None:
        self._execute(["install", *options])

    def update(self, *options: str) -> None:
        self._execute(["update", *options])

    def read_manifest(self) -> dict[str, Any]:
        """Load the project's composer.json.

        Raises:
            ConfigurationError: If the file cannot be read or is not a JSON object
        """
        try:
            data = json.loads(self.manifest_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed reading {self.manifest_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"{self.manifest_path} must contain a JSON object")
        return data

    def write_manifest(self, data: dict[str, Any]) -> None:
        """Persist composer.json the way Composer formats it."""
        if not isinstance(data, dict):
            raise ConfigurationError("composer.json data must be a mapping")

        try:
            content = json.dumps(data, indent=4, ensure_ascii=False)
            self.manifest_path.write_text(content + "\n", encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Failed writing {self.manifest_path}: {e}")

    def _execute(self, arguments: list[str]) -> None:
        command = [self.binary, *arguments]
        logger.debug("Running %s in %s", " ".join(command), self.working_directory)

        try:
            subprocess.run(
                command,
                cwd=self.working_directory,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip() or str(e)
            raise ExecutionError(f"Failed executing Composer command: {detail}")
        except subprocess.TimeoutExpired as e:
            raise ExecutionError(f"Failed executing Composer command: {e}")
        except OSError as e:
            raise ExecutionError(f"Failed executing Composer command: {e}")
