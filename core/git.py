"""Git client used to commit each migration step."""

import logging
import subprocess
from pathlib import Path

from .errors import VersionControlError

logger = logging.getLogger(__name__)


class Git:
    """Minimal git wrapper bound to a working tree."""

    def __init__(self, working_directory: str | Path, binary: str = "git", timeout: float = 60.0):
        self.working_directory = Path(working_directory)
        self.binary = binary
        self.timeout = timeout

    def is_anything_to_commit(self) -> bool:
        """Return True when the working tree has uncommitted changes."""
        output = self._execute(["status", "--porcelain"])
        return bool(output.strip())

    def commit(self, message: str) -> None:
        """Stage every change and commit it."""
        self._execute(["add", "-A"])
        self._execute(["commit", "-m", message])
        logger.debug("Committed: %s", message)

    def _execute(self, arguments: list[str]) -> str:
        command = [self.binary, *arguments]
        logger.debug("Running %s in %s", " ".join(command), self.working_directory)

        try:
            result = subprocess.run(
                command,
                cwd=self.working_directory,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip() or str(e)
            raise VersionControlError(f"Failed executing Git command: {detail}")
        except (subprocess.TimeoutExpired, OSError) as e:
            raise VersionControlError(f"Failed executing Git command: {e}")

        return result.stdout
