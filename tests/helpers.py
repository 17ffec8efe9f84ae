"""Helpers shared by the test suite."""

import json
from pathlib import Path


def write_manifest(path: Path, data: dict) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    manifest = path / "composer.json"
    manifest.write_text(json.dumps(data, indent=4) + "\n")
    return manifest


def read_manifest(path: Path) -> dict:
    return json.loads((path / "composer.json").read_text())
