"""Rules for copying well-known `extra` configuration between manifests.

Each rule takes the source and target manifests and returns a new target
manifest; neither input is modified. When a rule has nothing to copy the
returned manifest is equal to the target.
"""

import copy
from typing import Any

from .manifest import requires_package, section

PATCHES_PACKAGE = "cweagans/composer-patches"
PATCHES_KEYS = (
    "patches",
    "patches-file",
    "enable-patching",
    "patches-ignore",
    "composer-exit-on-patch-failure",
)
PATCHES_FILE_WARNING = (
    f"{PATCHES_PACKAGE} patches-file option was copied, "
    "but you should manually copy the patches file."
)

INSTALLERS_EXTENDER_PACKAGE = "oomphinc/composer-installers-extender"


def _with_extra(target: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    updated = copy.deepcopy(target)
    updated["extra"] = extra
    return updated


def _unique(items: list[Any]) -> list[Any]:
    return list(dict.fromkeys(items))


def _type_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _matches_installer_types(path_types: Any, installer_types: Any) -> bool:
    # Paths usually reference custom types as "type:npm-asset".
    names = {t for t in _type_list(path_types) if isinstance(t, str)}
    names.update(t.removeprefix("type:") for t in list(names))
    return bool(names & {t for t in _type_list(installer_types) if isinstance(t, str)})


def copy_patches_configuration(
    source: dict[str, Any], target: dict[str, Any]
) -> tuple[dict[str, Any], list[str]]:
    """Copy cweagans/composer-patches settings.

    Args:
        source: Source manifest
        target: Target manifest

    Returns:
        Updated target manifest and warnings for the operator
    """
    if not requires_package(source, PATCHES_PACKAGE):
        return copy.deepcopy(target), []

    source_extra = section(source, "extra")
    present = [key for key in PATCHES_KEYS if source_extra.get(key) is not None]
    if not present:
        return copy.deepcopy(target), []

    extra = copy.deepcopy(section(target, "extra"))
    warnings = []
    for key in present:
        extra[key] = copy.deepcopy(source_extra[key])
        if key == "patches-file":
            warnings.append(PATCHES_FILE_WARNING)

    return _with_extra(target, extra), warnings


def copy_installers_extender_configuration(
    source: dict[str, Any], target: dict[str, Any]
) -> dict[str, Any]:
    """Copy oomphinc/composer-installers-extender types and their install paths."""
    source_extra = section(source, "extra")
    installer_types = source_extra.get("installer-types")
    if not requires_package(source, INSTALLERS_EXTENDER_PACKAGE) or not isinstance(installer_types, list):
        return copy.deepcopy(target)

    extra = copy.deepcopy(section(target, "extra"))
    extra["installer-types"] = copy.deepcopy(installer_types)

    installer_paths = copy.deepcopy(section(extra, "installer-paths"))
    for path, types in section(source_extra, "installer-paths").items():
        if _matches_installer_types(types, installer_types):
            installer_paths[path] = list(types)
    if installer_paths:
        extra["installer-paths"] = installer_paths

    return _with_extra(target, extra)


def merge_installer_paths(source: dict[str, Any], target: dict[str, Any]) -> dict[str, Any]:
    """Merge composer/installers paths from source into target.

    A type registered by one target path is never added to another one: new
    paths only receive unregistered types, and paths present in both get
    their own types plus the source types no other path registers.
    """
    source_paths = section(section(source, "extra"), "installer-paths")
    if not source_paths:
        return copy.deepcopy(target)

    extra = copy.deepcopy(section(target, "extra"))
    installer_paths = section(extra, "installer-paths")
    registered = {path: set(_type_list(types)) for path, types in installer_paths.items()}
    current_types = set().union(*registered.values())
    changed = False

    for path, types in source_paths.items():
        types = _type_list(types)
        if path not in installer_paths:
            kept = _unique([t for t in types if t not in current_types])
            if kept:
                installer_paths[path] = kept
                changed = True
        elif installer_paths[path] != types:
            other_types = set().union(*(t for p, t in registered.items() if p != path))
            own = _type_list(installer_paths[path])
            merged = _unique([*own, *(t for t in types if t not in other_types)])
            if merged != own:
                installer_paths[path] = merged
                changed = True

    if not changed:
        return copy.deepcopy(target)

    extra["installer-paths"] = installer_paths
    return _with_extra(target, extra)


def plan_extra(source: dict[str, Any], target: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Apply every configuration rule and return the resulting `extra` section."""
    updated, warnings = copy_patches_configuration(source, target)
    updated = copy_installers_extender_configuration(source, updated)
    updated = merge_installer_paths(source, updated)
    return section(updated, "extra"), warnings
