"""
Configuration loader — reads buildplan.yml into a BuildConfig.

This is the primary entry point for loading build configuration.
It reads YAML, reshapes the sectioned layout into the flat model,
validates against Pydantic schemas, and returns a typed BuildConfig.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from buildplan.core.errors import ConfigError, InvalidPluginDeclarationError
from buildplan.core.models.project import BuildConfig

logger = logging.getLogger(__name__)

# Default config filename
BUILD_CONFIG_FILE = "buildplan.yml"


def find_build_file(start_dir: Path | None = None) -> Path | None:
    """Search for buildplan.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to buildplan.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / BUILD_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_build_config(path: Path | None = None) -> BuildConfig:
    """Load and validate build configuration.

    Args:
        path: Explicit path to buildplan.yml. If None, searches upward.

    Returns:
        Validated BuildConfig rooted at the file's directory.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_build_file()

    if path is None:
        raise ConfigError(f"No {BUILD_CONFIG_FILE} found. Specify one with --config.")

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    config_data = _flatten(data, root_dir=path.parent.resolve())

    try:
        config = BuildConfig.model_validate(config_data)
    except Exception as e:
        raise ConfigError(f"Invalid build configuration: {e}") from e

    logger.info(
        "Loaded build config from %s with %d projects", path, len(config.projects)
    )
    return config


def _flatten(data: dict[str, Any], root_dir: Path) -> dict[str, Any]:
    """Map the sectioned YAML layout onto BuildConfig fields.

    Layout:

        build_dir: ../build
        include: [":app"]
        projects:
          app: {evaluation_depends_on: [...], repositories: [...]}
        subprojects:
          evaluation_depends_on: [":app"]
        plugin_management:
          repositories: [...]
          properties_file: local.properties
          sdk_key: flutter.sdk
          include_build: "{sdk}/packages/flutter_tools/gradle"
        plugins: [...]
        dependency_resolution:
          mode: PREFER_SETTINGS
          repositories: [...]
    """
    plugin_mgmt = _section(data, "plugin_management")
    dep_resolution = _section(data, "dependency_resolution")
    subprojects = _section(data, "subprojects")
    project_details = _section(data, "projects")

    flat: dict[str, Any] = {"root_dir": root_dir}
    if "build_dir" in data:
        flat["build_dir"] = data["build_dir"]

    flat["projects"] = _projects(data.get("include") or [], project_details)
    if "evaluation_depends_on" in subprojects:
        flat["subprojects_evaluation_depends_on"] = subprojects["evaluation_depends_on"]

    if "repositories" in plugin_mgmt:
        flat["plugin_repositories"] = plugin_mgmt["repositories"] or []
    for key in ("properties_file", "sdk_key", "include_build"):
        if key in plugin_mgmt:
            flat[key] = plugin_mgmt[key]

    if "plugins" in data:
        flat["plugins"] = _plugins(data["plugins"] or [])

    if "repositories" in dep_resolution:
        flat["dependency_repositories"] = dep_resolution["repositories"] or []
    if "mode" in dep_resolution:
        flat["resolution_mode"] = dep_resolution["mode"]

    return flat


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Expected '{key}' to be a mapping, got {type(value).__name__}")
    return value


def _projects(include: Any, details: dict[str, Any]) -> list[dict[str, Any]]:
    """Build project entries from the include list plus per-project details."""
    if isinstance(include, str):
        include = [include]
    if not isinstance(include, list):
        raise ConfigError(f"Expected 'include' to be a list, got {type(include).__name__}")

    details = {str(k).strip().lstrip(":"): v or {} for k, v in details.items()}
    for name, value in details.items():
        if not isinstance(value, dict):
            raise ConfigError(f"Expected project '{name}' to be a mapping")

    projects: list[dict[str, Any]] = []
    seen: set[str] = set()
    for entry in include:
        name = str(entry).strip().lstrip(":")
        if name in seen:
            logger.warning("Project '%s' included more than once, ignoring repeat", name)
            continue
        seen.add(name)
        projects.append({"name": name, **details.get(name, {})})

    unknown = sorted(set(details) - seen)
    if unknown:
        raise ConfigError(
            f"Projects configured but not included: {', '.join(unknown)}"
        )
    return projects


def _plugins(entries: Any) -> list[Any]:
    """Reject plugin entries whose id or version YAML did not read as text.

    An unquoted ``version: 1.10`` arrives as the float 1.1, so numbers
    are refused rather than converted.
    """
    if not isinstance(entries, list):
        raise ConfigError(f"Expected 'plugins' to be a list, got {type(entries).__name__}")

    for entry in entries:
        if not isinstance(entry, dict):
            raise InvalidPluginDeclarationError(str(entry), "expected a mapping with an 'id'")
        plugin_id = entry.get("id")
        if plugin_id is None:
            raise InvalidPluginDeclarationError("", "plugin id is empty")
        if not isinstance(plugin_id, str):
            raise InvalidPluginDeclarationError(
                str(plugin_id), "plugin id must be a string, quote it in buildplan.yml"
            )
        version = entry.get("version")
        if version is not None and not isinstance(version, str):
            raise InvalidPluginDeclarationError(
                plugin_id, f"version {version!r} must be a string, quote it in buildplan.yml"
            )
    return entries
