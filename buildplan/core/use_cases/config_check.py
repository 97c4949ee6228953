"""
Config check use case — validate buildplan.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from buildplan.core.config.loader import find_build_file, load_build_config
from buildplan.core.config.properties import load_properties
from buildplan.core.engine.layout import resolve_layout
from buildplan.core.engine.planner import (
    evaluation_order,
    resolve_sdk_path,
    validate_plugins,
)
from buildplan.core.errors import ConfigError
from buildplan.core.models.project import BuildConfig
from buildplan.core.models.repository import ResolutionMode


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: BuildConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "project_count": len(self.config.projects) if self.config else 0,
            "plugin_count": len(self.config.plugins) if self.config else 0,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate build configuration and report issues.

    Unlike a resolve, every check runs so that all problems are
    reported at once.

    Args:
        config_path: Optional explicit path to buildplan.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_build_file()
    if config_path is None:
        result.errors.append("No buildplan.yml found.")
        return result
    result.config_path = config_path

    try:
        config = load_build_config(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Semantic checks
    if not config.projects:
        result.warnings.append("No projects included. The build has nothing to configure.")

    if not config.dependency_repositories:
        result.warnings.append("No dependency repositories declared.")

    if config.resolution_mode is ResolutionMode.PREFER_SETTINGS:
        for project in config.projects:
            if project.repositories:
                result.warnings.append(
                    f"Project '{project.name}' declares repositories that "
                    f"{config.resolution_mode.value} will ignore."
                )

    for check in (
        lambda: resolve_layout(config.root_dir, config.build_dir, config.project_names),
        lambda: validate_plugins(config.plugins),
        lambda: evaluation_order(config.evaluation_edges()),
        lambda: resolve_sdk_path(
            load_properties(config.root_dir / config.properties_file),
            config.sdk_key,
            source=config.properties_file,
        ),
    ):
        try:
            check()
        except ConfigError as e:
            result.errors.append(str(e))

    result.valid = len(result.errors) == 0
    return result
