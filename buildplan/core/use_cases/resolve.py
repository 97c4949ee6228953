"""
Resolve use case — run the build configuration pass end to end.

Flow:
    load buildplan.yml → resolve layout → read properties
    → plan dependencies → assemble BuildPlan
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from buildplan.core.config.loader import load_build_config
from buildplan.core.config.properties import load_properties
from buildplan.core.engine.layout import CleanTask, register_clean, resolve_layout
from buildplan.core.engine.planner import ExternalBuildIncluder, plan_dependencies
from buildplan.core.errors import ConfigError
from buildplan.core.models.plan import BuildPlan
from buildplan.core.models.project import BuildConfig

logger = logging.getLogger(__name__)


@dataclass
class ResolveResult:
    """Outcome of a configuration pass."""

    config_path: Path | None = None
    config: BuildConfig | None = None
    plan: BuildPlan | None = None
    tasks: dict[str, CleanTask] = field(default_factory=dict)
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.plan is not None

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        if self.error:
            return {"error": self.error, "error_type": self.error_type}
        assert self.plan is not None
        return {
            "config_path": str(self.config_path) if self.config_path else None,
            "plan": self.plan.to_dict(),
            "tasks": sorted(self.tasks),
        }


def build_plan(
    config: BuildConfig,
    properties: dict[str, str] | None = None,
    includer: ExternalBuildIncluder | None = None,
    tasks: dict[str, CleanTask] | None = None,
) -> BuildPlan:
    """Build the plan for an already loaded configuration.

    Properties are read from ``config.properties_file`` when not given.
    Any ConfigError propagates and no plan is produced.
    """
    layout = resolve_layout(config.root_dir, config.build_dir, config.project_names)
    register_clean(layout, tasks)

    if properties is None:
        properties = load_properties(config.root_dir / config.properties_file)

    deps = plan_dependencies(config, properties, includer)

    projects = tuple(
        project.model_copy(update={"output_dir": layout.output_dirs[project.name]})
        for project in config.projects
    )
    return BuildPlan(
        root_output_dir=layout.root,
        output_dirs=dict(layout.output_dirs),
        projects=projects,
        plugin_repositories=deps.plugin_repositories,
        dependency_repositories=deps.dependency_repositories,
        project_repositories=deps.project_repositories,
        resolution_mode=deps.resolution_mode,
        plugins=deps.plugins,
        evaluation_order=deps.evaluation_order,
        sdk_path=deps.sdk_path,
        external_builds=deps.external_builds,
    )


def resolve_build(
    config_path: Path | None = None,
    includer: ExternalBuildIncluder | None = None,
) -> ResolveResult:
    """Load configuration and resolve the full build plan.

    Args:
        config_path: Optional explicit path to buildplan.yml.
        includer: Optional collaborator for the external build.

    Returns:
        ResolveResult with either a plan or an error message.
    """
    result = ResolveResult(config_path=config_path)

    try:
        config = load_build_config(config_path)
        result.config = config
        tasks: dict[str, CleanTask] = {}
        plan = build_plan(config, includer=includer, tasks=tasks)
    except ConfigError as e:
        logger.debug("Configuration pass failed: %s", e)
        result.error = str(e)
        result.error_type = type(e).__name__
        return result

    result.plan = plan
    result.tasks = tasks
    return result
