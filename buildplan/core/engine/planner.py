"""
Dependency resolution planner — repositories, plugins, SDK and evaluation order.

Flow:
    SDK path → include external build → repositories per scope
    → plugins → evaluation order → per-project repositories

The SDK path is resolved first so that a missing key aborts the pass
before anything else is resolved. Every step except the external build
inclusion is a pure function over declarations.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Mapping, Protocol, Sequence

from buildplan.core.errors import (
    ConfigError,
    CyclicDependencyError,
    InvalidPluginDeclarationError,
    MissingConfigurationError,
)
from buildplan.core.models.plan import DependencyPlan
from buildplan.core.models.plugin import PluginDeclaration
from buildplan.core.models.project import BuildConfig
from buildplan.core.models.repository import RepositoryDeclaration, ResolutionMode

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s")


class ExternalBuildIncluder(Protocol):
    """Collaborator that wires an external build into the executor."""

    def include_external_build(self, path: str) -> None: ...


class RecordingIncluder:
    """Default includer: remembers the paths for the executor to pick up."""

    def __init__(self) -> None:
        self.included: list[str] = []

    def include_external_build(self, path: str) -> None:
        if path not in self.included:
            self.included.append(path)


# ── Repositories ────────────────────────────────────────────────


def dedupe_repositories(
    repositories: Iterable[RepositoryDeclaration],
) -> tuple[RepositoryDeclaration, ...]:
    """Drop repeated (kind, url) pairs, keeping the first occurrence."""
    seen: set[tuple[str, str | None]] = set()
    result: list[RepositoryDeclaration] = []
    for repo in repositories:
        if repo.key in seen:
            logger.debug("Dropping duplicate repository %s", repo.describe())
            continue
        seen.add(repo.key)
        result.append(repo)
    return tuple(result)


def effective_project_repositories(
    mode: ResolutionMode,
    settings_repositories: Sequence[RepositoryDeclaration],
    project_repositories: Sequence[RepositoryDeclaration],
    project_name: str = "",
) -> tuple[RepositoryDeclaration, ...]:
    """Repositories a single project resolves dependencies from.

    PREFER_SETTINGS: the central list wins; project declarations are ignored.
    PREFER_PROJECT: the project's own list wins when it declares one.
    """
    if mode is ResolutionMode.PREFER_PROJECT and project_repositories:
        return dedupe_repositories(project_repositories)

    if mode is ResolutionMode.PREFER_SETTINGS and project_repositories:
        logger.warning(
            "Project '%s' declares repositories but resolution mode is %s; "
            "using the central repositories",
            project_name,
            mode.value,
        )
    return dedupe_repositories(settings_repositories)


# ── Plugins ─────────────────────────────────────────────────────


def validate_plugins(
    plugins: Iterable[PluginDeclaration],
) -> tuple[PluginDeclaration, ...]:
    """Validate plugin declarations and drop repeated (id, version) pairs.

    Raises:
        InvalidPluginDeclarationError: On an empty id, a malformed version,
            or the same id declared with two different versions.
    """
    seen: set[tuple[str, str | None]] = set()
    versions: dict[str, str | None] = {}
    result: list[PluginDeclaration] = []

    for plugin in plugins:
        if not plugin.id or not plugin.id.strip():
            raise InvalidPluginDeclarationError(plugin.id, "plugin id is empty")
        if _WHITESPACE_RE.search(plugin.id):
            raise InvalidPluginDeclarationError(plugin.id, "plugin id contains whitespace")
        if plugin.version is not None:
            if not plugin.version:
                raise InvalidPluginDeclarationError(plugin.id, "version is empty")
            if _WHITESPACE_RE.search(plugin.version):
                raise InvalidPluginDeclarationError(
                    plugin.id, f"version '{plugin.version}' contains whitespace"
                )

        if plugin.key in seen:
            logger.debug("Dropping duplicate plugin %s", plugin.describe())
            continue
        if plugin.id in versions:
            raise InvalidPluginDeclarationError(
                plugin.id,
                f"declared with conflicting versions "
                f"'{versions[plugin.id]}' and '{plugin.version}'",
            )
        seen.add(plugin.key)
        versions[plugin.id] = plugin.version
        result.append(plugin)

    return tuple(result)


# ── SDK path ────────────────────────────────────────────────────


def resolve_sdk_path(
    properties: Mapping[str, str],
    key: str,
    source: str | None = None,
) -> str:
    """Read the required SDK path from a key/value source.

    Raises:
        MissingConfigurationError: If the key is absent or blank.
    """
    value = properties.get(key)
    if value is None or not value.strip():
        raise MissingConfigurationError(key, source)
    return value.strip()


def external_build_path(template: str, sdk_path: str) -> str:
    """Expand the included-build template against the SDK path."""
    return template.replace("{sdk}", sdk_path.rstrip("/\\"))


# ── Evaluation order ────────────────────────────────────────────


def evaluation_order(edges: Mapping[str, Iterable[str]]) -> tuple[str, ...]:
    """Topologically order projects so dependencies come first.

    Args:
        edges: project → projects it must be evaluated after, in
            declaration order of the projects.

    Returns:
        Project names; ties keep declaration order.

    Raises:
        ConfigError: If a project depends on an unknown project.
        CyclicDependencyError: If the edges form a cycle.
    """
    names = list(edges)
    deps = {name: set(edges[name]) for name in names}

    for name in names:
        for dep in sorted(deps[name]):
            if dep not in deps:
                raise ConfigError(f"Project '{name}' depends on unknown project '{dep}'")

    # Kahn's algorithm, picking the earliest-declared ready project
    remaining = {name: set(d) for name, d in deps.items()}
    order: list[str] = []
    while True:
        ready = next((n for n in names if n in remaining and not remaining[n]), None)
        if ready is None:
            break
        order.append(ready)
        del remaining[ready]
        for pending in remaining.values():
            pending.discard(ready)

    if remaining:
        raise CyclicDependencyError(_cycle_members(names, remaining))

    return tuple(order)


def _cycle_members(names: list[str], remaining: dict[str, set[str]]) -> list[str]:
    """Projects that sit on a cycle among the unresolved ones.

    Tarjan's strongly connected components: a component of two or more
    projects is a cycle, as is a project that depends on itself.
    Projects that only depend on a cycle, or sit between two cycles,
    are left out.
    """
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()
    members: set[str] = set()

    def visit(node: str) -> None:
        index[node] = lowlink[node] = len(index)
        stack.append(node)
        on_stack.add(node)

        for dep in sorted(remaining[node], key=names.index):
            if dep not in index:
                visit(dep)
                lowlink[node] = min(lowlink[node], lowlink[dep])
            elif dep in on_stack:
                lowlink[node] = min(lowlink[node], index[dep])

        if lowlink[node] == index[node]:
            component: list[str] = []
            while True:
                member = stack.pop()
                on_stack.discard(member)
                component.append(member)
                if member == node:
                    break
            if len(component) > 1 or node in remaining[node]:
                members.update(component)

    for name in names:
        if name in remaining and name not in index:
            visit(name)

    return [n for n in names if n in members]


# ── Planner ─────────────────────────────────────────────────────


def plan_dependencies(
    config: BuildConfig,
    properties: Mapping[str, str],
    includer: ExternalBuildIncluder | None = None,
) -> DependencyPlan:
    """Resolve everything dependency-related for a build.

    Args:
        config: The build configuration.
        properties: Key/value source holding the SDK path.
        includer: Receives the external build path. Defaults to a
            RecordingIncluder whose paths end up in the plan.

    Raises:
        MissingConfigurationError, InvalidPluginDeclarationError,
        CyclicDependencyError, ConfigError.
    """
    sdk_path = resolve_sdk_path(properties, config.sdk_key, source=config.properties_file)
    logger.debug("SDK path %s", sdk_path)

    recorder = RecordingIncluder()
    external = external_build_path(config.include_build, sdk_path)
    recorder.include_external_build(external)
    if includer is not None:
        includer.include_external_build(external)

    plugin_repos = dedupe_repositories(config.plugin_repositories)
    dependency_repos = dedupe_repositories(config.dependency_repositories)
    plugins = validate_plugins(config.plugins)

    order = evaluation_order(config.evaluation_edges())
    projects = {project.name: project for project in config.projects}

    project_repos: dict[str, tuple[RepositoryDeclaration, ...]] = {}
    for name in order:
        project = projects[name]
        logger.debug("Configuring project ':%s'", name)
        project_repos[name] = effective_project_repositories(
            config.resolution_mode,
            dependency_repos,
            project.repositories,
            project_name=name,
        )

    logger.info(
        "Planned %d plugin repos, %d dependency repos, %d plugins, %d projects",
        len(plugin_repos),
        len(dependency_repos),
        len(plugins),
        len(order),
    )
    return DependencyPlan(
        sdk_path=sdk_path,
        external_builds=tuple(recorder.included),
        resolution_mode=config.resolution_mode,
        plugin_repositories=plugin_repos,
        dependency_repositories=dependency_repos,
        project_repositories=project_repos,
        plugins=plugins,
        evaluation_order=order,
    )
