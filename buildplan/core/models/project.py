"""
Project model — the build root and the subprojects it includes.

Loaded from buildplan.yml, BuildConfig is the canonical, immutable
description of one build. It is constructed once per invocation and
handed explicitly to every resolution step.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from buildplan.core.models.plugin import PluginDeclaration
from buildplan.core.models.repository import RepositoryDeclaration, ResolutionMode


def _strip_project_path(value: Any) -> Any:
    """':app' and 'app' name the same project."""
    if isinstance(value, str):
        return value.strip().lstrip(":")
    return value


class ProjectNode(BaseModel):
    """An included subproject.

    ``output_dir`` is empty until the layout resolver has run.
    ``repositories`` are the project's own declarations; whether they are
    used depends on the build's resolution mode.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    output_dir: Path | None = None
    evaluation_depends_on: frozenset[str] = frozenset()
    repositories: tuple[RepositoryDeclaration, ...] = ()

    @field_validator("name", mode="before")
    @classmethod
    def _normalize_name(cls, value: Any) -> Any:
        return _strip_project_path(value)

    @field_validator("evaluation_depends_on", mode="before")
    @classmethod
    def _normalize_deps(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(_strip_project_path(v) for v in value)
        return value


class BuildConfig(BaseModel):
    """Root build description — loaded from buildplan.yml.

    ``build_dir`` is relative to ``root_dir`` unless absolute; the
    default places build output in a sibling of the configuration root.
    """

    model_config = ConfigDict(frozen=True)

    root_dir: Path
    build_dir: str = "../build"

    projects: tuple[ProjectNode, ...] = ()
    # Edges added to every subproject (except the target itself)
    subprojects_evaluation_depends_on: tuple[str, ...] = ()

    plugin_repositories: tuple[RepositoryDeclaration, ...] = ()
    dependency_repositories: tuple[RepositoryDeclaration, ...] = ()
    resolution_mode: ResolutionMode = ResolutionMode.PREFER_SETTINGS
    plugins: tuple[PluginDeclaration, ...] = ()

    properties_file: str = "local.properties"
    sdk_key: str = "flutter.sdk"
    include_build: str = "{sdk}/packages/flutter_tools/gradle"

    @field_validator("subprojects_evaluation_depends_on", mode="before")
    @classmethod
    def _normalize_blanket_deps(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            return [_strip_project_path(v) for v in value]
        return value

    @model_validator(mode="after")
    def _check_unique_names(self) -> "BuildConfig":
        names = [p.name for p in self.projects]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate project names: {', '.join(dupes)}")
        return self

    @property
    def project_names(self) -> list[str]:
        return [p.name for p in self.projects]

    def get_project(self, name: str) -> ProjectNode | None:
        """Look up an included project by name."""
        for project in self.projects:
            if project.name == name:
                return project
        return None

    def evaluation_edges(self) -> dict[str, set[str]]:
        """Effective evaluation dependencies per project.

        Combines each project's own edges with the blanket
        ``subprojects_evaluation_depends_on`` edges. A blanket edge never
        points a project at itself.
        """
        edges: dict[str, set[str]] = {}
        for project in self.projects:
            deps = set(project.evaluation_depends_on)
            deps.update(d for d in self.subprojects_evaluation_depends_on if d != project.name)
            edges[project.name] = deps
        return edges
