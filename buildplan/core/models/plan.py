"""
Plan models — the outputs of a build configuration pass.

BuildLayout comes from the layout resolver, DependencyPlan from the
dependency planner; BuildPlan merges both and is what the executor
consumes. All three are frozen once built, mappings included.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Any, Mapping

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

from buildplan.core.models.plugin import PluginDeclaration
from buildplan.core.models.project import ProjectNode
from buildplan.core.models.repository import RepositoryDeclaration, ResolutionMode


def _read_only(value: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))


PathMap = Annotated[
    Mapping[str, Path],
    AfterValidator(_read_only),
    PlainSerializer(lambda value: dict(value)),
]
RepositoryMap = Annotated[
    Mapping[str, tuple[RepositoryDeclaration, ...]],
    AfterValidator(_read_only),
    PlainSerializer(lambda value: dict(value)),
]


class BuildLayout(BaseModel):
    """Resolved output directories."""

    model_config = ConfigDict(frozen=True)

    config_root: Path
    root: Path
    output_dirs: PathMap = Field(default_factory=dict)

    def output_dir(self, name: str) -> Path | None:
        return self.output_dirs.get(name.lstrip(":"))


class DependencyPlan(BaseModel):
    """Resolved repositories, plugins and evaluation order."""

    model_config = ConfigDict(frozen=True)

    sdk_path: str
    external_builds: tuple[str, ...] = ()
    resolution_mode: ResolutionMode = ResolutionMode.PREFER_SETTINGS
    plugin_repositories: tuple[RepositoryDeclaration, ...] = ()
    dependency_repositories: tuple[RepositoryDeclaration, ...] = ()
    project_repositories: RepositoryMap = Field(default_factory=dict)
    plugins: tuple[PluginDeclaration, ...] = ()
    evaluation_order: tuple[str, ...] = ()


class BuildPlan(BaseModel):
    """The effective build plan for one invocation.

    Never persisted; discarded when the invocation ends.
    """

    model_config = ConfigDict(frozen=True)

    root_output_dir: Path
    output_dirs: PathMap = Field(default_factory=dict)
    projects: tuple[ProjectNode, ...] = ()

    plugin_repositories: tuple[RepositoryDeclaration, ...] = ()
    dependency_repositories: tuple[RepositoryDeclaration, ...] = ()
    project_repositories: RepositoryMap = Field(default_factory=dict)
    resolution_mode: ResolutionMode = ResolutionMode.PREFER_SETTINGS
    plugins: tuple[PluginDeclaration, ...] = ()

    evaluation_order: tuple[str, ...] = ()
    sdk_path: str = ""
    external_builds: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "root_output_dir": str(self.root_output_dir),
            "output_dirs": {name: str(path) for name, path in self.output_dirs.items()},
            "evaluation_order": list(self.evaluation_order),
            "resolution_mode": self.resolution_mode.value,
            "plugin_repositories": [r.model_dump(mode="json") for r in self.plugin_repositories],
            "dependency_repositories": [
                r.model_dump(mode="json") for r in self.dependency_repositories
            ],
            "project_repositories": {
                name: [r.model_dump(mode="json") for r in repos]
                for name, repos in self.project_repositories.items()
            },
            "plugins": [p.model_dump(mode="json") for p in self.plugins],
            "sdk_path": self.sdk_path,
            "external_builds": list(self.external_builds),
        }
