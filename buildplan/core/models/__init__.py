"""
Domain models — Pydantic types for the build configuration pass.

All models are re-exported here for convenient access:

    from buildplan.core.models import BuildConfig, ProjectNode, BuildPlan
"""

from buildplan.core.models.plan import BuildLayout, BuildPlan, DependencyPlan
from buildplan.core.models.plugin import PluginDeclaration
from buildplan.core.models.project import BuildConfig, ProjectNode
from buildplan.core.models.repository import (
    RepositoryDeclaration,
    RepositoryKind,
    ResolutionMode,
)

__all__ = [
    # project.py
    "BuildConfig",
    # plan.py
    "BuildLayout",
    "BuildPlan",
    "DependencyPlan",
    # plugin.py
    "PluginDeclaration",
    "ProjectNode",
    # repository.py
    "RepositoryDeclaration",
    "RepositoryKind",
    "ResolutionMode",
]
