"""
Repository model — where artifacts and plugins are resolved from.

Repositories are tried in declaration order, so the list order of
declarations is significant and must survive every transformation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class RepositoryKind(str, Enum):
    """Well-known registries plus the custom-URL escape hatch."""

    google = "google"
    maven_central = "mavenCentral"
    gradle_plugin_portal = "gradlePluginPortal"
    maven = "maven"  # custom URL


class ResolutionMode(str, Enum):
    """Whether central or per-project repository declarations win."""

    PREFER_SETTINGS = "PREFER_SETTINGS"
    PREFER_PROJECT = "PREFER_PROJECT"


class RepositoryDeclaration(BaseModel):
    """A single repository entry.

    Accepts the short forms used in buildplan.yml as well as the
    explicit mapping:

        - google
        - maven: https://jitpack.io
        - kind: maven
          url: https://jitpack.io
    """

    model_config = ConfigDict(frozen=True)

    kind: RepositoryKind
    url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _expand_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"kind": data}
        if isinstance(data, dict) and "kind" not in data and len(data) == 1:
            kind, url = next(iter(data.items()))
            return {"kind": kind, "url": url}
        return data

    @model_validator(mode="after")
    def _check_url(self) -> "RepositoryDeclaration":
        if self.kind is RepositoryKind.maven:
            if not self.url or not self.url.strip():
                raise ValueError("custom 'maven' repository requires a url")
        elif self.url is not None:
            raise ValueError(f"repository '{self.kind.value}' does not take a url")
        return self

    @property
    def key(self) -> tuple[str, str | None]:
        """Identity used for deduplication."""
        return (self.kind.value, self.url)

    def describe(self) -> str:
        if self.url:
            return f"{self.kind.value}({self.url})"
        return f"{self.kind.value}()"
