"""
Plugin model — a plugin id with an optional version and apply flag.

Validation of the id/version syntax lives in the planner so that a
malformed declaration surfaces as InvalidPluginDeclarationError rather
than a generic schema error.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PluginDeclaration(BaseModel):
    """A declared build plugin.

    ``apply=False`` makes the plugin (and its version) visible to
    subprojects without applying it to the root project.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    version: str | None = None
    apply: bool = True

    @property
    def key(self) -> tuple[str, str | None]:
        """Identity used for deduplication."""
        return (self.id, self.version)

    def describe(self) -> str:
        text = f'id("{self.id}")'
        if self.version is not None:
            text += f' version "{self.version}"'
        if not self.apply:
            text += " apply false"
        return text
