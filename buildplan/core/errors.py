"""
Error taxonomy for the build configuration pass.

Every error is fatal: it aborts the pass and no partial plan is exposed.
Nothing here is retried, configuration is deterministic.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Raised when build configuration is invalid or missing."""


class MissingConfigurationError(ConfigError):
    """A required key is absent from the property source."""

    def __init__(self, key: str, source: str | None = None) -> None:
        self.key = key
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"{key} not set{where}")


class InvalidPluginDeclarationError(ConfigError):
    """A plugin declaration has a malformed id or version."""

    def __init__(self, plugin_id: str, reason: str) -> None:
        self.plugin_id = plugin_id
        self.reason = reason
        super().__init__(f"Invalid plugin declaration '{plugin_id}': {reason}")


class CyclicDependencyError(ConfigError):
    """Evaluation-order edges between subprojects form a cycle."""

    def __init__(self, nodes: list[str]) -> None:
        self.nodes = nodes
        super().__init__(
            f"Cyclic evaluation dependency between projects: {', '.join(nodes)}"
        )


class InvalidPathError(ConfigError):
    """A path cannot be made absolute, or points outside where it must stay."""
