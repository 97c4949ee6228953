"""
Clean use case — delete the resolved build output root.

Only the layout is resolved; cleaning does not need the SDK path or
the dependency plan.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from buildplan.core.config.loader import load_build_config
from buildplan.core.engine.layout import CleanResult, register_clean, resolve_layout
from buildplan.core.errors import ConfigError


@dataclass
class CleanOutcome:
    result: CleanResult | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.result is not None
        return self.result.to_dict()


def run_clean(config_path: Path | None = None, dry_run: bool = False) -> CleanOutcome:
    """Delete the build root declared by buildplan.yml."""
    outcome = CleanOutcome()
    try:
        config = load_build_config(config_path)
        layout = resolve_layout(config.root_dir, config.build_dir, config.project_names)
        outcome.result = register_clean(layout).run(dry_run=dry_run)
    except (ConfigError, OSError) as e:
        outcome.error = str(e)
    return outcome
