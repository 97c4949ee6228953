"""
Directory layout resolver — where build output goes.

The build root is made absolute against the configuration root (by
default a sibling ``build`` directory), and every subproject writes to
``<root>/<name>``. Resolution is a pure function of its inputs, so
resolving twice yields the same mapping.

The resolver also produces the "clean" task, which deletes the
resolved root. Deletion is guarded: it never touches anything that is
not the resolved root or below it.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from buildplan.core.errors import InvalidPathError
from buildplan.core.models.plan import BuildLayout

logger = logging.getLogger(__name__)


def _absolute(path: Path) -> Path:
    """Absolute path with '..' folded lexically. Symlinks are not followed."""
    return Path(os.path.abspath(path))


def resolve_root(config_root: Path | str, build_dir: Path | str) -> Path:
    """Make the build directory absolute against the configuration root.

    A symlinked build directory stays the link itself, so cleaning it
    removes the link and never the directory it points at.

    Raises:
        InvalidPathError: If the path is empty or cannot be resolved.
    """
    raw = str(build_dir)
    if not raw.strip():
        raise InvalidPathError("Build directory is empty")
    if "\x00" in raw or "\x00" in str(config_root):
        raise InvalidPathError(f"Build directory contains a NUL byte: {raw!r}")

    try:
        candidate = Path(raw).expanduser()
        if not candidate.is_absolute():
            candidate = Path(config_root).expanduser() / candidate
        root = _absolute(candidate)
    except (OSError, RuntimeError, ValueError) as e:
        raise InvalidPathError(f"Cannot make build directory absolute: {raw!r} ({e})") from e

    if not root.is_absolute():
        raise InvalidPathError(f"Cannot make build directory absolute: {raw!r}")
    return root


def _check_project_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise InvalidPathError(f"Project name '{name}' cannot be used as a directory name")


def resolve_layout(
    config_root: Path | str,
    build_dir: Path | str,
    project_names: Iterable[str],
) -> BuildLayout:
    """Resolve the build root and each project's output directory.

    Args:
        config_root: Directory holding the build configuration.
        build_dir: Build root, relative to ``config_root`` unless absolute.
        project_names: Included projects, in declaration order.

    Returns:
        BuildLayout with ``root`` and a name → ``root/name`` mapping.
    """
    root = resolve_root(config_root, build_dir)
    try:
        resolved_config_root = _absolute(Path(config_root).expanduser())
    except (OSError, RuntimeError, ValueError) as e:
        raise InvalidPathError(f"Cannot resolve configuration root {config_root!r}: {e}") from e

    output_dirs: dict[str, Path] = {}
    for name in project_names:
        name = name.lstrip(":")
        _check_project_name(name)
        output_dirs[name] = root / name

    logger.debug("Build root %s (%d project dirs)", root, len(output_dirs))
    return BuildLayout(config_root=resolved_config_root, root=root, output_dirs=output_dirs)


# ── Clean ───────────────────────────────────────────────────────


@dataclass
class CleanResult:
    """Outcome of running the clean task."""

    root: Path
    dry_run: bool = False
    deleted: list[Path] = field(default_factory=list)
    missing: list[Path] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "root": str(self.root),
            "dry_run": self.dry_run,
            "deleted": [str(p) for p in self.deleted],
            "missing": [str(p) for p in self.missing],
        }


class CleanTask:
    """Recursively delete the resolved build root.

    ``targets`` defaults to the root itself; extra targets may be given
    but each must sit inside the root.
    """

    name = "clean"

    def __init__(self, layout: BuildLayout, targets: Iterable[Path] | None = None) -> None:
        self.root = layout.root
        self.config_root = layout.config_root
        self.targets = list(targets) if targets is not None else [layout.root]

    def check(self) -> list[Path]:
        """Validate every target against the root.

        Returns:
            The resolved targets.

        Raises:
            InvalidPathError: If the root or any target is unsafe to delete.
        """
        root = self.root
        if root.parent == root:
            raise InvalidPathError(f"Refusing to clean filesystem root {root}")
        if self.config_root == root or self.config_root.is_relative_to(root):
            raise InvalidPathError(
                f"Refusing to clean {root}: it contains the build configuration"
            )

        # A symlinked root is only unlinked; otherwise the directory it
        # really is must pass the same checks
        real_root = root if root.is_symlink() else root.resolve()
        if real_root != root:
            real_config_root = self.config_root.resolve()
            if real_root.parent == real_root or real_config_root.is_relative_to(real_root):
                raise InvalidPathError(
                    f"Refusing to clean {root}: it resolves to {real_root}, "
                    f"which contains the build configuration"
                )

        resolved: list[Path] = []
        for target in self.targets:
            path = Path(target)
            if not path.is_absolute():
                path = root / path
            path = _absolute(path)
            if path != root and not path.is_relative_to(root):
                raise InvalidPathError(f"Refusing to delete {path}: outside build root {root}")
            if path != root and not path.is_symlink() and path.exists():
                real = path.resolve()
                if not real.is_relative_to(root.resolve()):
                    raise InvalidPathError(
                        f"Refusing to delete {path}: resolves to {real}, outside build root {root}"
                    )
            resolved.append(path)
        return resolved

    def run(self, dry_run: bool = False) -> CleanResult:
        """Delete the targets. All targets are checked before anything is deleted."""
        targets = self.check()
        result = CleanResult(root=self.root, dry_run=dry_run)

        for path in targets:
            if not path.exists() and not path.is_symlink():
                result.missing.append(path)
                continue
            if dry_run:
                logger.info("Would delete %s", path)
                result.deleted.append(path)
                continue

            logger.info("Deleting %s", path)
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
            result.deleted.append(path)

        return result


def register_clean(layout: BuildLayout, tasks: dict | None = None) -> CleanTask:
    """Create the clean task for a layout, adding it to ``tasks`` if given."""
    task = CleanTask(layout)
    if tasks is not None:
        tasks[task.name] = task
    return task
