"""
Tests for the directory layout resolver and the clean task.
"""

from pathlib import Path

import pytest

from buildplan.core.engine.layout import (
    CleanTask,
    register_clean,
    resolve_layout,
    resolve_root,
)
from buildplan.core.errors import InvalidPathError


class TestResolveLayout:
    """Tests for resolve_layout()."""

    def test_sibling_build_root(self, android_dir: Path):
        layout = resolve_layout(android_dir, "../build", ["app"])
        assert layout.root == (android_dir.parent / "build").resolve()
        assert layout.output_dirs == {"app": layout.root / "app"}

    def test_every_project_under_root(self, tmp_path: Path):
        names = ["app", "plugin_a", "plugin_b"]
        layout = resolve_layout(tmp_path, "out", names)
        for name in names:
            assert layout.output_dirs[name] == layout.root / name
            assert layout.output_dirs[name].parent == layout.root

    def test_idempotent(self, tmp_path: Path):
        first = resolve_layout(tmp_path, "../build", [":app", "core"])
        second = resolve_layout(tmp_path, "../build", [":app", "core"])
        assert first == second
        assert first.output_dirs == second.output_dirs

    def test_absolute_build_dir(self, tmp_path: Path):
        target = tmp_path / "elsewhere" / "build"
        layout = resolve_layout(tmp_path / "cfg", target, ["app"])
        assert layout.root == target.resolve()

    def test_relative_config_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        layout = resolve_layout("android", "../build", ["app"])
        assert layout.root.is_absolute()
        assert layout.root == (tmp_path / "build").resolve()

    def test_gradle_path_names(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, "build", [":app"])
        assert layout.output_dir(":app") == layout.root / "app"
        assert layout.output_dir("missing") is None

    def test_no_projects(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, "build", [])
        assert layout.output_dirs == {}

    @pytest.mark.parametrize("build_dir", ["", "   ", "bad\x00dir"])
    def test_unresolvable_build_dir(self, tmp_path: Path, build_dir: str):
        with pytest.raises(InvalidPathError):
            resolve_root(tmp_path, build_dir)

    @pytest.mark.parametrize("name", ["..", ".", "a/b", "a\\b"])
    def test_bad_project_name(self, tmp_path: Path, name: str):
        with pytest.raises(InvalidPathError, match="cannot be used as a directory"):
            resolve_layout(tmp_path, "build", [name])


class TestCleanTask:
    """Tests for the guarded clean operation."""

    def _populate(self, root: Path) -> None:
        (root / "app" / "intermediates").mkdir(parents=True)
        (root / "app" / "intermediates" / "classes.dex").write_text("dex")
        (root / "report.txt").write_text("report")

    def test_deletes_root_only(self, android_dir: Path):
        layout = resolve_layout(android_dir, "../build", ["app"])
        self._populate(layout.root)
        sibling = android_dir.parent / "lib"
        sibling.mkdir()
        (sibling / "main.dart").write_text("void main() {}")

        result = register_clean(layout).run()

        assert result.deleted == [layout.root]
        assert not layout.root.exists()
        assert android_dir.is_dir()
        assert (android_dir / "buildplan.yml").is_file()
        assert (sibling / "main.dart").is_file()

    def test_project_root_clean_stays_under_build(self, tmp_path: Path):
        """A clean rooted at build/app never touches build/ or its ancestors."""
        layout = resolve_layout(tmp_path / "android", "../build", ["app"])
        self._populate(layout.root)
        app_root = layout.output_dirs["app"]

        task = CleanTask(layout.model_copy(update={"root": app_root}))
        task.run()

        assert not app_root.exists()
        assert (layout.root / "report.txt").is_file()
        assert tmp_path.is_dir()

    def test_registered_in_task_map(self, tmp_path: Path):
        tasks: dict = {}
        task = register_clean(resolve_layout(tmp_path, "build", []), tasks)
        assert tasks == {"clean": task}

    def test_dry_run_keeps_files(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, "build", ["app"])
        self._populate(layout.root)
        result = register_clean(layout).run(dry_run=True)
        assert result.dry_run is True
        assert result.deleted == [layout.root]
        assert layout.root.is_dir()

    def test_missing_root_is_noop(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, "build", ["app"])
        result = register_clean(layout).run()
        assert result.deleted == []
        assert result.missing == [layout.root]

    def test_idempotent_clean(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, "build", ["app"])
        self._populate(layout.root)
        task = register_clean(layout)
        task.run()
        assert task.run().deleted == []

    def test_target_outside_root_refused(self, tmp_path: Path):
        layout = resolve_layout(tmp_path / "android", "../build", ["app"])
        self._populate(layout.root)
        outside = tmp_path / "keep"
        outside.mkdir()

        task = CleanTask(layout, targets=[layout.root / "app", Path("../keep")])
        with pytest.raises(InvalidPathError, match="outside build root"):
            task.run()

        # Nothing deleted when any target is refused
        assert (layout.root / "app").is_dir()
        assert outside.is_dir()

    def test_relative_target_inside_root(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, "build", ["app"])
        self._populate(layout.root)
        result = CleanTask(layout, targets=[Path("app")]).run()
        assert result.deleted == [layout.root / "app"]
        assert (layout.root / "report.txt").is_file()

    def test_root_containing_config_refused(self, tmp_path: Path):
        android = tmp_path / "android"
        android.mkdir()
        (android / "buildplan.yml").write_text("include: []\n")

        # build_dir '..' makes the root an ancestor of the configuration
        layout = resolve_layout(android, "..", [])
        with pytest.raises(InvalidPathError, match="contains the build configuration"):
            register_clean(layout).run()
        assert (android / "buildplan.yml").is_file()

    def test_root_equal_to_config_refused(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, ".", [])
        with pytest.raises(InvalidPathError):
            register_clean(layout).run()
        assert tmp_path.is_dir()

    def test_filesystem_root_refused(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, "/", [])
        with pytest.raises(InvalidPathError, match="filesystem root"):
            register_clean(layout).check()

    def test_symlinked_root_removes_link_only(self, android_dir: Path):
        victim = android_dir.parent / "elsewhere" / "data"
        victim.mkdir(parents=True)
        (victim / "precious.txt").write_text("keep me")
        link = android_dir.parent / "build"
        link.symlink_to(victim, target_is_directory=True)

        layout = resolve_layout(android_dir, "../build", ["app"])
        assert layout.root == link

        result = register_clean(layout).run()

        assert result.deleted == [link]
        assert not link.is_symlink()
        assert (victim / "precious.txt").is_file()

    def test_symlinked_root_dry_run(self, android_dir: Path):
        victim = android_dir.parent / "elsewhere"
        victim.mkdir()
        (android_dir.parent / "build").symlink_to(victim, target_is_directory=True)
        layout = resolve_layout(android_dir, "../build", [])
        result = register_clean(layout).run(dry_run=True)
        assert result.deleted == [layout.root]
        assert layout.root.is_symlink()

    def test_root_reached_through_symlink_to_config_refused(self, tmp_path: Path):
        android = tmp_path / "android"
        android.mkdir()
        (android / "buildplan.yml").write_text("include: []\n")
        (tmp_path / "out").symlink_to(tmp_path, target_is_directory=True)

        # out/android is the configuration root itself, reached through a link
        layout = resolve_layout(android, "../out/android", [])
        with pytest.raises(InvalidPathError, match="contains the build configuration"):
            register_clean(layout).run()
        assert (android / "buildplan.yml").is_file()

    def test_target_through_symlink_outside_root_refused(self, tmp_path: Path):
        layout = resolve_layout(tmp_path / "android", "../build", ["app"])
        layout.root.mkdir(parents=True)
        outside = tmp_path / "keep"
        (outside / "sub").mkdir(parents=True)
        (layout.root / "app").symlink_to(outside, target_is_directory=True)

        with pytest.raises(InvalidPathError, match="outside build root"):
            CleanTask(layout, targets=[Path("app/sub")]).run()
        assert (outside / "sub").is_dir()

    def test_to_dict(self, tmp_path: Path):
        layout = resolve_layout(tmp_path, "build", [])
        data = register_clean(layout).run(dry_run=True).to_dict()
        assert data["root"] == str(layout.root)
        assert data["missing"] == [str(layout.root)]
