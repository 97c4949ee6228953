"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

ANDROID_BUILDPLAN = textwrap.dedent("""\
    build_dir: ../build

    include:
      - ":app"

    subprojects:
      evaluation_depends_on: [":app"]

    plugin_management:
      repositories:
        - google
        - mavenCentral
        - gradlePluginPortal

    plugins:
      - id: dev.flutter.flutter-plugin-loader
        version: "1.0.0"
      - id: com.android.application
        version: "8.9.1"
        apply: false
      - id: org.jetbrains.kotlin.android
        version: "2.1.0"
        apply: false
      - id: com.google.gms.google-services
        version: "4.4.2"
        apply: false

    dependency_resolution:
      mode: PREFER_SETTINGS
      repositories:
        - google
        - mavenCentral
        - maven: https://storage.googleapis.com/download.flutter.io
        - maven: https://jitpack.io
""")


@pytest.fixture
def android_dir(tmp_path: Path) -> Path:
    """A configuration root laid out like a Flutter android/ directory."""
    root = tmp_path / "android"
    root.mkdir()
    (root / "buildplan.yml").write_text(ANDROID_BUILDPLAN)
    (root / "local.properties").write_text("flutter.sdk=/opt/flutter\n")
    return root


@pytest.fixture
def android_config(android_dir: Path) -> Path:
    """Path to the android buildplan.yml."""
    return android_dir / "buildplan.yml"
