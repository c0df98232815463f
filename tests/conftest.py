"""Shared fixtures: sample plugin definitions and on-disk MZ projects."""

from pathlib import Path

import pytest

from mzforge.core.param_types import ParamType
from mzforge.dependencies import reset_services
from mzforge.models.plugin import (
    Command,
    Parameter,
    PluginDefinition,
    PluginMeta,
    SelectOption,
    Struct,
)


@pytest.fixture
def sample_plugin() -> PluginDefinition:
    """A valid plugin exercising the common parameter kinds."""
    position = Struct(
        name="Position",
        parameters=[
            Parameter(name="x", type=ParamType.NUMBER, default=0),
            Parameter(name="y", type=ParamType.NUMBER, default=0),
        ],
    )
    return PluginDefinition(
        meta=PluginMeta(
            name="MyPlugin",
            version="1.2.0",
            author="Tester",
            description="Sample plugin",
            help="Line one\n\n  Indented line",
            dependencies=["CoreLib"],
        ),
        parameters=[
            Parameter(name="speed", text="Move Speed", type=ParamType.NUMBER, default=5, min=1, max=10),
            Parameter(name="showWindow", type=ParamType.BOOLEAN, default=True, on_label="Show", off_label="Hide"),
            Parameter(
                name="mode",
                type=ParamType.SELECT,
                default="fast",
                options=[SelectOption(text="Fast", value="fast"), SelectOption(text="Slow", value="slow")],
            ),
            Parameter(name="startPos", type=ParamType.STRUCT, struct_type="Position"),
            Parameter(name="steps", type=ParamType.ARRAY, array_type=ParamType.NUMBER, default="[]"),
            Parameter(name="message", type=ParamType.TEXT, default="Hello"),
        ],
        commands=[
            Command(
                name="ShowMessage",
                text="Show Message",
                desc="Shows a message",
                args=[Parameter(name="text", default="Hi")],
            ),
        ],
        structs=[position],
    )


@pytest.fixture
def make_project(tmp_path):
    """Factory writing plugin files into <tmp>/js/plugins and returning the project root."""

    def _make(files: dict, manifest: str = None) -> Path:
        plugins_dir = tmp_path / "js" / "plugins"
        plugins_dir.mkdir(parents=True, exist_ok=True)
        for filename, content in files.items():
            path = plugins_dir / filename
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        if manifest is not None:
            (tmp_path / "js" / "plugins.js").write_text(manifest, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture(autouse=True)
def _reset_singletons():
    reset_services()
    yield
    reset_services()
