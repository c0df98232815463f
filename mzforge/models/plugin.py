"""Plugin definition model - the editable representation of one MZ plugin."""

import uuid
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mzforge.constants import DEFAULT_AUTHOR, DEFAULT_PLUGIN_NAME, DEFAULT_TARGET
from mzforge.core.param_types import ParamType

DefaultValue = Union[bool, int, float, str]


def new_id() -> str:
    return str(uuid.uuid4())


class _CamelModel(BaseModel):
    """Base model serialised with the camelCase keys of the original tool."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class SelectOption(_CamelModel):
    value: str = Field(..., description="Value stored in the parameter")
    text: str = Field(..., description="Label shown in the plugin manager")


class LocalizedContent(_CamelModel):
    description: str = ""
    help: str = ""


class NoteParam(_CamelModel):
    """Declares a note tag whose value references a resource file.

    Used by the engine's deployment packager to keep referenced files.
    """

    name: str = Field(..., description="Note tag name, e.g. 'Portrait'")
    type: str = Field(default="file", description="Value kind of the tag")
    dir: Optional[str] = Field(default=None, description="Resource directory, e.g. img/pictures/")
    data: Optional[str] = Field(default=None, description="Database table holding the note, e.g. actors")
    require: Optional[bool] = Field(default=None, description="Whether the file is required")


class Parameter(_CamelModel):
    """A plugin parameter, command argument or struct field."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., description="Internal identifier")
    text: str = Field(default="", description="Display label")
    desc: str = Field(default="", description="Description/help text")
    type: ParamType = ParamType.STRING
    default: DefaultValue = ""

    # Type-specific options
    min: Optional[Union[int, float]] = None
    max: Optional[Union[int, float]] = None
    decimals: Optional[int] = None
    options: Optional[List[SelectOption]] = None
    struct_type: Optional[str] = None
    array_type: Optional[ParamType] = None
    dir: Optional[str] = None
    parent: Optional[str] = None
    raw_type: Optional[str] = None
    on_label: Optional[str] = None
    off_label: Optional[str] = None


class Command(_CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., description="Command identifier passed to registerCommand")
    text: str = ""
    desc: str = ""
    args: List[Parameter] = Field(default_factory=list)


class Struct(_CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., description="Struct name referenced as struct<Name>")
    parameters: List[Parameter] = Field(default_factory=list)


class PluginMeta(_CamelModel):
    name: str = DEFAULT_PLUGIN_NAME
    version: str = "1.0.0"
    author: str = ""
    url: str = ""
    description: str = ""
    help: str = ""
    localizations: Dict[str, LocalizedContent] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)
    order_after: List[str] = Field(default_factory=list)
    order_before: List[str] = Field(default_factory=list)
    note_params: List[NoteParam] = Field(default_factory=list)
    target: str = DEFAULT_TARGET


class PluginDefinition(_CamelModel):
    """One plugin: metadata, parameters, commands, structs and custom code.

    `raw_source` holds the imported file text and cannot be reassigned; build a
    new definition (e.g. with `model_copy`) to replace it.
    """

    id: str = Field(default_factory=new_id)
    meta: PluginMeta = Field(default_factory=PluginMeta)
    parameters: List[Parameter] = Field(default_factory=list)
    commands: List[Command] = Field(default_factory=list)
    structs: List[Struct] = Field(default_factory=list)
    custom_code: str = ""
    raw_source: Optional[str] = Field(default=None, frozen=True)

    def find_struct(self, name: Optional[str]) -> Optional[Struct]:
        """Look up a struct by name."""
        if not name:
            return None
        return next((s for s in self.structs if s.name == name), None)

    def struct_names(self) -> set[str]:
        return {s.name for s in self.structs}


def new_plugin(name: str = DEFAULT_PLUGIN_NAME) -> PluginDefinition:
    """Create an empty plugin with configured defaults."""
    return PluginDefinition(meta=PluginMeta(name=name, author=DEFAULT_AUTHOR, target=DEFAULT_TARGET))


def new_parameter(name: str = "NewParameter") -> Parameter:
    return Parameter(name=name, text="New Parameter")


def new_command(name: str = "NewCommand") -> Command:
    return Command(name=name, text="New Command")


def new_struct(name: str = "NewStruct") -> Struct:
    return Struct(name=name)
