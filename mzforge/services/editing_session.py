"""Editing session - owns the open plugin definitions and the active one."""

import logging
from typing import Any, Dict, Iterable, List, Literal, Optional

from mzforge.core.generator import generate, generate_raw
from mzforge.core.parser import parse_plugin
from mzforge.core.validator import validate
from mzforge.models.plugin import (
    Command,
    Parameter,
    PluginDefinition,
    Struct,
    new_command,
    new_parameter,
    new_plugin,
    new_struct,
)
from mzforge.models.reports import ValidationResult

logger = logging.getLogger(__name__)

Scope = Literal["plugin", "struct", "command"]


class EditingSession:
    """Open plugins keyed by id, with exactly one active plugin while any are open.

    Every edit replaces the active definition's content in place; previews and
    diagnostics are recomputed from it on request.
    """

    def __init__(self):
        self.plugins: Dict[str, PluginDefinition] = {}
        self.active_id: Optional[str] = None

    @property
    def active(self) -> PluginDefinition:
        if self.active_id is None:
            raise LookupError("No plugin is open")
        return self.plugins[self.active_id]

    # -- plugins -------------------------------------------------------------

    def new_plugin(self, name: Optional[str] = None) -> PluginDefinition:
        plugin = new_plugin(name) if name else new_plugin()
        return self.open_plugin(plugin)

    def open_plugin(self, plugin: PluginDefinition) -> PluginDefinition:
        """Open a definition and make it active."""
        self.plugins[plugin.id] = plugin
        self.active_id = plugin.id
        logger.debug(f"Opened plugin '{plugin.meta.name}' ({plugin.id})")
        return plugin

    def import_source(self, content: str, filename: Optional[str] = None) -> PluginDefinition:
        """Parse plugin source text and open the result."""
        return self.open_plugin(parse_plugin(content, filename))

    def switch_to(self, plugin_id: str) -> PluginDefinition:
        if plugin_id not in self.plugins:
            raise KeyError(f"Plugin not open: {plugin_id}")
        self.active_id = plugin_id
        return self.plugins[plugin_id]

    def close(self, plugin_id: Optional[str] = None) -> None:
        """Close a plugin (the active one by default); the last opened remaining becomes active."""
        plugin_id = plugin_id or self.active_id
        if plugin_id is None or plugin_id not in self.plugins:
            raise KeyError(f"Plugin not open: {plugin_id}")
        del self.plugins[plugin_id]
        if self.active_id == plugin_id:
            self.active_id = next(reversed(self.plugins), None) if self.plugins else None

    def update_meta(self, **changes: Any) -> PluginDefinition:
        plugin = self.active
        for key, value in changes.items():
            setattr(plugin.meta, key, value)
        return plugin

    def set_custom_code(self, code: str) -> None:
        self.active.custom_code = code

    # -- parameters ----------------------------------------------------------

    def add_parameter(
        self,
        param: Optional[Parameter] = None,
        scope: Scope = "plugin",
        owner_id: Optional[str] = None,
    ) -> Parameter:
        """Append a parameter to the plugin, a struct's fields or a command's args."""
        param = param or new_parameter()
        self._parameter_list(scope, owner_id).append(param)
        return param

    def update_parameter(
        self,
        param_id: str,
        scope: Scope = "plugin",
        owner_id: Optional[str] = None,
        **changes: Any,
    ) -> Parameter:
        param = self._find_parameter(param_id, scope, owner_id)
        for key, value in changes.items():
            setattr(param, key, value)
        return param

    def remove_parameter(self, param_id: str, scope: Scope = "plugin", owner_id: Optional[str] = None) -> None:
        params = self._parameter_list(scope, owner_id)
        params.remove(self._find_parameter(param_id, scope, owner_id))

    def move_parameter(
        self,
        param_id: str,
        new_index: int,
        scope: Scope = "plugin",
        owner_id: Optional[str] = None,
    ) -> None:
        """Move a parameter to a new position, clamped to the list bounds."""
        params = self._parameter_list(scope, owner_id)
        param = self._find_parameter(param_id, scope, owner_id)
        params.remove(param)
        params.insert(max(0, min(new_index, len(params))), param)

    # -- commands and structs ------------------------------------------------

    def add_command(self, command: Optional[Command] = None) -> Command:
        command = command or new_command()
        self.active.commands.append(command)
        return command

    def remove_command(self, command_id: str) -> None:
        self.active.commands = [c for c in self.active.commands if c.id != command_id]

    def add_struct(self, struct: Optional[Struct] = None) -> Struct:
        struct = struct or new_struct()
        self.active.structs.append(struct)
        return struct

    def remove_struct(self, struct_id: str) -> None:
        self.active.structs = [s for s in self.active.structs if s.id != struct_id]

    # -- output --------------------------------------------------------------

    def preview(self, raw_mode: bool = False) -> str:
        """Generated source of the active plugin."""
        plugin = self.active
        return generate_raw(plugin) if raw_mode else generate(plugin)

    def diagnostics(self, known_plugins: Optional[Iterable[str]] = None) -> ValidationResult:
        return validate(self.active, known_plugins)

    # -- helpers -------------------------------------------------------------

    def _parameter_list(self, scope: Scope, owner_id: Optional[str]) -> List[Parameter]:
        plugin = self.active
        if scope == "plugin":
            return plugin.parameters
        if scope == "struct":
            owner = next((s for s in plugin.structs if s.id == owner_id), None)
            if owner is None:
                raise KeyError(f"Struct not found: {owner_id}")
            return owner.parameters
        if scope == "command":
            owner = next((c for c in plugin.commands if c.id == owner_id), None)
            if owner is None:
                raise KeyError(f"Command not found: {owner_id}")
            return owner.args
        raise ValueError(f"Unknown parameter scope: {scope}")

    def _find_parameter(self, param_id: str, scope: Scope, owner_id: Optional[str]) -> Parameter:
        for param in self._parameter_list(scope, owner_id):
            if param.id == param_id:
                return param
        raise KeyError(f"Parameter not found: {param_id}")
