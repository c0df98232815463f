"""Plugin definition endpoints: generate, validate and import."""

import logging
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mzforge.core.generator import generate, generate_header, generate_raw
from mzforge.core.parser import parse_plugin
from mzforge.core.validator import validate
from mzforge.models.plugin import PluginDefinition
from mzforge.models.reports import ValidationResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plugins", tags=["plugins"])


class GenerateResponse(BaseModel):
    code: str
    raw: bool = False


class ValidateRequest(BaseModel):
    """Request body for validating a plugin definition."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    plugin: PluginDefinition
    known_plugins: Optional[List[str]] = Field(
        default=None, description="Plugin names of the project, enables dependency checks"
    )


class ImportRequest(BaseModel):
    """Request body for importing plugin source text."""

    content: str = Field(..., description="Plugin file text")
    filename: Optional[str] = Field(default=None, description="File name; its stem becomes the plugin name")


@router.post("/generate", response_model=GenerateResponse)
async def generate_plugin(plugin: PluginDefinition, raw: bool = False):
    """Render a definition as plugin source. `raw=true` keeps an imported body untouched."""
    code = generate_raw(plugin) if raw else generate(plugin)
    return GenerateResponse(code=code, raw=raw)


@router.post("/generate/header", response_model=GenerateResponse)
async def generate_plugin_header(plugin: PluginDefinition):
    """Render only the annotation blocks."""
    return GenerateResponse(code=generate_header(plugin))


@router.post("/validate", response_model=ValidationResult)
async def validate_plugin(body: ValidateRequest):
    return validate(body.plugin, body.known_plugins)


@router.post("/import", response_model=PluginDefinition, response_model_exclude_none=True)
async def import_plugin(body: ImportRequest):
    """Parse plugin source into an editable definition."""
    plugin = parse_plugin(body.content, body.filename)
    logger.info(f"Imported plugin '{plugin.meta.name}' ({len(body.content)} chars)")
    return plugin
