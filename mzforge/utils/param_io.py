"""Parameter export/import in the `.mzparams` JSON format."""

import json
import logging
from datetime import datetime, timezone
from typing import List, NamedTuple

from pydantic import ValidationError

from mzforge.constants import PARAM_EXPORT_VERSION
from mzforge.models.plugin import Parameter, new_id

logger = logging.getLogger(__name__)


class ParamImportError(ValueError):
    """The content is not a readable `.mzparams` export."""


class ImportedParams(NamedTuple):
    source: str
    parameters: List[Parameter]


def serialize_params(params: List[Parameter], source_name: str) -> str:
    """Serialize parameters for export from the plugin named `source_name`."""
    data = {
        "version": PARAM_EXPORT_VERSION,
        "source": source_name,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "parameters": [p.model_dump(mode="json", by_alias=True, exclude_none=True) for p in params],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def deserialize_params(content: str) -> ImportedParams:
    """Read a `.mzparams` export. Every imported parameter gets a fresh id.

    Raises:
        ParamImportError: malformed JSON or not a parameter export
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParamImportError(f"Failed to parse file: {e}") from e

    if not isinstance(data, dict) or not data.get("version") or not isinstance(data.get("parameters"), list):
        raise ParamImportError("Invalid .mzparams format")

    try:
        params = [Parameter.model_validate({**raw, "id": new_id()}) for raw in data["parameters"]]
    except (TypeError, ValidationError) as e:
        raise ParamImportError(f"Invalid parameter in export: {e}") from e

    source = data.get("source") or "Unknown"
    logger.debug(f"Imported {len(params)} parameter(s) from '{source}'")
    return ImportedParams(source=source, parameters=params)


def duplicate_params(params: List[Parameter]) -> List[Parameter]:
    """Copies with new ids and a `_copy` name suffix."""
    return [p.model_copy(update={"id": new_id(), "name": p.name + "_copy"}, deep=True) for p in params]
