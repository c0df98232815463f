"""Report models returned by the validator and the project analyzers."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    """Outcome of validating one plugin definition."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class Conflict(BaseModel):
    """Two or more plugins touching the same class method."""

    method: str = Field(
        ...,
        description=(
            "Identifier such as 'Scene_Map.update'. A static method and the prototype "
            "method of the same name share it and are reported separately, told apart by `static`"
        ),
    )
    class_name: str
    method_name: str
    static: bool = Field(default=False, description="Override of a method on the class object itself")
    severity: Literal["warning", "info"]
    plugins: List[str] = Field(..., description="Plugins touching the method, in load order")
    destructive: bool = Field(
        default=False,
        description="A later plugin overwrote the method without capturing the prior implementation",
    )


class ConflictReport(BaseModel):
    conflicts: List[Conflict] = Field(default_factory=list)
    total_overrides: int = 0
    health: Literal["clean", "conflicts"] = "clean"
    skipped: List[str] = Field(default_factory=list, description="Sources that could not be read")
    advisory: str = (
        "Heuristic scan: dynamically computed method names and indirect "
        "assignments are not detected."
    )


class DependencyIssue(BaseModel):
    kind: Literal["missing", "order", "cycle", "duplicate", "unreadable"]
    severity: Literal["error", "warning"]
    plugin: str
    message: str
    details: Optional[str] = None


class DependencyReport(BaseModel):
    issues: List[DependencyIssue] = Field(default_factory=list)
    plugin_names: List[str] = Field(default_factory=list)
    load_order: List[str] = Field(default_factory=list)
    suggested_order: List[str] = Field(
        default_factory=list,
        description="Stable topological order; empty when the graph has a cycle",
    )
    health: Literal["ok", "warnings", "errors"] = "ok"


class ProjectScanResult(BaseModel):
    """Both project-wide reports from one directory snapshot."""

    project_path: str
    scanned_at: datetime
    files: List[str] = Field(default_factory=list)
    conflicts: ConflictReport
    dependencies: DependencyReport
