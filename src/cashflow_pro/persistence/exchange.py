"""
Import/Export - versioned envelope around a full project document

Export wraps the project as {projectData, exportDate, version, exportedBy}.
Import accepts the same envelope and yields a validated Project that replaces
the in-memory one wholesale; there is no field-level merge.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from cashflow_pro.kernel.errors import PersistenceError, ValidationError
from cashflow_pro.kernel.time import TimeProvider, default_time_provider
from cashflow_pro.planning.models import Project


class ExportEnvelope(BaseModel):
    """Exported project file"""

    project_data: dict[str, Any] = Field(alias="projectData")
    export_date: str = Field(alias="exportDate")
    version: str = "1.0"
    exported_by: str = Field(default="", alias="exportedBy")

    model_config = {"populate_by_name": True, "extra": "allow"}


def export_project(
    project: Project,
    exported_by: str,
    version: str = "1.0",
    time_provider: TimeProvider | None = None,
) -> dict[str, Any]:
    """Build the export envelope as JSON-compatible data"""
    clock = time_provider or default_time_provider
    envelope = ExportEnvelope(
        project_data=project.to_document(),
        export_date=clock.now().isoformat(),
        version=version,
        exported_by=exported_by,
    )
    return envelope.model_dump(mode="json", by_alias=True)


def import_project(envelope: dict[str, Any]) -> Project:
    """
    Validate an export envelope and return its project

    Raises:
        ValidationError: If the envelope or the project data is malformed
    """
    if not isinstance(envelope, dict) or "projectData" not in envelope:
        raise ValidationError("Invalid data format: projectData is missing")

    try:
        parsed = ExportEnvelope.model_validate(envelope)
        return Project.model_validate(parsed.project_data)
    except PydanticValidationError as exc:
        raise ValidationError(
            [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
        ) from exc


def export_filename(project: Project, time_provider: TimeProvider | None = None) -> str:
    """cashflow-<project name>-<YYYY-MM-DD>.json"""
    clock = time_provider or default_time_provider
    return f"cashflow-{project.info.name}-{clock.now().date().isoformat()}.json"


def write_envelope(envelope: dict[str, Any], path: str | Path) -> Path:
    """
    Raises:
        PersistenceError: If the file cannot be written
    """
    target = Path(path)
    try:
        target.write_text(json.dumps(envelope, indent=2), encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Cannot write {target}: {exc}") from exc
    return target


def read_envelope(path: str | Path) -> dict[str, Any]:
    """
    Raises:
        PersistenceError: If the file cannot be read
        ValidationError: If the file is not JSON
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Cannot read {source}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid data format: {exc}") from exc
