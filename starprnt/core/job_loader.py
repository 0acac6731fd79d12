"""Print job files: a YAML or JSON list of command descriptors.

A job is either a bare list of descriptors or a mapping with ``commands``
(``printCommands`` is accepted as well) and optional ``emulation``, ``port``
and ``printer`` hints.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError

from starprnt.core.documents import load_schema_validator, parse_document, schema_error
from starprnt.core.errors import JobLoadError, JobValidationError
from starprnt.core.model import PrintJob

JOB_SCHEMA = "job.schema.json"


def _read_document(path: Path) -> Any:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise JobLoadError(f"Could not read job file {path}: {exc}") from exc

    try:
        return parse_document(content, source=path)
    except (yaml.YAMLError, ValueError) as exc:
        raise JobValidationError(f"Invalid job document {path}: {exc}") from exc


def build_job(doc: Any, source: Path | str = "<job>") -> PrintJob:
    validator = load_schema_validator(JOB_SCHEMA)
    try:
        validator.validate(doc)
    except ValidationError as exc:
        raise JobValidationError(schema_error(exc, Path(str(source)))) from exc

    if isinstance(doc, list):
        return PrintJob(commands=tuple(doc))

    commands = doc["commands"] if "commands" in doc else doc["printCommands"]
    return PrintJob(
        commands=tuple(commands),
        emulation=doc.get("emulation"),
        port=doc.get("port"),
        printer=doc.get("printer"),
    )


def load_job(path: Path | str) -> PrintJob:
    path = Path(path)
    return build_job(_read_document(path), path)
