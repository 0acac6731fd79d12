"""Printer profiles: named port and emulation pairs loaded from YAML."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError

from starprnt.core.documents import load_schema_validator, parse_document, schema_error
from starprnt.core.errors import ProfileLoadError, ProfileValidationError
from starprnt.core.model import PrinterProfile

LOGGER = logging.getLogger(__name__)

PROFILE_SCHEMA = "profile.schema.json"


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, PrinterProfile]
    warnings: tuple[str, ...]


def _profile_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "starprnt/profiles", xdg_data / "starprnt/profiles"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileLoadError(f"Could not read profile file {path}: {exc}") from exc

    try:
        loaded = parse_document(content, source=path)
    except (yaml.YAMLError, ValueError) as exc:
        raise ProfileValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ProfileValidationError(f"Profile file {path} must contain a mapping at root")
    return loaded


def _build_profile(doc: dict[str, Any], source: Path | Traversable) -> PrinterProfile:
    validator = load_schema_validator(PROFILE_SCHEMA)
    try:
        validator.validate(doc)
    except ValidationError as exc:
        raise ProfileValidationError(schema_error(exc, source)) from exc

    return PrinterProfile(
        id=doc["id"],
        name=doc["name"],
        emulation=doc["emulation"],
        port=doc.get("port"),
    )


def _iter_packaged_profile_paths() -> list[Traversable]:
    profile_root = resources.files("starprnt.profiles")
    return [item for item in profile_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_profile_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _profile_dirs():
        if not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_profiles() -> LoadedProfiles:
    profiles: dict[str, PrinterProfile] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_profile_paths(), key=lambda p: p.name):
        profile = _build_profile(_read_yaml(path), path)
        profiles[profile.id] = profile

    for path in _iter_user_profile_paths():
        profile = _build_profile(_read_yaml(path), path)
        if profile.id in profiles:
            warning = f"User profile '{profile.id}' overrides packaged profile"
            LOGGER.warning(warning)
            warnings.append(warning)
        profiles[profile.id] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
