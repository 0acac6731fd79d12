"""YAML/JSON document reading and schema validation shared by the loaders."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

# yes/no/on/off stay strings; descriptor booleans are compared as text anyway.
for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise yaml.constructor.ConstructorError(
                None, None, f"Duplicate key '{key}' in YAML document", key_node.start_mark
            )
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def _reject_duplicate_pairs(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key, value in pairs:
        if key in mapping:
            raise ValueError(f"Duplicate key '{key}' in JSON document")
        mapping[key] = value
    return mapping


def parse_document(content: str, *, source: Path | Traversable) -> Any:
    """Parse JSON for ``.json`` sources and YAML for everything else.

    Raises ``ValueError`` for malformed JSON and ``yaml.YAMLError`` for
    malformed YAML; duplicate keys are malformed in both.
    """
    if source.name.endswith(".json"):
        return json.loads(content, object_pairs_hook=_reject_duplicate_pairs)
    return yaml.load(content, Loader=UniqueKeyLoader)


@lru_cache(maxsize=None)
def load_schema_validator(name: str) -> Any:
    schema_text = resources.files("starprnt.schemas").joinpath(name).read_text(encoding="utf-8")
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def schema_error(exc: ValidationError, source: Path | Traversable) -> str:
    path = ".".join(str(p) for p in exc.path)
    where = f" ({path})" if path else ""
    return f"Schema validation failed for {source}{where}: {exc.message}"
