from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError as SchemaValidationError

from ..models.field_catalog import FieldCatalog
from ..services.matcher import DEFAULT_FIELD_PATTERNS, DEFAULT_MATCH_THRESHOLD
from ..services.pager import DEFAULT_PAGE_SIZE

"""Config loader.

Responsibilities:
- Load YAML config (default: config/import.yml)
- Validate against config_schema.json (shipped next to this module)
- Check catalog consistency (required / identifying fields belong to fields)
- Apply defaults for optional keys
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

DEFAULT_CONFIG_PATH = Path("config/import.yml")
DEFAULT_TEMPLATES_FILE = "templates.json"
DEFAULT_OUTPUT_DIRECTORY = "./output"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ImportConfig:
    catalog: FieldCatalog
    page_size: int
    match_threshold: float
    field_patterns: dict[str, tuple[str, ...]]  # 既定表 + 設定による上書き
    field_formats: dict[str, str]  # field -> email|phone (advisory)
    templates_file: str
    output_directory: str


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except SchemaValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_catalog(data: dict[str, Any]) -> FieldCatalog:
    identifying = data.get("identifying_field")
    try:
        catalog = FieldCatalog.create(
            data["fields"], data.get("required_fields", []), identifying
        )
    except ValueError as e:
        raise ConfigError(f"config validation failed: {e}") from e
    if identifying is not None and identifying not in catalog:
        # 不在なら重複検出は no-op になるだけだが設定ミスの可能性が高い
        raise ConfigError(f"config validation failed: identifying_field '{identifying}' not in fields")
    return catalog


def _build_field_formats(data: dict[str, Any], catalog: FieldCatalog) -> dict[str, str]:
    formats = dict(data.get("field_formats") or {})
    unknown = sorted(f for f in formats if f not in catalog)
    if unknown:
        raise ConfigError(f"config validation failed: field_formats fields not in fields: {unknown}")
    return formats


def config_from_dict(data: dict[str, Any]) -> ImportConfig:
    _validate_config_schema(data)
    catalog = _build_catalog(data)
    patterns = dict(DEFAULT_FIELD_PATTERNS)
    for field, synonyms in (data.get("field_patterns") or {}).items():
        patterns[field] = tuple(synonyms)
    return ImportConfig(
        catalog=catalog,
        page_size=data.get("page_size", DEFAULT_PAGE_SIZE),
        match_threshold=float(data.get("match_threshold", DEFAULT_MATCH_THRESHOLD)),
        field_patterns=patterns,
        field_formats=_build_field_formats(data, catalog),
        templates_file=data.get("templates_file", DEFAULT_TEMPLATES_FILE),
        output_directory=data.get("output_directory", DEFAULT_OUTPUT_DIRECTORY),
    )


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")
    return config_from_dict(data)
