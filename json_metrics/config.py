"""
Configuration loading for the JSON metrics parser.

Reads rule-sets from a YAML (or JSON) file, validates them, and builds the
dataclasses consumed by the engine. Also provides the logging setup shared
by the command line and the API.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml

from .exceptions import ConfigError
from .models import SUPPORTED_TYPES, BasicField, ObjectField, RuleSet


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(debug: bool = False) -> None:
    """Setup logging configuration."""
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _require_str(value: Any, location: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{location}: must be a non-empty string")
    return value


def _check_type(value: Any, location: str) -> str:
    if value in (None, ""):
        return ""
    if value not in SUPPORTED_TYPES:
        raise ConfigError(
            f"{location}: unsupported type {value!r} "
            f"(expected one of {', '.join(SUPPORTED_TYPES)})"
        )
    return value


def _string_map(value: Any, location: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{location}: must be a mapping")
    for key, item in value.items():
        if not isinstance(key, str) or not isinstance(item, str):
            raise ConfigError(f"{location}: keys and values must be strings")
    return dict(value)


def _build_basic_field(raw: Any, location: str) -> BasicField:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{location}: must be a mapping")
    name = raw.get('name') or ""
    if not isinstance(name, str):
        raise ConfigError(f"{location}.name: must be a string")
    return BasicField(
        query=_require_str(raw.get('query'), f"{location}.query"),
        name=name,
        type=_check_type(raw.get('type'), f"{location}.type"),
    )


def _build_object_field(raw: Any, location: str) -> ObjectField:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{location}: must be a mapping")
    type_map = _string_map(raw.get('type_map'), f"{location}.type_map")
    for key, value in type_map.items():
        _check_type(value, f"{location}.type_map.{key}")
    return ObjectField(
        query=_require_str(raw.get('query'), f"{location}.query"),
        name_map=_string_map(raw.get('name_map'), f"{location}.name_map"),
        type_map=type_map,
    )


def _build_rule_set(raw: Any, location: str) -> RuleSet:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{location}: must be a mapping")

    basic_fields = raw.get('basic_fields') or []
    object_fields = raw.get('object_fields') or []
    if not isinstance(basic_fields, list):
        raise ConfigError(f"{location}.basic_fields: must be a list")
    if not isinstance(object_fields, list):
        raise ConfigError(f"{location}.object_fields: must be a list")

    metric_selection = raw.get('metric_selection') or ""
    if not isinstance(metric_selection, str):
        raise ConfigError(f"{location}.metric_selection: must be a string")

    return RuleSet(
        metric_name=_require_str(raw.get('metric_name'), f"{location}.metric_name"),
        basic_fields=[
            _build_basic_field(f, f"{location}.basic_fields[{i}]")
            for i, f in enumerate(basic_fields)
        ],
        object_fields=[
            _build_object_field(f, f"{location}.object_fields[{i}]")
            for i, f in enumerate(object_fields)
        ],
        metric_selection=metric_selection,
    )


def build_rule_sets(raw: Union[Mapping[str, Any], List[Any]]) -> List[RuleSet]:
    """Build rule-sets from decoded configuration data.

    Args:
        raw: Either a mapping with a ``parsers`` list or the list itself

    Returns:
        List of validated rule-sets

    Raises:
        ConfigError: If the configuration is malformed
    """
    if isinstance(raw, Mapping):
        raw = raw.get('parsers')
    if not isinstance(raw, list):
        raise ConfigError("parsers: must be a list of rule-sets")

    return [_build_rule_set(r, f"parsers[{i}]") for i, r in enumerate(raw)]


def load_config(config_path: Union[str, Path]) -> List[RuleSet]:
    """Load rule-sets from a YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        List of validated rule-sets

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    rule_sets = build_rule_sets(raw)
    logger.info(f"Loaded {len(rule_sets)} rule-sets from {config_path}")
    return rule_sets
