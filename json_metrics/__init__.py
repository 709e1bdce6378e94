"""
JSON Metrics Parser Package.

Converts nested JSON documents into flat metrics driven by declarative
field selection rules.
"""

from .config import build_rule_sets, load_config
from .convert import convert_type
from .engine import Parser
from .exceptions import (
    ConfigError,
    ConversionError,
    InvalidDocumentError,
    JsonMetricsError,
    UnsupportedOperationError,
    UnsupportedShapeError,
)
from .models import (
    BasicField,
    JsonKind,
    Metric,
    MetricNode,
    ObjectField,
    QueryResult,
    RuleSet,
)

__all__ = [
    'BasicField',
    'ConfigError',
    'ConversionError',
    'InvalidDocumentError',
    'JsonKind',
    'JsonMetricsError',
    'Metric',
    'MetricNode',
    'ObjectField',
    'Parser',
    'QueryResult',
    'RuleSet',
    'UnsupportedOperationError',
    'UnsupportedShapeError',
    'build_rule_sets',
    'convert_type',
    'load_config',
]
