"""
Data models for the JSON metrics parser.

Defines dataclasses for field selection rules, rule-sets, query results,
the output metric record, and the working node threaded through array
expansion and object flattening.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


FieldValue = Union[str, int, float, bool]

SUPPORTED_TYPES = ('string', 'int', 'float', 'bool')


@dataclass
class BasicField:
    """Selects a scalar or array value and turns it into one field per row.

    Attributes:
        query: Path expression evaluated against the document
        name: Output field name; defaults to the last path segment
        type: Declared target type (string, int, float, bool) or empty
    """
    query: str
    name: str = ""
    type: str = ""


@dataclass
class ObjectField:
    """Selects an object and flattens its children into fields.

    Attributes:
        query: Path expression evaluated against the document
        name_map: Renames keyed by the original object key
        type_map: Declared target types keyed by the original object key
    """
    query: str
    name_map: Dict[str, str] = field(default_factory=dict)
    type_map: Dict[str, str] = field(default_factory=dict)


@dataclass
class RuleSet:
    """A named group of selection rules producing one metric name.

    Attributes:
        metric_name: Name given to every metric produced by this rule-set
        basic_fields: Ordered basic field rules
        object_fields: Ordered object field rules
        metric_selection: Reserved; accepted but has no effect
    """
    metric_name: str
    basic_fields: List[BasicField] = field(default_factory=list)
    object_fields: List[ObjectField] = field(default_factory=list)
    metric_selection: str = ""


class JsonKind(str, Enum):
    """The shape of a JSON value found by a query."""
    MISSING = 'missing'
    NULL = 'null'
    BOOL = 'bool'
    NUMBER = 'number'
    STRING = 'string'
    ARRAY = 'array'
    OBJECT = 'object'


def kind_of(value: Any) -> JsonKind:
    """Classify a decoded JSON value."""
    if value is None:
        return JsonKind.NULL
    # bool before int
    if isinstance(value, bool):
        return JsonKind.BOOL
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, list):
        return JsonKind.ARRAY
    if isinstance(value, dict):
        return JsonKind.OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


@dataclass(frozen=True)
class QueryResult:
    """The outcome of evaluating a path against a JSON document.

    Attributes:
        value: The selected value (None when missing or JSON null)
        exists: Whether the path matched anything
    """
    value: Any = None
    exists: bool = False

    @classmethod
    def missing(cls) -> 'QueryResult':
        return cls()

    @classmethod
    def of(cls, value: Any) -> 'QueryResult':
        return cls(value=value, exists=True)

    @property
    def kind(self) -> JsonKind:
        if not self.exists:
            return JsonKind.MISSING
        return kind_of(self.value)

    @property
    def is_object(self) -> bool:
        return self.kind is JsonKind.OBJECT

    @property
    def is_array(self) -> bool:
        return self.kind is JsonKind.ARRAY

    def for_each(self) -> Iterator[Tuple[str, 'QueryResult']]:
        """Iterate direct children as (key, result) pairs.

        Object members yield their key. Array elements yield an empty key.
        A scalar yields itself once with an empty key, and a missing result
        yields nothing.
        """
        kind = self.kind
        if kind is JsonKind.MISSING:
            return
        if kind is JsonKind.OBJECT:
            for key, value in self.value.items():
                yield key, QueryResult.of(value)
        elif kind is JsonKind.ARRAY:
            for value in self.value:
                yield "", QueryResult.of(value)
        else:
            yield "", self


@dataclass
class Metric:
    """A flat output record.

    Attributes:
        name: Metric name
        tags: Tag set (never populated by this parser)
        fields: Insertion-ordered field values, last write wins
        timestamp: Creation time taken from the parser clock
    """
    name: str
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    timestamp: Optional[datetime] = None

    def add_field(self, key: str, value: Any) -> None:
        """Set a field. JSON null values are not stored."""
        if value is None:
            return
        self.fields[key] = value

    def has_field(self, key: str) -> bool:
        return key in self.fields

    def field_list(self) -> List[Tuple[str, FieldValue]]:
        return list(self.fields.items())

    def copy(self, timestamp: Optional[datetime] = None) -> 'Metric':
        """Return a structural copy, optionally with a new timestamp."""
        return Metric(
            name=self.name,
            tags=dict(self.tags),
            fields=dict(self.fields),
            timestamp=self.timestamp if timestamp is None else timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert metric to a JSON-serializable dictionary."""
        return {
            'name': self.name,
            'tags': dict(self.tags),
            'fields': dict(self.fields),
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class MetricNode:
    """A metric under construction together with its position in the document.

    Attributes:
        root_field_name: Field name this branch contributes
        metric: The metric being built
        result: Current query result position
        desired_type: Declared type for the contributed field
    """
    root_field_name: str
    metric: Metric
    result: QueryResult
    desired_type: str = ""
