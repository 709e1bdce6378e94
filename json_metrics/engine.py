"""
JSON metrics parsing engine.

Evaluates configured selection rules against a JSON document, expands
arrays (including nested arrays) into separate metrics, flattens objects
into the fields of a single metric, and merges the per-rule results of
basic field selections into one set of metrics.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from . import query
from .convert import convert_type
from .exceptions import UnsupportedOperationError, UnsupportedShapeError
from .models import BasicField, Metric, MetricNode, ObjectField, RuleSet


logger = logging.getLogger(__name__)

TimeFunc = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Parser:
    """Turns JSON documents into metrics according to a list of rule-sets."""

    def __init__(
        self,
        configs: Sequence[RuleSet],
        time_func: Optional[TimeFunc] = None,
    ):
        """Initialize the parser.

        Args:
            configs: Rule-sets evaluated in order on every parse
            time_func: Clock used to timestamp every created metric
        """
        self.configs = list(configs)
        self.time_func = time_func or _utc_now

    def set_time_func(self, fn: TimeFunc) -> None:
        self.time_func = fn

    def set_default_tags(self, tags: Dict[str, str]) -> None:
        """Accepted for compatibility; this parser never adds tags."""

    def parse_line(self, line: str) -> Metric:
        raise UnsupportedOperationError(
            "parse_line is designed for parsing influx line protocol, "
            "therefore not implemented for JSON documents"
        )

    def parse(self, data: Union[bytes, str]) -> List[Metric]:
        """Parse a JSON document into metrics.

        Args:
            data: Raw JSON document

        Returns:
            Metrics grouped by rule-set in configuration order, basic field
            metrics before object field metrics within each rule-set

        Raises:
            InvalidDocumentError: If the input is not valid JSON
            UnsupportedShapeError: If a selection resolves to a shape it
                cannot handle
            ConversionError: If a declared type conversion fails
        """
        return self.parse_document(query.loads(data))

    def parse_document(self, document: Any) -> List[Metric]:
        """Parse an already decoded JSON document into metrics.

        Nested arrays and objects are walked recursively, so nesting depth
        is bounded by the interpreter recursion limit.

        Raises:
            UnsupportedShapeError: If the document is nested too deeply
        """
        try:
            return self._parse_rule_sets(document)
        except RecursionError as e:
            raise UnsupportedShapeError("Document nested too deeply") from e

    def _parse_rule_sets(self, document: Any) -> List[Metric]:
        metrics: List[Metric] = []
        for config in self.configs:
            basic_metrics = self.process_basic_fields(
                config.metric_name, config.basic_fields, document
            )
            metrics.extend(basic_metrics)

            object_metrics = self.process_object_fields(
                config.metric_name, config.object_fields, document
            )
            metrics.extend(object_metrics)

            logger.debug(
                f"Rule-set '{config.metric_name}' produced {len(basic_metrics)} basic "
                f"and {len(object_metrics)} object metrics"
            )

        logger.info(f"Parsed document into {len(metrics)} metrics")
        return metrics

    def _new_metric(self, metric_name: str) -> Metric:
        return Metric(name=metric_name, timestamp=self.time_func())

    def process_basic_fields(
        self,
        metric_name: str,
        basic_fields: Sequence[BasicField],
        document: Any,
    ) -> List[Metric]:
        """Evaluate basic field rules and merge their results.

        Each rule produces its own group of metrics. Groups are then folded
        from smallest to largest: every metric of one group copies its
        fields into every metric of the next, and the last group is the
        result.

        Args:
            metric_name: Name for the produced metrics
            basic_fields: Basic field rules
            document: Decoded JSON document

        Returns:
            Metrics of the largest group after merging
        """
        groups: List[List[Metric]] = []

        for field in basic_fields:
            result = query.get(document, field.query)

            if result.is_object:
                raise UnsupportedShapeError(
                    f"Query '{field.query}' selected an object, use object_fields"
                )

            field_name = field.name or query.last_segment(field.query)

            node = MetricNode(
                root_field_name=field_name,
                desired_type=field.type,
                metric=self._new_metric(metric_name),
                result=result,
            )
            nodes = self.expand_array(node)
            logger.debug(f"Query '{field.query}' expanded into {len(nodes)} rows")

            if nodes:
                groups.append([n.metric for n in nodes])

        if not groups:
            return []

        groups.sort(key=len)

        # Merge each group into the next one
        for previous, current in zip(groups, groups[1:]):
            for p in previous:
                for c in current:
                    for key, value in p.field_list():
                        c.add_field(key, value)

        return list(groups[-1])

    def expand_array(self, node: MetricNode) -> List[MetricNode]:
        """Create a separate node for each scalar reachable through arrays.

        Args:
            node: Node positioned on the value to expand

        Returns:
            One node per non-null scalar leaf, empty if the query matched nothing

        Raises:
            UnsupportedShapeError: If an object is encountered
            ConversionError: If a leaf fails its declared conversion
        """
        result = node.result

        if result.is_object:
            raise UnsupportedShapeError(
                f"Field '{node.root_field_name}' encountered object"
            )

        if not result.is_array:
            if not result.exists:
                return []
            value = convert_type(result.value, node.desired_type, node.root_field_name)
            if value is None:
                return []
            node.metric.add_field(node.root_field_name, value)
            return [node]

        results: List[MetricNode] = []
        for _, child in result.for_each():
            if child.is_object:
                raise UnsupportedShapeError(
                    f"Field '{node.root_field_name}' encountered object"
                )

            if child.is_array:
                branch = MetricNode(
                    root_field_name=node.root_field_name,
                    desired_type=node.desired_type,
                    metric=node.metric.copy(timestamp=self.time_func()),
                    result=child,
                )
                results.extend(self.expand_array(branch))
            else:
                value = convert_type(child.value, node.desired_type, node.root_field_name)
                # null leaves carry no value
                if value is None:
                    continue
                metric = node.metric.copy(timestamp=self.time_func())
                metric.add_field(node.root_field_name, value)
                results.append(MetricNode(
                    root_field_name=node.root_field_name,
                    desired_type=node.desired_type,
                    metric=metric,
                    result=child,
                ))

        return results

    def process_object_fields(
        self,
        metric_name: str,
        object_fields: Sequence[ObjectField],
        document: Any,
    ) -> List[Metric]:
        """Evaluate object field rules and flatten each selected object."""
        metrics: List[Metric] = []

        for field in object_fields:
            result = query.get(document, field.query)
            if not result.exists:
                logger.debug(f"Query '{field.query}' matched nothing")

            root = MetricNode(
                root_field_name=query.last_segment(field.query),
                metric=self._new_metric(metric_name),
                result=result,
            )
            nodes = self.combine_object(root, field.name_map, field.type_map)
            metrics.extend(n.metric for n in nodes)

        return metrics

    def combine_object(
        self,
        node: MetricNode,
        name_map: Dict[str, str],
        type_map: Dict[str, str],
    ) -> List[MetricNode]:
        """Flatten an object into the node's metric.

        Scalar children become fields of the node's metric and nested
        objects are flattened into the same metric. Array children are
        expanded into additional, independent metrics which start from the
        fields collected so far.

        Args:
            node: Node positioned on the object to flatten
            name_map: Output name overrides keyed by original key
            type_map: Declared types keyed by original key

        Returns:
            The expanded array metrics followed by the node itself
        """
        nodes: List[MetricNode] = []

        for key, child in node.result.for_each():
            if key:
                field_name = name_map.get(key, key).replace(' ', '')
            else:
                field_name = node.root_field_name

            if child.is_array:
                array_node = MetricNode(
                    root_field_name=key or node.root_field_name,
                    metric=node.metric,
                    result=child,
                )
                nodes.extend(self.expand_array(array_node))
            elif child.is_object:
                self.combine_object(
                    MetricNode(
                        root_field_name=key or node.root_field_name,
                        metric=node.metric,
                        result=child,
                    ),
                    name_map,
                    type_map,
                )
            else:
                value = child.value
                desired_type = type_map.get(key)
                if desired_type:
                    value = convert_type(value, desired_type, key)
                node.metric.add_field(field_name, value)

        nodes.append(node)
        return nodes
