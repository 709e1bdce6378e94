#!/usr/bin/env python3
"""
CLI entry point for turning JSON documents into metrics.

Loads a YAML rule-set configuration, parses a JSON input file and prints
the produced metrics as JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from json_metrics import JsonMetricsError, Metric, Parser, load_config
from json_metrics.config import setup_logging


logger = logging.getLogger("json_metrics.cli")


def read_input(input_file: str) -> bytes:
    """Read the raw JSON document.

    Args:
        input_file: Path to the input file, or '-' for stdin

    Returns:
        The raw document bytes

    Raises:
        ValueError: If the file does not exist
    """
    if input_file == '-':
        return sys.stdin.buffer.read()

    path = Path(input_file)
    if not path.exists():
        raise ValueError(f"Input file not found: {input_file}")

    return path.read_bytes()


def build_output(metrics: List[Metric]) -> Dict[str, Any]:
    return {
        "total_metrics": len(metrics),
        "metrics": [m.to_dict() for m in metrics],
    }


def run(config_file: str, input_file: str, output_file: str | None = None) -> int:
    """Parse one input file and write the metrics.

    Args:
        config_file: Path to the YAML configuration
        input_file: Path to the JSON document
        output_file: Optional output file path; stdout when omitted

    Returns:
        Process exit status
    """
    try:
        rule_sets = load_config(config_file)
        data = read_input(input_file)

        parser = Parser(rule_sets)
        metrics = parser.parse(data)
    except (JsonMetricsError, ValueError) as e:
        logger.error(f"Parsing failed: {e}")
        print(json.dumps({"error": str(e)}, indent=2), file=sys.stderr)
        return 1

    output = json.dumps(build_output(metrics), indent=2)

    if output_file:
        Path(output_file).write_text(output)
        logger.info(f"Results saved to {output_file}")
    else:
        print(output)

    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="JSON Metrics - Convert JSON documents into metrics"
    )

    parser.add_argument(
        "input",
        help="Path to JSON input file ('-' for stdin)",
    )

    parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to rule-set configuration file (YAML or JSON)",
    )

    parser.add_argument(
        "-o", "--output",
        help="Output file path for the produced metrics",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    setup_logging(args.verbose)
    sys.exit(run(args.config, args.input, args.output))


if __name__ == "__main__":
    main()
