"""
Exception types raised by the JSON metrics parser.

Every error is terminal for the call that raised it: the engine never skips
a failed branch or emits partial results.
"""

from typing import Optional


class JsonMetricsError(Exception):
    """Base class for all parser errors."""


class InvalidDocumentError(JsonMetricsError, ValueError):
    """The input is not syntactically valid JSON."""


class UnsupportedShapeError(JsonMetricsError, ValueError):
    """A selection resolved to a JSON shape it cannot handle.

    Raised when a basic field query resolves to an object, or when an
    array being expanded contains an object element.
    """


class ConversionError(JsonMetricsError, ValueError):
    """A value could not be coerced to its declared type.

    Attributes:
        field: Name of the field being converted
        desired_type: The declared target type
    """

    def __init__(self, message: str, field: str = "", desired_type: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.desired_type = desired_type


class UnsupportedOperationError(JsonMetricsError, NotImplementedError):
    """The requested entry point is not implemented by this parser."""


class ConfigError(JsonMetricsError, ValueError):
    """A parser configuration is malformed."""
