"""Core layer: logging, errors, YAML loading and observable values.

Sits in the middle of the DAG -- depends only on the standard library and
PyYAML, and is depended upon by ``zapstack.nips``, ``zapstack.utils`` and
``zapstack.services``.

Attributes:
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][zapstack.core.logger.Logger].
    ZapstackError: Root of the typed error hierarchy.
        See [zapstack.core.exceptions][zapstack.core.exceptions].
    BehaviorValue, ReplayValue: Observable values consumed by the UI.
        See [zapstack.core.observable][zapstack.core.observable].
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
"""

from .exceptions import (
    ConfigurationError,
    ConnectionClosedError,
    InvalidInputError,
    MalformedEventError,
    NotConnectedError,
    NotFoundError,
    ProtocolError,
    PublishRejectedError,
    RelayTimeoutError,
    SubscriptionClosedError,
    TransportError,
    ZapstackError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .observable import BehaviorValue, Observable, ReplayValue
from .yaml import load_yaml


__all__ = [
    "BehaviorValue",
    "ConfigurationError",
    "ConnectionClosedError",
    "InvalidInputError",
    "Logger",
    "MalformedEventError",
    "NotConnectedError",
    "NotFoundError",
    "Observable",
    "ProtocolError",
    "PublishRejectedError",
    "RelayTimeoutError",
    "ReplayValue",
    "StructuredFormatter",
    "SubscriptionClosedError",
    "TransportError",
    "ZapstackError",
    "format_kv_pairs",
    "load_yaml",
]
