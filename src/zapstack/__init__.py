r"""Zapstack -- Nostr relay client for a question/answer forum with zaps.

Participants sign small JSON events, push them to one relay over a
persistent WebSocket and query it with filters. Votes and zap totals are
derived client-side from the events the relay returns.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services         Session, forum operations, aggregation
             /   |   \
          core  nips  utils    Logging/errors | codec, payloads | transport
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Events, templates and filters. Depends only on stdlib.
    core: Exceptions, structured logging, YAML loading, observable values.
    nips: NIP-01 codec, forum payloads and builders, NIP-57 zap receipts.
    utils: Key management, relay message framing, WebSocket transport.
    services: Session, forum operations and vote/zap aggregation.

Note:
    Top-level imports (``from zapstack import Forum``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("zapstack")

__all__ = [
    "Event",
    "EventKind",
    "EventTemplate",
    "Filter",
    "Forum",
    "ForumConfig",
    "KeysConfig",
    "Logger",
    "Profile",
    "RelayTransport",
    "Session",
    "SessionConfig",
    "StaticKeyManager",
    "TransportConfig",
    "ZapstackConfig",
    "ZapstackError",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Logger": ("zapstack.core", "Logger"),
    "ZapstackError": ("zapstack.core", "ZapstackError"),
    "Event": ("zapstack.models", "Event"),
    "EventKind": ("zapstack.models", "EventKind"),
    "EventTemplate": ("zapstack.models", "EventTemplate"),
    "Filter": ("zapstack.models", "Filter"),
    "Profile": ("zapstack.nips", "Profile"),
    "KeysConfig": ("zapstack.utils", "KeysConfig"),
    "RelayTransport": ("zapstack.utils", "RelayTransport"),
    "StaticKeyManager": ("zapstack.utils", "StaticKeyManager"),
    "TransportConfig": ("zapstack.utils", "TransportConfig"),
    "Forum": ("zapstack.services", "Forum"),
    "ForumConfig": ("zapstack.services", "ForumConfig"),
    "Session": ("zapstack.services", "Session"),
    "SessionConfig": ("zapstack.services", "SessionConfig"),
    "ZapstackConfig": ("zapstack.services", "ZapstackConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'zapstack' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
