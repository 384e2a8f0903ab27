"""I/O utilities: key management, relay message framing and the relay transport.

Sits beside ``zapstack.core`` and ``zapstack.nips`` in the middle of the DAG.
Depends on ``zapstack.models``, ``zapstack.core`` and ``zapstack.nips.nip01``
(signature verification of incoming events), plus ``aiohttp`` and
``nostr_sdk``.

Attributes:
    RelayTransport: One persistent WebSocket with correlated publish/query.
        See [zapstack.utils.transport][].
    TransportConfig: Timeouts and validation settings for the transport.
    KeyManager, StaticKeyManager, KeysConfig: Identity sources.
        See [zapstack.utils.keys][].
    parse_relay_message: NIP-01 frame decoding over ``nostr_sdk.RelayMessage``.
        See [zapstack.utils.protocol][].
"""

from .keys import (
    KeyManager,
    KeysConfig,
    StaticKeyManager,
    generate_private_key,
    is_valid_private_key,
    load_keys_from_env,
)
from .protocol import (
    RelayClosed,
    RelayEose,
    RelayEvent,
    RelayMessage,
    RelayNotice,
    RelayOk,
    encode_close,
    encode_event,
    encode_req,
    parse_relay_message,
)
from .transport import (
    AiohttpWebSocket,
    ConnectionState,
    RelayTransport,
    Subscription,
    TransportConfig,
    aiohttp_connect,
)


__all__ = [
    "AiohttpWebSocket",
    "ConnectionState",
    "KeyManager",
    "KeysConfig",
    "RelayClosed",
    "RelayEose",
    "RelayEvent",
    "RelayMessage",
    "RelayNotice",
    "RelayOk",
    "RelayTransport",
    "StaticKeyManager",
    "Subscription",
    "TransportConfig",
    "aiohttp_connect",
    "encode_close",
    "encode_event",
    "encode_req",
    "generate_private_key",
    "is_valid_private_key",
    "load_keys_from_env",
    "parse_relay_message",
]
