"""Constants shared by the test suite."""

# Valid secp256k1 test keys (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)
OTHER_HEX_KEY = (
    "7f7ff03d123792d6ac594bfa67bf6d0c0ab55b6b1fdb6249303fe861f1ccba9a"  # pragma: allowlist secret
)
RELAY_URL = "wss://relay.example.com"
NAMESPACE = "zapstack_test"
