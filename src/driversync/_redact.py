"""Masking for request bodies written to DEBUG logs.

Token exchanges carry client secrets and address updates carry a driver's
home address.  Credentials are replaced outright; address lines and postal
codes keep only their length so a log still shows whether a field was sent.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {"clientsecret", "accesstoken", "refreshtoken", "authorization", "password"}
)
_ADDRESS_KEYS: frozenset[str] = frozenset(
    {"address1", "address2", "lineone", "linetwo", "postcode", "postalcode", "zipcode"}
)


def _normalize_key(key: Any) -> str:
    return str(key).replace("_", "").replace("-", "").lower()


def redact_for_log(value: Any, *, max_string: int = 256) -> Any:
    """Return a copy of a form or JSON body with credentials and addresses masked."""
    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = _normalize_key(k)
            if key in _CREDENTIAL_KEYS:
                redacted[str(k)] = "<redacted>"
            elif key in _ADDRESS_KEYS and isinstance(v, str):
                redacted[str(k)] = f"<address:{len(v)}>"
            else:
                redacted[str(k)] = redact_for_log(v, max_string=max_string)
        return redacted

    if isinstance(value, list):
        return [redact_for_log(v, max_string=max_string) for v in value]

    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"

    return value
