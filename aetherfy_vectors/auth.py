# aetherfy_vectors/auth.py
# SPDX-License-Identifier: Apache-2.0
"""API key validation and auth header construction."""

from __future__ import annotations

import re
from typing import Dict, Mapping, Optional

from aetherfy_vectors.exceptions import AuthenticationError

API_KEY_PREFIX = "afy_"
API_KEY_PATTERN = re.compile(r"^afy_(live|test)_[a-zA-Z0-9]{16,}$")

API_KEY_ENV_VARS = ("AETHERFY_API_KEY", "AETHERFY_VECTORS_API_KEY")


def resolve_api_key(explicit_key: Optional[str], environ: Mapping[str, str]) -> str:
    """
    Pick an API key: explicit value first, then the environment variables in
    `API_KEY_ENV_VARS` order.
    """
    if explicit_key:
        return explicit_key
    for name in API_KEY_ENV_VARS:
        value = environ.get(name)
        if value:
            return value
    raise AuthenticationError(
        "API key not found. Pass api_key or set the AETHERFY_API_KEY environment variable."
    )


class APIKeyManager:
    """Holds a validated API key."""

    def __init__(self, api_key: str):
        self._api_key = api_key
        self._validate()

    def _validate(self) -> None:
        if not self._api_key:
            raise AuthenticationError("API key cannot be empty")
        if not self._api_key.startswith(API_KEY_PREFIX):
            raise AuthenticationError(
                f"Invalid API key format. API key must start with '{API_KEY_PREFIX}'"
            )
        if not API_KEY_PATTERN.match(self._api_key):
            raise AuthenticationError(
                "Invalid API key format. Expected format: "
                "afy_live_XXXXXXXXXXXXXXXX or afy_test_XXXXXXXXXXXXXXXX"
            )

    @property
    def api_key(self) -> str:
        return self._api_key

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def is_test_key(self) -> bool:
        return self._api_key.startswith("afy_test_")

    def is_live_key(self) -> bool:
        return self._api_key.startswith("afy_live_")

    def __repr__(self) -> str:
        # never expose the full key
        return f"APIKeyManager({self._api_key[:9]}...)"


__all__ = ["APIKeyManager", "resolve_api_key", "API_KEY_ENV_VARS"]
