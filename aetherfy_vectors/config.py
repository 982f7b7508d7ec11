# aetherfy_vectors/config.py
# SPDX-License-Identifier: Apache-2.0
"""
Client configuration.

`ClientConfig` is an immutable value object. The environment is only
consulted through `ClientConfig.from_env`, which callers invoke explicitly;
nothing else in the SDK reads `os.environ`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from aetherfy_vectors.auth import resolve_api_key
from aetherfy_vectors.retry import RetryPolicy

DEFAULT_ENDPOINT = "https://vectors.aetherfy.com"
DEFAULT_TIMEOUT = 30.0
ENDPOINT_ENV_VAR = "AETHERFY_ENDPOINT"


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings for an AetherfyVectorsClient.

    Attributes:
        api_key: Aetherfy API key (afy_live_... / afy_test_...)
        endpoint: Service base URL
        timeout: Per-request timeout in seconds
        enforce_payload_schema: Validate payloads against the collection schema before upsert
        max_retries: Retries for transient failures
        retry_base_delay: Initial backoff in seconds
        retry_max_delay: Backoff cap in seconds
    """

    api_key: str
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = DEFAULT_TIMEOUT
    enforce_payload_schema: bool = True
    max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        object.__setattr__(self, "endpoint", self.endpoint.rstrip("/"))

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
        )

    def with_overrides(self, **overrides: Any) -> "ClientConfig":
        return replace(self, **overrides)

    @classmethod
    def from_env(
        cls,
        api_key: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "ClientConfig":
        """
        Resolve configuration from explicit arguments and the environment.

        Precedence for the key: `api_key`, then AETHERFY_API_KEY, then
        AETHERFY_VECTORS_API_KEY. The endpoint falls back to AETHERFY_ENDPOINT
        when not given explicitly.
        """
        env = os.environ if environ is None else environ
        key = resolve_api_key(api_key, env)
        if overrides.get("endpoint") is None:
            overrides.pop("endpoint", None)
            if env.get(ENDPOINT_ENV_VAR):
                overrides["endpoint"] = env[ENDPOINT_ENV_VAR]
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return cls(api_key=key, **overrides)

    def __repr__(self) -> str:
        return (
            f"ClientConfig(endpoint={self.endpoint!r}, timeout={self.timeout}, "
            f"enforce_payload_schema={self.enforce_payload_schema}, "
            f"max_retries={self.max_retries})"
        )


__all__ = ["ClientConfig", "DEFAULT_ENDPOINT", "DEFAULT_TIMEOUT"]
